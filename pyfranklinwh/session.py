import logging
import threading
from typing import Optional

import requests

from pyfranklinwh.credentials import digest
from pyfranklinwh.exceptions import AuthError, DecodeError, PyFranklinWHConnectionError
from pyfranklinwh.models import ApiResponse, require

log = logging.getLogger(__name__)

BASE_URL = "https://energy.franklinwh.com/"
LANG = "en_US"
LOGIN_API = "hes-gateway/terminal/initialize/appUserOrInstallerLogin"


def decode_json(r: requests.Response):
    try:
        return r.json()
    except ValueError as exc:
        log.debug(f"Invalid JSON from {r.url} (code {r.status_code}): {r.text[:200]}")
        raise DecodeError(f"Response is not JSON: {exc}") from exc


class Session:
    """
    State of one login session on the relay. Only SessionManager.login()
    sets the token; only the command dispatcher draws sequence numbers.
    """

    def __init__(self, username: str, password: str, gateway: str,
                 base_url: str = BASE_URL, lang: str = LANG):
        self.username = username
        self.password = digest(password)  # never keep the plaintext
        self.gateway = gateway
        self.base_url = base_url
        self.lang = lang
        self.token: Optional[str] = None
        self.seqnr = 1
        self.lock = threading.RLock()

    @property
    def authenticated(self) -> bool:
        return self.token is not None

    def next_seqnr(self) -> int:
        seqnr = self.seqnr
        self.seqnr += 1
        return seqnr

    def url(self, api: str) -> str:
        return f"{self.base_url}{api}"

    def __repr__(self):
        return f"Session(username={self.username!r}, gateway={self.gateway!r}, seqnr={self.seqnr})"


class SessionManager:
    def __init__(self, session: Session, http: requests.Session, timeout: float = 10):
        self.session = session
        self.http = http
        self.timeout = timeout

    def login(self) -> Session:
        """
        Log in to the relay and store the returned token on the session.
        Raises AuthError when the relay rejects the credentials.
        """
        url = self.session.url(LOGIN_API)
        form = {
            "account": self.session.username,
            "password": self.session.password,
            "lang": self.session.lang,
            "type": 1,
        }
        log.debug(f"Logging in to {url} as {self.session.username}")
        try:
            r = self.http.post(url, data=form, timeout=self.timeout)
        except requests.RequestException as exc:
            err = f"Unable to connect to FranklinWH relay at {url}: {exc}"
            log.debug(err)
            raise PyFranklinWHConnectionError(err) from exc

        response = ApiResponse.from_dict(decode_json(r))
        if not response.success:
            log.error(f"Login failed for {self.session.username}: {response.message}")
            raise AuthError(response.message or "Login failed")
        token = require(response.result, 'token', str)
        self.session.token = token
        log.debug(f"Logged in as {self.session.username}")
        return self.session
