# pyFranklinWH - Command Dispatcher
# -*- coding: utf-8 -*-
"""
 FranklinWH Command Dispatcher

 Frames semantic payloads into the numbered, checksummed command envelope
 accepted by the relay's terminal/sendMqtt endpoint and drives the bounded
 retry loop around it.

 Every attempt draws a new sequence number from the session, so retries
 never reuse one. Per attempt the relay code decides the next step:

    200  success        - return the decoded dataArea
    401  unauthenticated - log in again, retry immediately
    102  timeout        - sleep retry_delay, retry
    136  offline        - fail
    400  no gateway     - fail
    *    unknown        - fail

 Class:
    CommandDispatcher(session, manager, http, timeout, max_retries, retry_delay)

 Functions:
    send(cmd_type, payload) - dispatch a command and return its decoded payload
    request(method, api, params, data, headers) - call a simple token endpoint
"""
import enum
import json
import logging
import time
from typing import Any, Optional

import requests

from pyfranklinwh.credentials import checksum
from pyfranklinwh.exceptions import CommandError, PyFranklinWHConnectionError
from pyfranklinwh.models import ApiResponse, CommandResponse
from pyfranklinwh.session import Session, SessionManager, decode_json

log = logging.getLogger(__name__)

COMMAND_API = "hes-gateway/terminal/sendMqtt"
MAX_RETRIES = 5
RETRY_DELAY = 1.0  # seconds to wait after a relay timeout

# Command types
CMD_STATUS = 203
CMD_SWITCHES = 311

# Relay codes on the command path
CODE_SUCCESS = 200
CODE_UNAUTHENTICATED = 401
CODE_TIMEOUT = 102
CODE_OFFLINE = 136
CODE_NO_GATEWAY = 400


class Outcome(enum.Enum):
    SUCCEED = "succeed"
    REAUTH = "reauth"
    BACKOFF = "backoff"
    FAIL = "fail"


def classify(code: int) -> Outcome:
    if code == CODE_SUCCESS:
        return Outcome.SUCCEED
    if code == CODE_UNAUTHENTICATED:
        return Outcome.REAUTH
    if code == CODE_TIMEOUT:
        return Outcome.BACKOFF
    # offline, no gateway and anything unrecognised are terminal
    return Outcome.FAIL


def build_envelope(session: Session, cmd_type: int, payload: dict) -> dict:
    """Frame a payload for one send attempt, consuming a sequence number"""
    serialized = json.dumps(payload, separators=(',', ':')).encode()
    return {
        "lang": session.lang,
        "cmdType": cmd_type,
        "equipNo": session.gateway,
        "type": 0,
        "timeStamp": int(time.time()),
        "snno": session.next_seqnr(),
        "len": len(serialized),
        "crc": checksum(serialized),
        "dataArea": payload,
    }


class CommandDispatcher:
    def __init__(self, session: Session, manager: SessionManager, http: requests.Session,
                 timeout: float = 10, max_retries: int = MAX_RETRIES, retry_delay: float = RETRY_DELAY):
        self.session = session
        self.manager = manager
        self.http = http
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    def _headers(self, extra: Optional[dict] = None) -> dict:
        headers = {"loginToken": self.session.token or ""}
        if extra:
            headers.update(extra)
        return headers

    def _transmit(self, envelope: dict) -> CommandResponse:
        url = self.session.url(COMMAND_API)
        body = json.dumps(envelope, separators=(',', ':'))
        headers = self._headers({"Content-Type": "application/json"})
        log.debug(f"POST {url} cmdType={envelope['cmdType']} snno={envelope['snno']}")
        try:
            r = self.http.post(url, data=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            err = f"Unable to send command to FranklinWH relay at {url}: {exc}"
            log.debug(err)
            raise PyFranklinWHConnectionError(err) from exc
        return CommandResponse.from_dict(decode_json(r))

    def send(self, cmd_type: int, payload: dict) -> dict:
        """
        Send a command to the gateway through the relay.

        Args:
            cmd_type = Command type (e.g. CMD_STATUS, CMD_SWITCHES)
            payload  = Semantic payload placed in dataArea

        Returns:
            The decoded dataArea of the successful response.

        Raises:
            CommandError on a terminal relay code or when retries run out.
        """
        if not self.session.authenticated:
            self.manager.login()
        for attempt in range(1, self.max_retries + 1):
            envelope = build_envelope(self.session, cmd_type, payload)
            response = self._transmit(envelope)
            outcome = classify(response.code)
            log.debug(f"cmdType={cmd_type} snno={envelope['snno']} attempt {attempt}: "
                      f"code {response.code} -> {outcome.value}")
            if outcome is Outcome.SUCCEED:
                return response.payload()
            if outcome is Outcome.REAUTH:
                log.info("Session token rejected - logging in again")
                self.manager.login()
            elif outcome is Outcome.BACKOFF:
                log.warning(f"Gateway timed out on cmdType={cmd_type} - retrying in {self.retry_delay}s")
                time.sleep(self.retry_delay)
            else:
                log.error(f"Command {cmd_type} failed with code {response.code}: {response.message}")
                raise CommandError(response.message or f"Command failed with code {response.code}",
                                   code=response.code)
        log.error(f"Command {cmd_type} failed after {self.max_retries} attempts")
        raise CommandError("too many retries")

    def request(self, method: str, api: str, params: Optional[dict] = None, data: Optional[dict] = None,
                headers: Optional[dict] = None, recursive: bool = False) -> Any:
        """
        Call one of the simple token-bearing relay endpoints and return its
        result. A rejected token is renewed once.
        """
        if not self.session.authenticated:
            self.manager.login()
        url = self.session.url(api)
        log.debug(f"{method.upper()} {url}")
        try:
            r = self.http.request(method.upper(), url, params=params, data=data,
                                  headers=self._headers(headers), timeout=self.timeout)
        except requests.RequestException as exc:
            err = f"Unable to reach FranklinWH relay at {url}: {exc}"
            log.debug(err)
            raise PyFranklinWHConnectionError(err) from exc
        unauthenticated = r.status_code == CODE_UNAUTHENTICATED
        response = None
        if not unauthenticated:
            body = decode_json(r)
            # A rejected token may come back without the usual success flag
            unauthenticated = (isinstance(body, dict) and body.get('code') == CODE_UNAUTHENTICATED
                               and not body.get('success'))
            if not unauthenticated:
                response = ApiResponse.from_dict(body)
        if unauthenticated:
            if recursive:
                log.error(f"Token rejected by {url} after logging in again")
                raise CommandError("Unauthenticated", code=CODE_UNAUTHENTICATED)
            log.info("Session token rejected - logging in again")
            self.manager.login()
            return self.request(method, api, params, data, headers, recursive=True)
        if not response.success:
            log.error(f"{api} failed: {response.message}")
            raise CommandError(response.message or f"{api} failed", code=response.code)
        return response.result
