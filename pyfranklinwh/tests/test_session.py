import hashlib

import pytest
import requests

from pyfranklinwh.exceptions import AuthError, DecodeError, PyFranklinWHConnectionError
from pyfranklinwh.session import Session, SessionManager


def test_session_keeps_only_digest():
    s = Session("user", "hunter2", "GW1")
    assert s.password == hashlib.md5(b"hunter2").hexdigest()
    assert "hunter2" not in repr(s)
    assert s.token is None
    assert not s.authenticated


def test_sequence_starts_at_one_and_increases():
    s = Session("user", "pw", "GW1")
    numbers = [s.next_seqnr() for _ in range(10)]
    assert numbers == list(range(1, 11))


def test_login_stores_token(session, http, responses):
    session.token = None
    http.post.return_value = responses["login"]("abc")
    manager = SessionManager(session, http, timeout=3)
    assert manager.login() is session
    assert session.token == "abc"
    url = http.post.call_args.args[0]
    assert url == "https://relay.test/hes-gateway/terminal/initialize/appUserOrInstallerLogin"
    form = http.post.call_args.kwargs["data"]
    assert form == {
        "account": "user@example.com",
        "password": hashlib.md5(b"secret").hexdigest(),
        "lang": "en_US",
        "type": 1,
    }
    assert http.post.call_args.kwargs["timeout"] == 3


def test_login_overwrites_previous_token(session, http, responses):
    http.post.return_value = responses["login"]("new")
    SessionManager(session, http).login()
    assert session.token == "new"


def test_login_rejected(session, http, responses):
    http.post.return_value = responses["raw"]({"success": False, "message": "Wrong password"})
    with pytest.raises(AuthError, match="Wrong password"):
        SessionManager(session, http).login()
    # old token untouched
    assert session.token == "token-1"
    assert http.post.call_count == 1


def test_login_missing_token(session, http, responses):
    http.post.return_value = responses["raw"]({"success": True, "result": {}})
    with pytest.raises(DecodeError):
        SessionManager(session, http).login()


def test_login_not_json(session, http, responses):
    r = responses["raw"]({})
    r.json.side_effect = ValueError("Expecting value")
    http.post.return_value = r
    with pytest.raises(DecodeError):
        SessionManager(session, http).login()


def test_login_connection_error(session, http):
    http.post.side_effect = requests.ConnectionError("unreachable")
    with pytest.raises(PyFranklinWHConnectionError):
        SessionManager(session, http).login()
