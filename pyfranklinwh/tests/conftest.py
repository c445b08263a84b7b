import json
from unittest.mock import MagicMock

import pytest

from pyfranklinwh.session import Session

BASE = "https://relay.test/"


def make_response(payload, status_code=200):
    r = MagicMock()
    r.status_code = status_code
    r.url = BASE
    r.text = json.dumps(payload)
    r.json.return_value = payload
    return r


def command_response(code, data=None, message=None):
    body = {"code": code}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["result"] = {"dataArea": json.dumps(data)}
    return make_response(body)


def login_response(token="token-2"):
    return make_response({"success": True, "result": {"token": token}})


@pytest.fixture(name="responses")
def fixture_responses():
    """Factories for relay responses"""
    return {
        "raw": make_response,
        "command": command_response,
        "login": login_response,
    }


@pytest.fixture(name="session")
def fixture_session():
    s = Session("user@example.com", "secret", "GW123", base_url=BASE)
    s.token = "token-1"
    return s


@pytest.fixture(name="http")
def fixture_http():
    return MagicMock()


def sent_envelopes(http):
    """Command envelopes posted to terminal/sendMqtt, in order"""
    envelopes = []
    for call in http.post.call_args_list:
        if call.args[0].endswith("terminal/sendMqtt"):
            envelopes.append(json.loads(call.kwargs["data"]))
    return envelopes


@pytest.fixture(name="envelopes")
def fixture_envelopes():
    return sent_envelopes
