import json
from unittest.mock import MagicMock, patch

import pytest

from pyfranklinwh import __main__ as cli
from pyfranklinwh.exceptions import AuthError
from pyfranklinwh.models import SwitchState, TelemetrySnapshot

STATS = TelemetrySnapshot(1.0, 0.0, 2.0, 0.5, -0.5, 77, 10, 0, 12, 3, 1, 4, 2)


@pytest.fixture(name="gw")
def fixture_gw():
    gw = MagicMock()
    gw.connect.return_value = gw
    gw.get_stats.return_value = STATS
    gw.get_mode.return_value = "self"
    gw.get_reserve.return_value = 20
    gw.get_smart_switches.return_value = [SwitchState("sw1", True, "Pool")]
    with patch.object(cli, "Gateway", return_value=gw) as cls, \
         patch.object(cli.dotenv, "load_dotenv"):
        gw.cls = cls
        yield gw


ARGS = ["-username", "u", "-password", "p", "-gateway", "GW1"]


def test_version(capsys):
    assert cli.main(["version"]) == 0
    assert cli.version in capsys.readouterr().out


def test_get_json(gw, capsys):
    assert cli.main(["get", "-format", "json"] + ARGS) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["mode"] == "self"
    assert out["reserve"] == 20
    assert out["charge_percentage"] == 77
    gw.cls.assert_called_once_with("u", "p", "GW1", base_url=cli.BASE_URL)


def test_set(gw):
    assert cli.main(["set", "-mode", "EMER", "-reserve", "30"] + ARGS) == 0
    gw.set_mode.assert_called_once_with("emer")
    gw.set_reserve.assert_called_once_with(30)


def test_set_requires_option(gw):
    assert cli.main(["set"] + ARGS) == 1
    gw.set_mode.assert_not_called()


def test_switches(gw, capsys):
    assert cli.main(["switches", "-on", "sw1", "-off", "sw3"] + ARGS) == 0
    gw.set_smart_switches.assert_called_once_with({"sw1": True, "sw3": False})
    assert "Pool" in capsys.readouterr().out


def test_error_exit_code(gw, capsys):
    gw.connect.side_effect = AuthError("Wrong password")
    assert cli.main(["get"] + ARGS) == 1
    assert "Wrong password" in capsys.readouterr().err
