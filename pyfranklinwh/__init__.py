# pyFranklinWH Module
# -*- coding: utf-8 -*-
"""
 Python module to interface with a FranklinWH aGate through the FranklinWH cloud relay

 Features
    * Works with FranklinWH aGate home energy management gateways
    * Logs in with the FranklinWH app account and renews the token when the relay rejects it
    * Retries commands the gateway did not answer in time
    * Learns the installation's operating mode schedule entries once per session
    * Serializes calls on one client so sequence numbers stay strictly increasing

 Classes
    Gateway(username, password, gateway, base_url, lang, timeout, max_retries, retry_delay,
        skip_unchanged_mode, lock_timeout, poolmaxsize, http)

 Parameters
    username                  # FranklinWH app account (email)
    password                  # FranklinWH app password
    gateway                   # aGate serial number / gateway id
    base_url                  # Relay base URL (default https://energy.franklinwh.com/)
    lang = "en_US"            # Language sent with every request
    timeout = 10              # Timeout for HTTPS calls in seconds
    max_retries = 5           # Attempts per command before giving up
    retry_delay = 1.0         # Seconds to wait after the gateway times out
    skip_unchanged_mode = True  # Do not send a mode change if already in that mode
    lock_timeout = None       # Seconds to wait for another call on this client (default: command_budget())
    poolmaxsize = 10          # Pool max size for http connection re-use
    http = None               # Optional requests.Session to use

 Functions
    connect()                 # Log in to the relay (returns self)
    get_stats()               # Return TelemetrySnapshot of power flows, energy and charge
    level()                   # Return battery charge percentage
    get_accessories()         # Return accessories attached to the gateway
    get_controls()            # Return controllable loads of the gateway
    get_tou_list()            # Return the gateway's time-of-use schedule entries
    refresh_modes()           # Re-learn the mode table from the schedule entries
    get_mode()                # Return the operating mode ("tou", "self", "emer" or raw id)
    set_mode(mode)            # Set the operating mode
    get_reserve()             # Return the battery reserve percentage of the active mode
    set_reserve(level)        # Set the battery reserve percentage (5-100)
    get_smart_switches()      # Return list of SwitchState
    update_smart_switches(s)  # Refresh SwitchState list from live data
    set_smart_switches(s)     # Turn smart switches on or off

 Requirements
    This module requires the following modules: requests, urllib3
    pip install requests
"""
import logging
import sys
from typing import Dict, List, Optional, Union

version_tuple = (0, 1, 0)
version = __version__ = '%d.%d.%d' % version_tuple
__author__ = 'pyfranklinwh'

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from pyfranklinwh.codec import (ModeTable, clamp_reserve, decode_switches, decode_telemetry,
                                encode_switch_update, refresh_switches)
from pyfranklinwh.decorators import uses_api_lock, uses_mode_table
from pyfranklinwh.dispatcher import CMD_STATUS, CMD_SWITCHES, CommandDispatcher
from pyfranklinwh.exceptions import (AuthError, CommandError, DecodeError, LockTimeout,
                                     PyFranklinWHConnectionError, PyFranklinWHException,
                                     PyFranklinWHInvalidConfigurationParameter, UnknownMode)
from pyfranklinwh.models import SwitchState, TelemetrySnapshot, TouList, require
from pyfranklinwh.session import BASE_URL, LANG, Session, SessionManager

log = logging.getLogger(__name__)
log.debug('%s version %s', __name__, __version__)
log.debug('Python %s on %s', sys.version, sys.platform)

ACCESSORY_API = "hes-gateway/terminal/getIotAccessoryList"
CONTROLS_API = "hes-gateway/terminal/selectTerGatewayControlLoadByGatewayId"
TOU_LIST_API = "hes-gateway/terminal/tou/getGatewayTouList"
TOU_UPDATE_API = "hes-gateway/terminal/tou/updateTouMode"


def set_debug(toggle=True, color=True):
    """Enable verbose logging"""
    if toggle:
        if color:
            logging.basicConfig(format='\x1b[31;1m%(levelname)s:%(message)s\x1b[0m', level=logging.DEBUG)
        else:
            logging.basicConfig(format='%(levelname)s:%(message)s', level=logging.DEBUG)
        log.setLevel(logging.DEBUG)
        log.debug("%s [%s]\n" % (__name__, __version__))
    else:
        log.setLevel(logging.NOTSET)


def connect(username, password, gateway, **kwargs) -> "Gateway":
    """Create a Gateway client and log in"""
    return Gateway(username, password, gateway, **kwargs).connect()


# pylint: disable=too-many-public-methods
class Gateway(object):
    def __init__(self, username: str, password: str, gateway: str, base_url: str = BASE_URL,
                 lang: str = LANG, timeout: float = 10, max_retries: int = 5, retry_delay: float = 1.0,
                 skip_unchanged_mode: bool = True, lock_timeout: Optional[float] = None, poolmaxsize: int = 10,
                 http: Optional[requests.Session] = None):
        """
        Represents a FranklinWH aGate reached through the FranklinWH cloud relay.

        Args:
            username     = FranklinWH app account
            password     = FranklinWH app password (only its digest is kept)
            gateway      = aGate id
            base_url     = Relay base URL
            lang         = Language sent with every request
            timeout      = Seconds for the timeout on http requests
            max_retries  = Attempts per command before giving up
            retry_delay  = Seconds to wait after the gateway times out
            skip_unchanged_mode = If True, set_mode() does nothing when already in that mode
            lock_timeout = Seconds to wait for a concurrent call on this client (default: the
                           worst case of one command, see command_budget())
            poolmaxsize  = Pool max size for http connection re-use
            http         = Optional requests.Session (a pooled session is created otherwise)
        """
        self.username = username
        self.gateway = gateway
        self.base_url = base_url
        self.lang = lang
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.skip_unchanged_mode = skip_unchanged_mode
        self.lock_timeout = lock_timeout
        self.poolmaxsize = poolmaxsize
        if not password:
            raise PyFranklinWHInvalidConfigurationParameter("A password is required.")
        self._validate_init_configuration()
        if self.lock_timeout is None:
            self.lock_timeout = self.command_budget()

        if http is None:
            # Session object for http connection re-use, retrying failed connects only
            http = requests.Session()
            adapter = HTTPAdapter(pool_maxsize=self.poolmaxsize,
                                  max_retries=Retry(total=3, connect=3, read=0, backoff_factor=0.5))
            http.mount('https://', adapter)
            http.mount('http://', adapter)
        self.http = http
        self.session = Session(username, password, gateway, self.base_url, lang)
        self.manager = SessionManager(self.session, self.http, timeout)
        self.dispatcher = CommandDispatcher(self.session, self.manager, self.http, timeout,
                                            max_retries, retry_delay)
        self._modes: Optional[ModeTable] = None

    def __repr__(self):
        return f"Gateway(username={self.username!r}, gateway={self.gateway!r})"

    def command_budget(self) -> float:
        """
        Longest time one command may hold the session: an initial login, then
        per attempt the command plus either a login or the retry delay.
        """
        return self.timeout + self.max_retries * (2 * self.timeout + self.retry_delay)

    @uses_api_lock
    def connect(self) -> "Gateway":
        """Log in to the relay"""
        self.manager.login()
        return self

    def is_connected(self) -> bool:
        return self.session.authenticated

    def close_session(self):
        self.session.token = None
        self.http.close()

    # Telemetry

    @uses_api_lock
    def get_stats(self) -> TelemetrySnapshot:
        """
        Instantaneous power flows (W), cumulative energy (kWh) and state of charge
        """
        return decode_telemetry(self._get_data())

    def level(self) -> float:
        """Battery charge percentage"""
        return self.get_stats().charge_percentage

    def _get_data(self) -> dict:
        return self.dispatcher.send(CMD_STATUS, {"opt": 1, "refreshData": 1})

    def _get_switches(self) -> dict:
        return self.dispatcher.send(CMD_SWITCHES, {"opt": 0, "order": self.gateway})

    # Simple endpoints

    @uses_api_lock
    def get_accessories(self) -> list:
        return self.dispatcher.request("get", ACCESSORY_API, params={"gatewayId": self.gateway, "lang": self.lang})

    @uses_api_lock
    def get_controls(self) -> dict:
        return self.dispatcher.request("get", CONTROLS_API, params={"id": self.gateway, "lang": self.lang})

    @uses_api_lock
    def get_tou_list(self) -> TouList:
        """Time-of-use schedule entries configured on the gateway"""
        result = self.dispatcher.request("post", TOU_LIST_API, data={"gatewayId": self.gateway, "lang": self.lang})
        return TouList.from_dict(result)

    # Operating mode

    @property
    def modes(self) -> ModeTable:
        if self._modes is None:
            self.refresh_modes()
        return self._modes

    @uses_api_lock
    def refresh_modes(self) -> ModeTable:
        """
        Learn the mode name to schedule id mapping of this installation.
        The table is kept for the session and is not refreshed on its own.
        """
        self._modes = ModeTable.from_tou_list(self.get_tou_list())
        return self._modes

    @uses_api_lock
    @uses_mode_table
    def get_mode(self) -> Union[str, int]:
        """
        Current operating mode name, or the raw schedule id if it does not
        belong to a known mode
        """
        current = self._get_switches()
        return self._modes.resolve_mode(require(current, 'runingMode', int))

    @uses_api_lock
    @uses_mode_table
    def set_mode(self, mode: str) -> bool:
        """
        Set the operating mode

        Args:
            mode:    "tou", "self" or "emer"

        Returns:
            True once the relay accepted the change (or nothing had to change).
        """
        mode_id = self._modes.resolve_mode_id(mode)
        work_mode = self._modes.work_mode(mode)
        current = self._get_switches()
        if self.skip_unchanged_mode and current.get('runingMode') == mode_id:
            log.debug(f"Already in mode {mode} ({mode_id}) - nothing to do")
            return True
        form = {
            "gatewayId": self.gateway,
            "lang": self.lang,
            "oldIndex": 1,
            "stromEn": require(current, 'stromEn', (int, str)),
            "currendId": mode_id,
            "workMode": work_mode,
        }
        log.debug(f"Setting mode {mode}: {form}")
        self.dispatcher.request("post", TOU_UPDATE_API, data=form, headers={"optsource": "3"})
        return True

    # Battery reserve

    @uses_api_lock
    def get_reserve(self) -> int:
        """Battery reserve percentage of the active schedule entry"""
        entry = self.get_tou_list().current()
        if entry.soc is None:
            raise DecodeError(f"Schedule entry {entry.id} has no reserve")
        return entry.soc

    @uses_api_lock
    def set_reserve(self, level: float) -> bool:
        """
        Set battery reserve level of the active schedule entry.

        Args:
            level:   Reserve percentage, clamped to 5-100 (NaN raises ValueError)
        """
        soc = clamp_reserve(level)
        if soc != level:
            log.debug(f"Reserve {level} clamped to {soc}")
        entry = self.get_tou_list().current()
        current = self._get_switches()
        form = {
            "gatewayId": self.gateway,
            "lang": self.lang,
            "oldIndex": 1,
            "stromEn": require(current, 'stromEn', (int, str)),
            "currendId": entry.id,
            "workMode": entry.work_mode,
            "soc": soc,
        }
        log.debug(f"Setting reserve: {form}")
        self.dispatcher.request("post", TOU_UPDATE_API, data=form, headers={"optsource": "3"})
        return True

    # Smart switches

    @uses_api_lock
    def get_smart_switches(self) -> List[SwitchState]:
        return decode_switches(self._get_switches())

    @uses_api_lock
    def update_smart_switches(self, switches: List[SwitchState]) -> List[SwitchState]:
        """Refresh the state of the given switches from live data"""
        return refresh_switches(switches, self._get_data())

    @uses_api_lock
    def set_smart_switches(self, switches: Union[SwitchState, List[SwitchState], Dict[str, bool]]) -> bool:
        """
        Turn smart switches on or off.

        Args:
            switches: a SwitchState, a list of them, or a mapping of id to state
                      e.g. {"sw1": True, "sw3": False}
        """
        if isinstance(switches, SwitchState):
            switches = [switches]
        elif isinstance(switches, dict):
            switches = [SwitchState(id=k, state=bool(v)) for k, v in switches.items()]
        current = self._get_switches()
        self.dispatcher.send(CMD_SWITCHES, encode_switch_update(current, switches))
        return True

    def _validate_init_configuration(self):
        if not self.username:
            raise PyFranklinWHInvalidConfigurationParameter("A username is required.")
        if not self.gateway:
            raise PyFranklinWHInvalidConfigurationParameter("A gateway id is required.")
        if not isinstance(self.base_url, str) or not self.base_url.startswith(("https://", "http://")):
            raise PyFranklinWHInvalidConfigurationParameter(f"Invalid base_url: '{self.base_url}'. "
                                                            f"Must start with https:// or http://")
        if not self.base_url.endswith("/"):
            self.base_url += "/"
        if not isinstance(self.max_retries, int) or self.max_retries < 1:
            raise PyFranklinWHInvalidConfigurationParameter(f"max_retries must be at least 1: {self.max_retries}")
        if self.retry_delay < 0:
            raise PyFranklinWHInvalidConfigurationParameter(f"retry_delay must not be negative: {self.retry_delay}")
