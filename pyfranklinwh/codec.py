"""
 FranklinWH Device State Codec

 Translates between the gateway's compact state (raw telemetry keys,
 per-switch flag fields, installation specific schedule identifiers)
 and the stable values exposed by the Gateway client.

 Functions:
    decode_telemetry(raw)                 - raw cmd 203 payload to TelemetrySnapshot
    decode_switches(raw)                  - raw cmd 311 payload to list of SwitchState
    refresh_switches(switches, raw)       - update switch states from cmd 203 pro_load
    encode_switch_update(current, wanted) - raw cmd 311 payload to resend
    clamp_reserve(percentage)             - clamp reserve into the accepted range

 Classes:
    ModeTable - mode name <-> schedule identifier mapping learned per session
"""
import logging
import math
from typing import Dict, Iterable, List, Union

from pyfranklinwh.exceptions import DecodeError, UnknownMode
from pyfranklinwh.models import TELEMETRY_FIELDS, SwitchState, TelemetrySnapshot, TouList, require

log = logging.getLogger(__name__)

SWITCH_IDS = ("sw1", "sw2", "sw3")
RESERVE_MIN = 5
RESERVE_MAX = 100

# Work mode codes used by tou/updateTouMode and the schedule list
WORK_MODES = {
    1: "tou",
    2: "self",
    3: "emer",
}

# Fields of the cmd 311 state that must not be echoed back
TRANSIENT_FIELDS = ("modeChoose", "result")


def decode_telemetry(raw: dict) -> TelemetrySnapshot:
    values = {}
    for name, key in TELEMETRY_FIELDS.items():
        if key not in raw or raw[key] is None:
            raise DecodeError(f"Telemetry is missing '{key}'")
        values[name] = raw[key]
    return TelemetrySnapshot(**values)


def _prefix(switch_id: str) -> str:
    # sw1 -> Sw1
    return "Sw" + switch_id[2:]


def decode_switches(raw: dict) -> List[SwitchState]:
    """
    Smart switches reported by the gateway. A switch is listed only if it
    has a name; sw2 is hidden when merged with sw1. The on/off state is the
    negation of the protect load flag.
    """
    merged = bool(raw.get("SwMerge"))
    switches = []
    for switch_id in SWITCH_IDS:
        prefix = _prefix(switch_id)
        name = raw.get(f"{prefix}Name")
        if not name:
            continue
        if switch_id == "sw2" and merged:
            continue
        pro_load = require(raw, f"{prefix}ProLoad", int)
        switches.append(SwitchState(id=switch_id, state=not pro_load, name=name))
    return switches


def refresh_switches(switches: List[SwitchState], raw: dict) -> List[SwitchState]:
    """Update switch states in place from the live telemetry pro_load array"""
    pro_load = raw.get("pro_load")
    if not isinstance(pro_load, list) or len(pro_load) < len(SWITCH_IDS):
        raise DecodeError(f"Telemetry has no usable pro_load array: {pro_load!r}")
    for switch in switches:
        if switch.id in SWITCH_IDS:
            switch.state = not pro_load[SWITCH_IDS.index(switch.id)]
    return switches


def _set_switch(state: dict, switch_id: str, on: bool):
    prefix = _prefix(switch_id)
    state[f"{prefix}MsgType"] = 1
    state[f"{prefix}Mode"] = 1 if on else 0
    state[f"{prefix}ProLoad"] = 0 if on else 1


def encode_switch_update(current: dict, desired: Iterable[SwitchState]) -> dict:
    """
    Build the cmd 311 payload to resend from the most recently fetched raw
    switch state, overlaying each desired switch. Setting sw1 also sets sw2
    while the two are merged.
    """
    state = {k: v for k, v in current.items() if k not in TRANSIENT_FIELDS}
    state["opt"] = 1
    merged = bool(current.get("SwMerge"))
    for switch in desired:
        if switch.id not in SWITCH_IDS:
            raise ValueError(f"Unknown switch id: {switch.id}")
        _set_switch(state, switch.id, switch.state)
        if switch.id == "sw1" and merged:
            _set_switch(state, "sw2", switch.state)
    return state


def clamp_reserve(percentage: Union[int, float]) -> int:
    if math.isnan(percentage):
        raise ValueError("Reserve percentage must be a number, got NaN")
    # Clamp first so infinities never reach int()
    return int(round(max(RESERVE_MIN, min(RESERVE_MAX, percentage))))


class ModeTable:
    """
    Bijective mapping between mode names and the schedule identifiers of one
    installation. Learned from the schedule list and never invalidated on its
    own; rebuild it if the gateway's schedule entries change.
    """

    def __init__(self, ids: Dict[str, int], work_modes: Dict[str, int]):
        self._ids = dict(ids)
        self._names = {v: k for k, v in self._ids.items()}
        if len(self._names) != len(self._ids):
            raise DecodeError(f"Schedule identifiers are not unique: {ids}")
        self._work_modes = dict(work_modes)

    @classmethod
    def from_tou_list(cls, tou: TouList) -> "ModeTable":
        ids = {}
        work_modes = {}
        for entry in tou.entries:
            name = WORK_MODES.get(entry.work_mode)
            if name is None:
                log.debug(f"Ignoring schedule entry {entry.id} with unknown work mode {entry.work_mode}")
                continue
            if name in ids:
                raise DecodeError(f"Mode '{name}' has more than one schedule entry ({ids[name]}, {entry.id})")
            ids[name] = entry.id
            work_modes[name] = entry.work_mode
        log.debug(f"Learned mode table: {ids}")
        return cls(ids, work_modes)

    def __contains__(self, name):
        return name in self._ids

    def __len__(self):
        return len(self._ids)

    def names(self) -> List[str]:
        return list(self._ids)

    def resolve_mode(self, identifier: int) -> Union[str, int]:
        # Unknown identifiers are passed through, the relay may add modes
        return self._names.get(identifier, identifier)

    def resolve_mode_id(self, name: str) -> int:
        if name not in self._ids:
            raise UnknownMode(name)
        return self._ids[name]

    def work_mode(self, name: str) -> int:
        if name not in self._work_modes:
            raise UnknownMode(name)
        return self._work_modes[name]
