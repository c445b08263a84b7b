"""
 Typed records for FranklinWH relay responses

 Each record is built with from_dict() at the HTTP boundary. Missing or
 ill-typed fields raise DecodeError instead of flowing on as None.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Union

from pyfranklinwh.exceptions import DecodeError

log = logging.getLogger(__name__)

_MISSING = object()


def require(data: Any, key: str, types: Union[type, Tuple[type, ...]], optional: bool = False) -> Any:
    """
    Return data[key] if present and of the given type(s).
        optional - allow the key to be absent or null (returns None)
    """
    if not isinstance(data, dict):
        raise DecodeError(f"Expected object, got {type(data).__name__}")
    value = data.get(key, _MISSING)
    if value is _MISSING or value is None:
        if optional:
            return None
        raise DecodeError(f"Missing field '{key}'")
    # bool is an int subclass - only accept it where asked for
    if isinstance(value, bool) and bool not in (types if isinstance(types, tuple) else (types,)):
        raise DecodeError(f"Field '{key}' has unexpected type bool")
    if not isinstance(value, types):
        raise DecodeError(f"Field '{key}' has unexpected type {type(value).__name__}")
    return value


@dataclass(frozen=True)
class ApiResponse:
    """Envelope returned by the simple relay endpoints"""
    success: bool
    result: Any = None
    message: Optional[str] = None
    code: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> "ApiResponse":
        return cls(
            success=require(data, 'success', bool),
            result=data.get('result'),
            message=require(data, 'message', str, optional=True),
            code=require(data, 'code', int, optional=True),
        )


@dataclass(frozen=True)
class CommandResponse:
    """Response of the terminal/sendMqtt command endpoint"""
    code: int
    message: Optional[str] = None
    data_area: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "CommandResponse":
        code = require(data, 'code', int)
        message = require(data, 'message', str, optional=True)
        result = require(data, 'result', dict, optional=True)
        data_area = None
        if result is not None:
            data_area = require(result, 'dataArea', str, optional=True)
        return cls(code=code, message=message, data_area=data_area)

    def payload(self) -> dict:
        """Parse the serialized dataArea into a dictionary"""
        if self.data_area is None:
            raise DecodeError("Response is missing result.dataArea")
        try:
            payload = json.loads(self.data_area)
        except ValueError as exc:
            raise DecodeError(f"Unable to parse dataArea: {exc}") from exc
        if not isinstance(payload, dict):
            raise DecodeError(f"dataArea is not an object: {type(payload).__name__}")
        return payload


@dataclass(frozen=True)
class TouEntry:
    """Time-of-use schedule entry configured on the gateway"""
    id: int
    work_mode: int
    soc: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> "TouEntry":
        soc = require(data, 'soc', (int, float), optional=True)
        return cls(
            id=require(data, 'id', int),
            work_mode=require(data, 'workMode', int),
            soc=int(soc) if soc is not None else None,
        )


@dataclass(frozen=True)
class TouList:
    entries: List[TouEntry]
    current_id: int

    @classmethod
    def from_dict(cls, data: Any) -> "TouList":
        # currendId is the relay's spelling
        return cls(
            entries=[TouEntry.from_dict(e) for e in require(data, 'list', list)],
            current_id=require(data, 'currendId', int),
        )

    def current(self) -> TouEntry:
        for entry in self.entries:
            if entry.id == self.current_id:
                return entry
        raise DecodeError(f"Active schedule entry {self.current_id} not in schedule list")


# Raw telemetry key for each TelemetrySnapshot field
TELEMETRY_FIELDS = {
    'solar_in': 'p_sun',
    'generator_in': 'p_gen',
    'load_out': 'p_load',
    'grid_out': 'p_uti',
    'battery_out': 'p_fhp',
    'charge_percentage': 'soc',
    'solar_in_kwh': 'kwh_sun',
    'generator_in_kwh': 'kwh_gen',
    'load_out_kwh': 'kwh_load',
    'grid_in_kwh': 'kwh_uti_in',
    'grid_out_kwh': 'kwh_uti_out',
    'battery_in_kwh': 'kwh_fhp_chg',
    'battery_out_kwh': 'kwh_fhp_di',
}


@dataclass(frozen=True)
class TelemetrySnapshot:
    solar_in: float
    generator_in: float
    load_out: float
    grid_out: float
    battery_out: float
    charge_percentage: float
    solar_in_kwh: float
    generator_in_kwh: float
    load_out_kwh: float
    grid_in_kwh: float
    grid_out_kwh: float
    battery_in_kwh: float
    battery_out_kwh: float

    def as_dict(self) -> dict:
        return {name: getattr(self, name) for name in TELEMETRY_FIELDS}


@dataclass
class SwitchState:
    id: str
    state: bool
    name: Optional[str] = field(default=None, compare=False)
