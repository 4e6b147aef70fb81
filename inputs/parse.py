import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple, TypeVar
from urllib.parse import parse_qs, urlsplit

from errors import ArityError, DecodeError, MissingFieldError, ParseError, URIError

logger = logging.getLogger(__name__)

KEY_SECONDS = "SC"
KEY_SERIAL_NUMBER = "SN"
KEY_VOLTS = "V"
KEY_TEMPERATURES = "T"
KEY_PULSES = "PL"

WATT_SECOND_CHANNELS = 48
TEMPERATURE_CHANNELS = 8
PULSE_CHANNELS = 4

# plain ASCII numbers only, no whitespace, underscores or other unicode digits
PATTERN_INT = re.compile(r"[+-]?[0-9]+")
PATTERN_FLOAT = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

RawPayload = Dict[str, List[str]]

T = TypeVar("T")


def _get(payload: RawPayload, key: str) -> str:
    values = payload.get(key)
    if not values:
        return ""
    return values[0]


def _parse_int(key: str, s: str) -> int:
    if not PATTERN_INT.fullmatch(s):
        raise ParseError(key, s)
    return int(s)


def _parse_float(key: str, s: str) -> float:
    if not PATTERN_FLOAT.fullmatch(s):
        raise ParseError(key, s)
    return float(s)


def seconds_counter(payload: RawPayload) -> int:
    return _parse_int(KEY_SECONDS, _get(payload, KEY_SECONDS))


def serial_number(payload: RawPayload) -> str:
    serial_no = _get(payload, KEY_SERIAL_NUMBER)
    if len(serial_no) < 1:
        raise MissingFieldError(KEY_SERIAL_NUMBER)
    return serial_no


def volts(payload: RawPayload) -> float:
    # the device sends volts * 10
    return _parse_float(KEY_VOLTS, _get(payload, KEY_VOLTS)) / 10


def watt_second_count(payload: RawPayload, channel: int) -> int:
    key = f"c{channel}"
    return _parse_int(key, _get(payload, key))


def _csv_values(payload: RawPayload, key: str, count: int, convert: Callable[[str, str], T]) -> List[T]:
    # at most `count` fields, any further commas stay in the last one
    parts = _get(payload, key).split(",", count - 1)
    if len(parts) < count:
        raise ArityError(key, count, len(parts))

    values = []
    for part in parts:
        values.append(convert(key, part))
    return values


def csv_floats(payload: RawPayload, key: str, count: int) -> List[float]:
    return _csv_values(payload, key, count, _parse_float)


def csv_ints(payload: RawPayload, key: str, count: int) -> List[int]:
    return _csv_values(payload, key, count, _parse_int)


@dataclass(frozen=True)
class MeasurementRecord:
    seconds: int
    serial_number: str
    volts: float
    watt_seconds: Tuple[int, ...]
    temperatures: Tuple[float, ...]
    pulses: Tuple[int, ...]
    field_errors: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}), compare=False)

    @property
    def is_clean(self) -> bool:
        return len(self.field_errors) == 0


def decode(payload: RawPayload) -> MeasurementRecord:
    """
    Decode one payload into a record.

    A field that fails to parse is logged, recorded in `field_errors` and takes its zero value,
    so one corrupted channel does not discard the rest of the line.
    Only a missing serial number raises, as `MissingFieldError`.
    """
    field_errors: Dict[str, str] = {}

    def capture(name: str, extract: Callable[[], T], default: T) -> T:
        try:
            return extract()
        except DecodeError as e:
            logger.warning(f"Failed to decode field '{name}': {e}")
            field_errors[name] = str(e)
            return default

    seconds = capture("seconds", lambda: seconds_counter(payload), 0)
    serial_no = serial_number(payload)
    volts_value = capture("volts", lambda: volts(payload), 0.0)

    watt_seconds = []
    for channel in range(1, WATT_SECOND_CHANNELS + 1):
        watt_seconds.append(capture(f"ch{channel:02}", lambda: watt_second_count(payload, channel), 0))

    temperatures = capture(
        "temperatures",
        lambda: csv_floats(payload, KEY_TEMPERATURES, TEMPERATURE_CHANNELS),
        [0.0] * TEMPERATURE_CHANNELS,
    )
    pulses = capture(
        "pulses",
        lambda: csv_ints(payload, KEY_PULSES, PULSE_CHANNELS),
        [0] * PULSE_CHANNELS,
    )

    return MeasurementRecord(
        seconds=seconds,
        serial_number=serial_no,
        volts=volts_value,
        watt_seconds=tuple(watt_seconds),
        temperatures=tuple(temperatures),
        pulses=tuple(pulses),
        field_errors=MappingProxyType(field_errors),
    )


def parse_request_line(line: str, marker: str = "GET") -> Optional[RawPayload]:
    """
    Extract the query payload from a request line such as `GET /?SN=1234&SC=55&... HTTP/1.1`.

    Returns `None` for lines that do not start with the marker, those are ordinary device chatter.
    """
    if not line.startswith(marker + " "):
        return None

    tokens = line.split()
    if len(tokens) < 2:
        raise URIError("", "missing request URI")
    uri = tokens[1]

    try:
        parts = urlsplit(uri)
    except ValueError as e:
        raise URIError(uri, str(e)) from None

    if not (uri.startswith("/") or parts.scheme):
        raise URIError(uri, "not an absolute path or absolute URI")

    return parse_qs(parts.query, keep_blank_values=True)
