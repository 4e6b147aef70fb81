import io
import json
from datetime import datetime, timezone

from conftest import build_line
from inputs.parse import decode, parse_request_line
from outputs.json_sink import JsonSink, record_to_json

EXPECTED_KEYS = (
        ["timestamp", "seconds", "serial_number", "volts"]
        + [f"ch{i:02}" for i in range(1, 49)]
        + [f"temp{i:02}" for i in range(1, 9)]
        + [f"pulse{i:02}" for i in range(1, 5)]
)


def decode_line(line):
    return decode(parse_request_line(line))


def test_record_to_json_keys_are_flat_and_complete():
    record = decode_line(build_line())
    result = record_to_json(record, datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc))

    assert list(result.keys()) == EXPECTED_KEYS
    assert result["timestamp"] == "2024-01-02T03:04:05+00:00"
    assert all(not isinstance(value, (dict, list)) for value in result.values())


def test_emit_writes_one_line():
    out = io.StringIO()
    JsonSink(out).emit(decode_line(build_line()))

    text = out.getvalue()
    assert text.endswith("\n")
    assert text.count("\n") == 1


def test_emit_round_trip():
    record = decode_line(build_line(SC="987654", V="2311"))
    out = io.StringIO()
    JsonSink(out).emit(record)

    parsed = json.loads(out.getvalue())
    assert set(parsed.keys()) == set(EXPECTED_KEYS)
    assert parsed["seconds"] == record.seconds
    assert parsed["serial_number"] == record.serial_number
    assert parsed["volts"] == record.volts
    assert [parsed[f"ch{i:02}"] for i in range(1, 49)] == list(record.watt_seconds)
    assert [parsed[f"temp{i:02}"] for i in range(1, 9)] == list(record.temperatures)
    assert [parsed[f"pulse{i:02}"] for i in range(1, 5)] == list(record.pulses)
    datetime.fromisoformat(parsed["timestamp"])
