import sys
from datetime import datetime
from typing import Any, Dict, Optional, TextIO

import simplejson

from inputs.parse import MeasurementRecord


def record_to_json(record: MeasurementRecord, timestamp: datetime) -> Dict[str, Any]:
    result = {
        "timestamp": timestamp.isoformat(timespec="seconds"),
        "seconds": record.seconds,
        "serial_number": record.serial_number,
        "volts": record.volts,
    }

    for i, watt_seconds in enumerate(record.watt_seconds):
        result[f"ch{i + 1:02}"] = watt_seconds
    for i, temperature in enumerate(record.temperatures):
        result[f"temp{i + 1:02}"] = temperature
    for i, pulses in enumerate(record.pulses):
        result[f"pulse{i + 1:02}"] = pulses

    return result


class JsonSink:
    def __init__(self, out: Optional[TextIO] = None):
        self.out = out if out is not None else sys.stdout

    def emit(self, record: MeasurementRecord, timestamp: Optional[datetime] = None):
        if timestamp is None:
            timestamp = datetime.now().astimezone()

        line = simplejson.dumps(record_to_json(record, timestamp), ignore_nan=True)
        self.out.write(line + "\n")
        self.out.flush()
