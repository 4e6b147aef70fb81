import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple, Union

from config import Config
from errors import SinkSendError
from inputs.parse import MeasurementRecord

logger = logging.getLogger(__name__)

Metric = Union[int, float]


def format_float(value: float) -> str:
    s = repr(value)
    if s.endswith(".0"):
        s = s[:-2]
    return s


@dataclass
class MetricEvent:
    service: str
    host: str
    metric: Metric
    ttl: float
    attributes: Dict[str, str]
    state: str = "ok"

    def to_riemann(self) -> Dict[str, Any]:
        """Keyword arguments for `riemann_client.client.Client.event`."""
        data = {
            "state": self.state,
            "host": self.host,
            "service": self.service,
            "ttl": self.ttl,
            "attributes": dict(self.attributes),
        }
        if isinstance(self.metric, int):
            data["metric_sint64"] = self.metric
        else:
            data["metric_d"] = self.metric
        return data


class EventSink(Protocol):
    def send(self, event: MetricEvent) -> None:
        ...


def build_attributes(record: MeasurementRecord) -> Dict[str, str]:
    return {
        "serial_number": record.serial_number,
        "seconds": str(record.seconds),
        "volts": format_float(record.volts),
    }


def events_from_record(record: MeasurementRecord, host: str, ttl: float) -> List[MetricEvent]:
    attributes = build_attributes(record)
    events = []

    def add(service: str, metric: Metric):
        events.append(MetricEvent(service=service, host=host, metric=metric, ttl=ttl, attributes=attributes))

    for i, watt_seconds in enumerate(record.watt_seconds):
        add(f"ch{i + 1:02}", watt_seconds)
    for i, temperature in enumerate(record.temperatures):
        add(f"temp{i + 1:02}", temperature)
    for i, pulses in enumerate(record.pulses):
        add(f"pulse{i + 1:02}", pulses)

    return events


class Dispatcher:
    def __init__(self, config: Config, sink: EventSink):
        self.host = config.event_host
        self.ttl = config.ttl
        self.sink = sink

    def dispatch(self, record: MeasurementRecord) -> Tuple[Optional[MetricEvent], Optional[SinkSendError]]:
        """
        Send one event per channel, in order, one call each.

        Stops at the first failed send and returns that event with its error, the remaining events are dropped.
        Returns `(None, None)` if all events were accepted.
        """
        events = events_from_record(record, self.host, self.ttl)

        for event in events:
            try:
                self.sink.send(event)
            except SinkSendError as e:
                return event, e

        logger.debug(f"Sent {len(events)} events for serial number {record.serial_number}")
        return None, None
