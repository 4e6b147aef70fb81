import io
import json

import pytest

from config import Config
from conftest import build_line
from errors import SinkSendError, TransportError
from outputs.json_sink import JsonSink
from outputs.riemann_sink import Dispatcher
from pipeline import Pipeline


class RecordingSink:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send(self, event):
        if self.fail:
            raise SinkSendError("riemann unreachable")
        self.sent.append(event)


class BrokenStream:
    def readline(self):
        raise OSError("device disconnected")


def make_pipeline(sink=None, raw_log=None):
    config = Config()
    out = io.StringIO()
    dispatcher = Dispatcher(config, sink) if sink is not None else None
    return Pipeline(config, JsonSink(out), dispatcher, raw_log), out


def test_non_request_lines_are_ignored():
    sink = RecordingSink()
    pipeline, out = make_pipeline(sink)

    pipeline.process_line("Host: 10.0.0.2\r\n")
    pipeline.process_line("\n")

    assert out.getvalue() == ""
    assert sink.sent == []
    assert pipeline.stats.skipped == 0


def test_valid_line_is_emitted_and_dispatched(valid_line):
    sink = RecordingSink()
    pipeline, out = make_pipeline(sink)

    pipeline.process_line(valid_line + "\r\n")

    assert json.loads(out.getvalue())["serial_number"] == "01000123"
    assert len(sink.sent) == 60
    assert pipeline.stats.records == 1


def test_missing_serial_number_skips_line():
    sink = RecordingSink()
    pipeline, out = make_pipeline(sink)

    pipeline.process_line(build_line(SN=""))

    assert out.getvalue() == ""
    assert sink.sent == []
    assert pipeline.stats.skipped == 1


def test_dispatch_failure_keeps_json_and_continues(valid_line, caplog):
    pipeline, out = make_pipeline(RecordingSink(fail=True))

    pipeline.process_line(valid_line)
    pipeline.process_line(valid_line)

    assert len(out.getvalue().splitlines()) == 2
    assert pipeline.stats.dispatch_failures == 2
    assert "ch01" in caplog.text


def test_run_until_end_of_stream(valid_line):
    sink = RecordingSink()
    raw_log = io.StringIO()
    pipeline, out = make_pipeline(sink, raw_log)
    stream = io.BytesIO(
        b"HTTP/1.1 200 OK\n"
        + b"GET relative?SN=1 HTTP/1.1\n"
        + b"\xff\xfe\n"
        + valid_line.encode() + b"\n"
    )

    stats = pipeline.run(stream)

    assert stats.lines == 4
    assert stats.records == 1
    assert stats.skipped == 2
    assert len(out.getvalue().splitlines()) == 1
    assert len(sink.sent) == 60
    assert raw_log.getvalue().startswith("HTTP/1.1 200 OK\n")


def test_run_without_dispatcher(valid_line):
    pipeline, out = make_pipeline()
    pipeline.run(io.BytesIO(valid_line.encode() + b"\n"))

    assert len(out.getvalue().splitlines()) == 1


def test_transport_failure_is_fatal():
    pipeline, _ = make_pipeline(RecordingSink())
    with pytest.raises(TransportError):
        pipeline.run(BrokenStream())
