import logging
from dataclasses import dataclass
from typing import BinaryIO, Optional, TextIO

from config import Config
from errors import MissingFieldError, TransportError, URIError
from inputs.parse import decode, parse_request_line
from outputs.json_sink import JsonSink
from outputs.riemann_sink import Dispatcher

logger = logging.getLogger(__name__)


@dataclass
class PipelineStats:
    lines: int = 0
    records: int = 0
    skipped: int = 0
    dispatch_failures: int = 0


class Pipeline:
    def __init__(
            self, config: Config, json_sink: JsonSink,
            dispatcher: Optional[Dispatcher] = None, raw_log: Optional[TextIO] = None,
    ):
        self.marker = config.request_marker
        self.json_sink = json_sink
        self.dispatcher = dispatcher
        self.raw_log = raw_log
        self.stats = PipelineStats()

    def process_line(self, line: str):
        self.stats.lines += 1

        if self.raw_log is not None:
            self.raw_log.write(line if line.endswith("\n") else line + "\n")

        try:
            payload = parse_request_line(line.rstrip("\r\n"), self.marker)
        except URIError as e:
            logger.warning(f"Skipping line: {e}")
            self.stats.skipped += 1
            return

        if payload is None:
            return

        try:
            record = decode(payload)
        except MissingFieldError as e:
            logger.warning(f"Skipping record: {e}")
            self.stats.skipped += 1
            return

        self.stats.records += 1

        try:
            self.json_sink.emit(record)
        except OSError as e:
            logger.error(f"Failed to write JSON record: {e}")

        if self.dispatcher is not None:
            event, error = self.dispatcher.dispatch(record)
            if error is not None:
                self.stats.dispatch_failures += 1
                logger.error(f"Failed to send event ({event}) to riemann: {error}")

    def run(self, stream: BinaryIO):
        """
        Process lines from `stream` until it is exhausted.

        Read failures are raised as `TransportError`, everything else is handled per line.
        """
        while True:
            try:
                line = stream.readline()
            except OSError as e:
                raise TransportError(f"failed to read from transport: {e}") from e

            if len(line) == 0:
                logger.info("Transport stream ended")
                break

            try:
                line_str = line.decode()
            except UnicodeDecodeError:
                logger.warning("Unicode decode error, skipping line")
                self.stats.lines += 1
                self.stats.skipped += 1
                continue

            self.process_line(line_str)

        return self.stats
