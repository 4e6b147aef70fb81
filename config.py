import argparse
import logging
import sys
from dataclasses import dataclass
from typing import List, Optional

DEFAULT_SERIAL_PORT = "/dev/ttyUSB0"
DEFAULT_SERIAL_BAUD = 19200
DEFAULT_RIEMANN_PROTOCOL = "tcp"
DEFAULT_RIEMANN_HOST = "riemann"
DEFAULT_RIEMANN_PORT = 5555
# the device reports every 10 seconds, the extra 5s covers network and processing delays
DEFAULT_EVENT_TTL = 15.0
# no limit by default, a hung riemann stalls the pipeline
DEFAULT_RIEMANN_TIMEOUT = None
DEFAULT_EVENT_HOST = "main electrical panel"
DEFAULT_REQUEST_MARKER = "GET"

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class Config:
    serial_port: str = DEFAULT_SERIAL_PORT
    serial_baud: int = DEFAULT_SERIAL_BAUD
    riemann_protocol: str = DEFAULT_RIEMANN_PROTOCOL
    riemann_host: str = DEFAULT_RIEMANN_HOST
    riemann_port: int = DEFAULT_RIEMANN_PORT
    riemann_timeout: Optional[float] = DEFAULT_RIEMANN_TIMEOUT
    ttl: float = DEFAULT_EVENT_TTL
    event_host: str = DEFAULT_EVENT_HOST
    request_marker: str = DEFAULT_REQUEST_MARKER
    raw_log_path: Optional[str] = None
    verbose: bool = False


def add_riemann_arguments(parser: argparse.ArgumentParser):
    parser.add_argument("--riemann-protocol", choices=["tcp", "udp"], default=DEFAULT_RIEMANN_PROTOCOL)
    parser.add_argument("--riemann-host", default=DEFAULT_RIEMANN_HOST)
    parser.add_argument("--riemann-port", type=int, default=DEFAULT_RIEMANN_PORT)
    parser.add_argument("--riemann-timeout", type=float, default=DEFAULT_RIEMANN_TIMEOUT,
                        help="socket timeout in seconds for riemann sends")
    parser.add_argument("--ttl", type=float, default=DEFAULT_EVENT_TTL,
                        help="time-to-live in seconds attached to every event")
    parser.add_argument("--host", dest="event_host", default=DEFAULT_EVENT_HOST,
                        help="host label attached to every event")
    parser.add_argument("--verbose", action="store_true")


def parse_args(argv: Optional[List[str]] = None) -> Config:
    parser = argparse.ArgumentParser(prog="gem-logger")
    parser.add_argument("--serial-port", default=DEFAULT_SERIAL_PORT)
    parser.add_argument("--serial-baud", type=int, default=DEFAULT_SERIAL_BAUD)
    parser.add_argument("--log", dest="raw_log_path", default=None,
                        help="append every line read from the serial port to this file")
    add_riemann_arguments(parser)
    args = parser.parse_args(argv)

    return Config(
        serial_port=args.serial_port,
        serial_baud=args.serial_baud,
        riemann_protocol=args.riemann_protocol,
        riemann_host=args.riemann_host,
        riemann_port=args.riemann_port,
        riemann_timeout=args.riemann_timeout,
        ttl=args.ttl,
        event_host=args.event_host,
        raw_log_path=args.raw_log_path,
        verbose=args.verbose,
    )


def configure_logging(verbose: bool = False):
    # stdout carries the JSON records, so logs go to stderr
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stderr,
    )
