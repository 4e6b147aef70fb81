import contextlib
import logging
import sys
from typing import List, Optional

import serial

from config import Config, configure_logging, parse_args
from errors import TransportError
from outputs.json_sink import JsonSink
from outputs.riemann_client_sink import RiemannSink
from outputs.riemann_sink import Dispatcher
from pipeline import Pipeline

logger = logging.getLogger(__name__)


def open_serial_port(config: Config) -> serial.Serial:
    return serial.Serial(
        port=config.serial_port,
        baudrate=config.serial_baud,
        parity=serial.PARITY_NONE,
        stopbits=serial.STOPBITS_ONE,
        bytesize=serial.EIGHTBITS,
        timeout=None,
    )


def run(config: Config) -> int:
    try:
        port = open_serial_port(config)
    except serial.SerialException as e:
        logger.error(f"Could not connect to serial port {config.serial_port}: {e}")
        return 1
    logger.info(f"Opened serial port {config.serial_port} at {config.serial_baud} baud")

    try:
        sink = RiemannSink.connect(config)
    except OSError as e:
        logger.error(f"Could not connect to riemann at {config.riemann_host}:{config.riemann_port}: {e}")
        port.close()
        return 1

    with contextlib.ExitStack() as stack:
        stack.callback(port.close)
        stack.callback(sink.close)

        raw_log = None
        if config.raw_log_path is not None:
            raw_log = stack.enter_context(open(config.raw_log_path, "a"))

        pipeline = Pipeline(config, JsonSink(), Dispatcher(config, sink), raw_log)
        try:
            pipeline.run(port)
        except TransportError as e:
            logger.error(str(e))
            return 1

    return 0


def main(argv: Optional[List[str]] = None):
    config = parse_args(argv)
    configure_logging(config.verbose)
    sys.exit(run(config))


if __name__ == '__main__':
    main()
