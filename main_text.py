import argparse
import logging
import sys
import time
from typing import List, Optional

from config import Config, add_riemann_arguments, configure_logging
from errors import TransportError
from outputs.json_sink import JsonSink
from outputs.riemann_sink import Dispatcher
from pipeline import Pipeline, PipelineStats

logger = logging.getLogger(__name__)


def replay(config: Config, path: str, use_riemann: bool) -> PipelineStats:
    sink = None
    dispatcher = None
    if use_riemann:
        from outputs.riemann_client_sink import RiemannSink

        try:
            sink = RiemannSink.connect(config)
        except OSError as e:
            raise TransportError(
                f"could not connect to riemann at {config.riemann_host}:{config.riemann_port}: {e}"
            ) from e
        dispatcher = Dispatcher(config, sink)

    try:
        pipeline = Pipeline(config, JsonSink(), dispatcher)
        with open(path, "rb") as f:
            return pipeline.run(f)
    finally:
        if sink is not None:
            sink.close()


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(prog="gem-logger-replay")
    parser.add_argument("path_log")
    parser.add_argument("--riemann", action="store_true", help="also send the events to riemann")
    add_riemann_arguments(parser)
    args = parser.parse_args(argv)

    config = Config(
        riemann_protocol=args.riemann_protocol,
        riemann_host=args.riemann_host,
        riemann_port=args.riemann_port,
        riemann_timeout=args.riemann_timeout,
        ttl=args.ttl,
        event_host=args.event_host,
        verbose=args.verbose,
    )
    configure_logging(config.verbose)

    start = time.perf_counter()
    try:
        stats = replay(config, args.path_log, args.riemann)
    except (OSError, TransportError) as e:
        logger.error(f"Replay of {args.path_log} failed: {e}")
        sys.exit(1)
    delta = time.perf_counter() - start

    logger.info(f"Total lines: {stats.lines}")
    logger.info(f"Records: {stats.records}")
    logger.info(f"Skipped: {stats.skipped}")
    logger.info(f"Dispatch failures: {stats.dispatch_failures}")
    logger.info(f"Time: {delta:.2f}s")


if __name__ == '__main__':
    main()
