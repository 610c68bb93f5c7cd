from __future__ import annotations
import argparse
import asyncio
import dataclasses
import logging
import sys
from typing import List, Optional

from flow_forwarder.config import ForwarderConfig, load_config
from flow_forwarder.core.loop import IngestionStats
from flow_forwarder.errors import ConfigError, SourceUnavailableError
from flow_forwarder.runner import build_sink, forward
from flow_forwarder.sources import open_source

logger = logging.getLogger("flow_forwarder")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

EXIT_OK = 0
EXIT_INPUT_UNAVAILABLE = 1
EXIT_BAD_CONFIG = 2


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="flow-forwarder",
        description="Forward goflow2 JSON flow records into InfluxDB.",
    )
    p.add_argument("--input", help="input file, '-' for stdin (overrides GOFLOW2_INPUT_FILE)")
    p.add_argument("--log-level", help="logging level (overrides LOG_LEVEL)")
    return p.parse_args(argv)


async def _run(config: ForwarderConfig) -> IngestionStats:
    source = open_source(config.input_file)
    sink = build_sink(config)
    try:
        return await forward(config, source, sink)
    finally:
        await sink.close()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Read settings from the environment (and .env), then forward flows.

    Example:
      export INFLUXDB_URL=http://localhost:8086
      export INFLUXDB_TOKEN=...
      export INFLUXDB_ORG=netops
      export INFLUXDB_BUCKET=flows
      goflow2 -format=json | python -m flow_forwarder.cli.run_forwarder

    Exit codes:
      0  stream ended, batch failures included
      1  input could not be opened
      2  configuration missing or invalid
    """
    args = _parse_args(argv)

    try:
        config = load_config()
    except ConfigError as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.error("%s", e)
        return EXIT_BAD_CONFIG

    overrides = {}
    if args.input:
        overrides["input_file"] = args.input
    if args.log_level:
        level = args.log_level.upper()
        if not isinstance(logging.getLevelName(level), int):
            logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
            logger.error("--log-level %r is not a logging level", args.log_level)
            return EXIT_BAD_CONFIG
        overrides["log_level"] = level
    config = dataclasses.replace(config, **overrides)

    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)
    logger.info("Starting flow forwarder with config: %s", config.redacted())

    try:
        stats = asyncio.run(_run(config))
    except SourceUnavailableError as e:
        logger.error("%s", e)
        return EXIT_INPUT_UNAVAILABLE

    logger.info("Final counters: %s", stats.to_dict())
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
