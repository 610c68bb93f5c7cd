from __future__ import annotations
import logging
import sys

from flow_forwarder.config import load_config
from flow_forwarder.errors import ConfigError
from flow_forwarder.server import ForwarderMCPServer


def main() -> None:
    """
    Start the MCP server with the same environment settings as the forwarder.

    Example:
      export INFLUXDB_URL=http://localhost:8086
      export INFLUXDB_TOKEN=...
      export INFLUXDB_ORG=netops
      export INFLUXDB_BUCKET=flows
      python -m flow_forwarder.cli.run_server

    GOFLOW2_INPUT_FILE is ignored here, files are named per forward_file call.
    """
    try:
        config = load_config()
    except ConfigError as e:
        # stdout belongs to the MCP stdio transport
        print(str(e), file=sys.stderr)
        sys.exit(2)

    logging.basicConfig(level=config.log_level, stream=sys.stderr)

    server = ForwarderMCPServer(config=config)
    server.run()


if __name__ == "__main__":
    main()
