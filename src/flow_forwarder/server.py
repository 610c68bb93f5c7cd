from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Optional

from mcp.server.fastmcp import FastMCP

from .config import ForwarderConfig
from .core.scope import in_scope
from .errors import SourceUnavailableError
from .runner import build_sink, forward
from .sinks.base import Sink
from .sources.file_source import FileLineSource

logger = logging.getLogger(__name__)


class ForwarderMCPServer:
    """
    MCP server exposing the forwarder to an operator or agent.

    Responsibilities:
      Report the effective configuration, token redacted
      Answer scope questions for single addresses
      Run one ingestion pass over a file on request
      Remember the counters of the last pass

    Passes run one at a time inside the tool call, the same single writer
    rule as the command line forwarder.
    """

    def __init__(self, config: ForwarderConfig, sink_factory: Optional[Callable[[], Sink]] = None):
        self.config = config
        self._sink_factory = sink_factory or (lambda: build_sink(config))
        self._last_run: Optional[Dict[str, Any]] = None
        self.mcp = FastMCP("flow_forwarder")

        self._register_tools()

    def check_scope(self, address: str) -> Dict[str, Any]:
        return {
            "address": address,
            "in_scope": in_scope(address, self.config.scope_networks),
            "networks": [str(n) for n in self.config.scope_networks],
        }

    async def forward_file(self, path: str) -> Dict[str, Any]:
        try:
            source = FileLineSource(path).open()
        except SourceUnavailableError as e:
            logger.error("%s", e)
            return {"ok": False, "path": path, "error": str(e)}

        sink = self._sink_factory()
        try:
            stats = await forward(self.config, source, sink)
        finally:
            await sink.close()

        self._last_run = {"ok": True, "path": path, **stats.to_dict()}
        return self._last_run

    def last_run(self) -> Optional[Dict[str, Any]]:
        return self._last_run

    def _register_tools(self) -> None:
        @self.mcp.tool()
        def forwarder_config() -> Dict[str, Any]:
            return self.config.redacted()

        @self.mcp.tool()
        def check_scope(address: str) -> Dict[str, Any]:
            return self.check_scope(address)

        @self.mcp.tool()
        async def forward_file(path: str) -> Dict[str, Any]:
            return await self.forward_file(path)

        @self.mcp.tool()
        def last_run() -> Optional[Dict[str, Any]]:
            return self.last_run()

    def run(self) -> None:
        self.mcp.run()
