"""
MCP server entry point.

Wires the search tool and the exchanges resource into an MCP ``Server``
and runs it over stdio.

Tool arguments reach the tool unchecked by the SDK; the validators in
``finnhub_mcp.validators`` are the only gate. An MCP ``notifications/cancelled``
for a running request cancels the handler task, so it surfaces as
``asyncio.CancelledError`` rather than an OperationError block. Embedders
that own a cancel signal pass an ``asyncio.Event`` to ``call_tool``.

Run with: finnhub-mcp  (or python -m finnhub_mcp.server)
"""

import asyncio
from typing import Any, Dict, List, Optional

import structlog
from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, Resource, Tool

from .config import FinnHubSettings, get_settings
from .infrastructure.finnhub_client import FinnHubSearchApiClient
from .logging_config import setup_logging
from .resources import exchanges
from .services.search_service import SearchService
from .tools.search_symbol import SearchSymbolTool

logger = structlog.get_logger(__name__)


class FinnHubMcpApplication:
    """
    Owns the API client and routes MCP requests to tools and resources.

    The client is created once and closed once, on shutdown.
    """

    def __init__(
        self,
        settings: FinnHubSettings,
        search_api_client: Optional[FinnHubSearchApiClient] = None,
    ):
        if settings is None:
            raise ValueError("FinnHub settings cannot be None")
        self.settings = settings
        self.search_api_client = search_api_client or FinnHubSearchApiClient(settings)
        search_tool = SearchSymbolTool(SearchService(self.search_api_client))
        self.tools: Dict[str, SearchSymbolTool] = {search_tool.name: search_tool}

    async def list_tools(self) -> List[Tool]:
        return [tool.protocol_tool for tool in self.tools.values()]

    async def call_tool(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> CallToolResult:
        tool = self.tools.get(name)
        if tool is None:
            raise ValueError(f"Tool not found: {name}")
        return await tool.invoke(arguments or {}, cancel_event)

    async def list_resources(self) -> List[Resource]:
        return [exchanges.protocol_resource()]

    async def read_resource(self, uri: Any) -> List[ReadResourceContents]:
        if str(uri) != exchanges.EXCHANGES_RESOURCE_URI:
            raise ValueError(f"Resource not found: {uri}")
        return [
            ReadResourceContents(
                content=exchanges.read_exchanges(),
                mime_type=exchanges.EXCHANGES_MIME_TYPE,
            )
        ]

    def build_server(self) -> Server:
        """Register the handlers on a new MCP server."""
        server = Server(self.settings.SERVER_NAME)
        server.list_tools()(self.list_tools)
        server.call_tool(validate_input=False)(self.call_tool)
        server.list_resources()(self.list_resources)
        server.read_resource()(self.read_resource)
        return server

    async def aclose(self) -> None:
        await self.search_api_client.aclose()


async def main() -> None:
    """Run the MCP server over stdio until the client disconnects."""
    settings = get_settings()
    setup_logging(
        log_level=settings.LOG_LEVEL,
        service_name=settings.SERVER_NAME,
        use_json=settings.LOG_JSON,
    )

    application = FinnHubMcpApplication(settings)
    server = application.build_server()
    logger.info("Starting MCP server", server=settings.SERVER_NAME, base_url=settings.BASE_URL)

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    finally:
        await application.aclose()
        logger.info("MCP server stopped", server=settings.SERVER_NAME)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
