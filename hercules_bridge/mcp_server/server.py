from __future__ import annotations

from typing import Any

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from hercules_bridge.core.client import HerculesClient
from hercules_bridge.core.logger import get_logger
from hercules_bridge.mcp_server.handlers import ToolHandlers
from hercules_bridge.schemas.tool_specs import TOOL_DEFINITIONS

logger = get_logger(__name__)

SERVER_NAME = "hercules-mcp-server"


def build_server(handlers: ToolHandlers) -> Server:
    server: Server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [
            types.Tool(name=spec["name"], description=spec["description"], inputSchema=spec["inputSchema"])
            for spec in TOOL_DEFINITIONS
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        # Raised errors become isError results in the SDK.
        text = await handlers.call(name, arguments)
        return [types.TextContent(type="text", text=text)]

    @server.list_resources()
    async def list_resources() -> list[types.Resource]:
        return [
            types.Resource(
                uri=item["uri"],
                name=item["name"],
                description=item["description"],
                mimeType=item["mimeType"],
            )
            for item in await handlers.list_resources()
        ]

    @server.read_resource()
    async def read_resource(uri: Any) -> str:
        return await handlers.read_resource(str(uri))

    return server


async def serve_stdio(client: HerculesClient) -> None:
    server = build_server(ToolHandlers(client))
    logger.info("mcp.startup", server=SERVER_NAME, test_cases_dir=str(client.store.root))
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
    logger.info("mcp.shutdown", server=SERVER_NAME)
