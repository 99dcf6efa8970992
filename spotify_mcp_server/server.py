"""MCP protocol server for one Spotify session.

Every session gets its own low-level `mcp` Server. The Spotify tools are
registered on it with `list_tools`/`call_tool`, and the token a call runs
with is fetched from the session registry at call time, so a token swapped
in mid-session applies to the next call.
"""
from typing import Any, Awaitable, Callable
import logging

from mcp.server.lowlevel import Server
from mcp.types import TextContent, Tool
from pydantic import ValidationError

from .config import SERVER_NAME, SERVER_VERSION
from .spotify_client import SpotifyAPIError
from .tools import TOOLS

logger = logging.getLogger(__name__)

TokenResolver = Callable[[], Awaitable[str]]


def format_validation_error(error: ValidationError) -> str:
    details = ", ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in error.errors()
    )
    return f"Invalid arguments: {details}"


def list_tool_descriptors() -> list[Tool]:
    return [
        Tool(name=spec.name, description=spec.description, inputSchema=spec.input_schema)
        for spec in TOOLS.values()
    ]


async def call_spotify_tool(name: str, arguments: dict[str, Any], spotify_token: str) -> str:
    """Validate arguments against the tool's input model and run it.

    Raises:
        ValueError: For an unknown tool or arguments the model rejects
        SpotifyAPIError: If the Spotify call fails
    """
    spec = TOOLS.get(name)
    if spec is None:
        raise ValueError(f"Unknown tool: {name}")

    try:
        tool_input = spec.input_model.model_validate(arguments)
    except ValidationError as e:
        raise ValueError(format_validation_error(e)) from e

    return await spec.handler(tool_input, spotify_token)


def create_server(resolve_token: TokenResolver) -> Server:
    """Build the MCP server for a single session.

    Errors raised by a tool come back to the client as `isError` results.
    """
    server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return list_tool_descriptors()

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        spotify_token = await resolve_token()
        try:
            text = await call_spotify_tool(name, arguments, spotify_token)
        except SpotifyAPIError as e:
            logger.error(f"[MCP] Tool {name} failed: {e}")
            raise
        return [TextContent(type="text", text=text)]

    return server
