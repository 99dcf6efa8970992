"""LangChain tools backed by Spotify MCP procedures.

Each procedure is a (name, description, args schema) triple taken from the
server's tool registry. The adapter turns every triple into a
StructuredTool whose coroutine forwards the validated arguments through a
SpotifyMCPClient session.
"""
import json
from dataclasses import dataclass
from typing import Iterable, Optional, Type
import logging

from langchain_core.tools import StructuredTool
from pydantic import BaseModel

from spotify_mcp_server.tools import TOOLS

from .errors import MCPClientError
from .mcp_client import SpotifyMCPClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcedureSpec:
    name: str
    description: str
    args_schema: Type[BaseModel]


SPOTIFY_PROCEDURES: tuple[ProcedureSpec, ...] = tuple(
    ProcedureSpec(spec.name, spec.description, spec.input_model) for spec in TOOLS.values()
)


def advertised_names(listing) -> set[str]:
    """Procedure names from a tools/list result."""
    if not isinstance(listing, dict):
        return set()
    return {tool.get("name") for tool in listing.get("tools", []) if isinstance(tool, dict)}


def make_procedure_tool(client: SpotifyMCPClient, spec: ProcedureSpec) -> StructuredTool:
    """Wrap one remote procedure as a LangChain tool.

    Client failures are returned as text so the agent can explain or retry
    instead of aborting the whole run.
    """
    async def call_procedure(**kwargs) -> str:
        arguments = spec.args_schema(**kwargs).model_dump(mode="json", exclude_none=True)
        try:
            result = await client.call_procedure(spec.name, arguments)
        except MCPClientError as e:
            logger.error(f"[ToolAdapter] {spec.name} failed: {e}")
            return f"Error: {e}"
        return json.dumps(result, indent=2)

    return StructuredTool.from_function(
        coroutine=call_procedure,
        name=spec.name,
        description=spec.description,
        args_schema=spec.args_schema,
    )


def build_spotify_tools(
    client: SpotifyMCPClient,
    available: Optional[Iterable[str]] = None,
) -> list[StructuredTool]:
    """Build tools for every Spotify procedure.

    Args:
        client: An initialized session client
        available: Procedure names the server advertises; when given, only
            those procedures are wrapped

    Returns:
        One StructuredTool per procedure
    """
    allowed = set(available) if available is not None else None
    tools = [
        make_procedure_tool(client, spec)
        for spec in SPOTIFY_PROCEDURES
        if allowed is None or spec.name in allowed
    ]
    logger.info(f"[ToolAdapter] Built {len(tools)} Spotify tools")
    return tools
