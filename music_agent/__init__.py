"""Spotify music agent backend.

- SpotifyMCPClient: one MCP session per Spotify token
- tool_adapter: MCP procedures as LangChain tools
- graph: preferences pipeline (Qloo insights + personalised reply)

The ASGI app lives in music_agent.main. Run with:
    uvicorn music_agent.main:app --port 4000
"""
from .errors import (
    MCPClientError,
    MissingSessionId,
    RemoteCallError,
    RemoteHandshakeError,
    RemoteHTTPError,
    RemoteProcedureError,
    SessionInitializationFailed,
    SessionNotInitialized,
    UnparseableResponse,
)
from .mcp_client import SessionState, SpotifyMCPClient
from .response_decoder import JsonRpcEnvelope, decode_response
from .tool_adapter import SPOTIFY_PROCEDURES, build_spotify_tools

__all__ = [
    # Session client
    "SpotifyMCPClient",
    "SessionState",
    # Errors
    "MCPClientError",
    "MissingSessionId",
    "RemoteCallError",
    "RemoteHandshakeError",
    "RemoteHTTPError",
    "RemoteProcedureError",
    "SessionInitializationFailed",
    "SessionNotInitialized",
    "UnparseableResponse",
    # Decoder
    "JsonRpcEnvelope",
    "decode_response",
    # Tools
    "SPOTIFY_PROCEDURES",
    "build_spotify_tools",
]
