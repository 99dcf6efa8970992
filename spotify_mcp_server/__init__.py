"""Spotify MCP Server.

A stateful MCP server that exposes Spotify Web API operations as tools,
with one validated Spotify token bound to each session.

Architecture:
- Single ASGI application serving the MCP endpoint and debug routes
- MCP endpoint at /mcp, one SDK streamable HTTP transport per session
- SessionRegistry maps session IDs to tokens and sweeps idle sessions
- SpotifyAPIClient performs the upstream calls with the session's token

The ASGI app lives in spotify_mcp_server.main. Run with:
    uvicorn spotify_mcp_server.main:app --port 3002
"""
from .session_registry import (
    session_registry,
    SessionRegistry,
    InvalidCredentialError,
    SessionNotFoundError,
)
from .spotify_client import spotify_client, SpotifyAPIClient, SpotifyAPIError
from .tools import TOOLS, ToolSpec
from .models import (
    McpSession,
    SpotifyTrack,
    SpotifyArtist,
    SpotifyAlbum,
    SpotifyPlaylist,
    SpotifyUser,
    CurrentPlayback,
)

__all__ = [
    # Session management
    "session_registry",
    "SessionRegistry",
    "InvalidCredentialError",
    "SessionNotFoundError",
    # Spotify client
    "spotify_client",
    "SpotifyAPIClient",
    "SpotifyAPIError",
    # Tools
    "TOOLS",
    "ToolSpec",
    # Models
    "McpSession",
    "SpotifyTrack",
    "SpotifyArtist",
    "SpotifyAlbum",
    "SpotifyPlaylist",
    "SpotifyUser",
    "CurrentPlayback",
]
