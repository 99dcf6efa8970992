"""Spotify MCP Server.

A stateful MCP server that exposes Spotify Web API operations as tools:
- Search (tracks, artists, albums, playlists)
- Playlist management (list, create, add/remove tracks)
- Playback control and recommendations

Architecture:
- /mcp is served by the MCP SDK's streamable HTTP transport, one transport
  and one MCP server task per session
- Each session is bound to the Spotify token it was opened with, validated
  against Spotify before the session is created
- Later requests name their session with the `mcp-session-id` header
- GET /mcp opens an event stream for a session, DELETE /mcp closes it
- A background sweep closes sessions left idle

Run with:
    uvicorn spotify_mcp_server.main:app --port 3002

Or:
    python -m spotify_mcp_server.main
"""
import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.routing import Route

from .config import (
    HOST,
    MCP_JSON_RESPONSE,
    PORT,
    SERVER_VERSION,
    SESSION_ID_HEADER,
    SESSION_SWEEP_INTERVAL_SECONDS,
    SHUTDOWN_GRACE_SECONDS,
)
from .endpoint import SpotifyMCPEndpoint
from .models import SessionListResponse, utc_now
from .session_registry import session_registry
from .spotify_client import spotify_client


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# Routes /mcp requests to the transport of the session they belong to
mcp_endpoint = SpotifyMCPEndpoint(session_registry, json_response=MCP_JSON_RESPONSE)


# ==============================================================================
# Idle Session Sweep
# ==============================================================================

# Global sweep task reference
_sweep_task: Optional[asyncio.Task] = None


async def session_sweeper():
    """Background task that closes sessions idle past the timeout."""
    logger.info(
        f"[Sweeper] Idle session sweep started "
        f"(interval: {SESSION_SWEEP_INTERVAL_SECONDS}s)"
    )

    try:
        while True:
            await asyncio.sleep(SESSION_SWEEP_INTERVAL_SECONDS)

            try:
                closed = await session_registry.sweep_idle()
                if closed:
                    logger.info(f"[Sweeper] Closed {len(closed)} idle session(s)")
            except Exception as e:
                logger.error(f"[Sweeper] Error during sweep: {e}", exc_info=True)

    except asyncio.CancelledError:
        logger.info("[Sweeper] Idle session sweep stopped")
        raise


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    """Run the session servers and the idle sweep; close every session on shutdown."""
    global _sweep_task

    logger.info("[Server] Starting Spotify MCP Server")

    async with mcp_endpoint.run():
        _sweep_task = asyncio.create_task(session_sweeper())

        yield

        logger.info("[Server] Shutting down...")

        if _sweep_task:
            _sweep_task.cancel()
            try:
                await asyncio.wait_for(_sweep_task, timeout=5.0)
            except (asyncio.CancelledError, asyncio.TimeoutError):
                pass

        closed = await session_registry.close_all(grace_seconds=SHUTDOWN_GRACE_SECONDS)
        logger.info(f"[Server] Closed {closed} session(s), shut down gracefully")

    await spotify_client.close()


app = FastAPI(
    title="Spotify MCP Server",
    description=(
        "MCP endpoint exposing Spotify search, playlist and playback tools.\n\n"
        "- **MCP Endpoint**: `/mcp` - JSON-RPC over HTTP with session header `mcp-session-id`\n"
        "- **Debug**: `/sessions` - list open sessions"
    ),
    version=SERVER_VERSION,
    lifespan=app_lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[SESSION_ID_HEADER],
)


# ==============================================================================
# Service Endpoints
# ==============================================================================

@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "OK",
        "timestamp": utc_now().isoformat(),
        "active_sessions": session_registry.session_count,
        "mcp_version": SERVER_VERSION,
    }


@app.get("/sessions", response_model=SessionListResponse, tags=["Sessions"])
async def list_sessions():
    """List open sessions (for debugging). Tokens are never returned."""
    sessions = await session_registry.list_sessions()
    return SessionListResponse(sessions=sessions, total=len(sessions))


# ==============================================================================
# MCP Endpoint
# ==============================================================================

# POST carries JSON-RPC messages, GET opens the session's event stream,
# DELETE closes the session
app.routes.append(Route("/mcp", endpoint=mcp_endpoint, methods=["GET", "POST", "DELETE"]))


# ==============================================================================
# Spotify OAuth Callback
# ==============================================================================

@app.get("/auth/spotify/callback")
async def spotify_callback(code: Optional[str] = None, error: Optional[str] = None):
    """Receive an authorization code and explain how to exchange it."""
    if error:
        return JSONResponse(
            status_code=400,
            content={"error": "Spotify authorization failed", "details": error},
        )
    if not code:
        return JSONResponse(status_code=400, content={"error": "Missing authorization code"})

    return {
        "message": (
            "Authorization code received. Exchange this for an access token "
            "using Spotify's token endpoint."
        ),
        "code": code,
        "next_steps": [
            "Send a POST request to https://accounts.spotify.com/api/token",
            "Include the authorization code, client_id, client_secret, and redirect_uri",
            "Use the returned access_token with this MCP server",
        ],
    }


# ==============================================================================
# Entry Point
# ==============================================================================

def main():
    """Run the server with uvicorn."""
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="Spotify MCP Server")
    parser.add_argument(
        "--host",
        type=str,
        default=HOST,
        help=f"Host to bind to (default: {HOST})"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=PORT,
        help=f"Port to bind to (default: {PORT})"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development"
    )

    args = parser.parse_args()

    logger.info(f"[Server] Starting on {args.host}:{args.port}")
    logger.info(f"[Server] Health check: http://{args.host}:{args.port}/health")
    logger.info(f"[Server] Sessions info: http://{args.host}:{args.port}/sessions")
    logger.info(f"[Server] MCP Endpoint: http://{args.host}:{args.port}/mcp")
    logger.info("[Server] Send Spotify tokens via 'X-Spotify-Token' header or 'Authorization: Bearer <token>'")

    uvicorn.run(
        "spotify_mcp_server.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        timeout_graceful_shutdown=int(SHUTDOWN_GRACE_SECONDS),
    )


if __name__ == "__main__":
    main()
