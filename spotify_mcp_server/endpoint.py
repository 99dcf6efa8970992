"""ASGI endpoint serving `/mcp` through the MCP SDK's streamable HTTP transport.

Each session in the registry owns one `StreamableHTTPServerTransport` and
one MCP server task running in the endpoint's task group. This endpoint
only decides which transport a request belongs to:

- POST without a session header must be `initialize` and carry a Spotify
  token that validates; a new session and transport are created for it
- POST with a session header is routed to that session's transport, after
  re-validating the token if the caller presented a different one
- GET and DELETE go to the session's transport; DELETE also drops the
  session from the registry

Everything inside a session (JSON-RPC framing, SSE, notifications) is the
transport's job.
"""
import json
from contextlib import asynccontextmanager
from functools import partial
from typing import Any, AsyncIterator, Optional
import logging
import re

import anyio
from anyio.abc import TaskGroup, TaskStatus
from mcp.server.streamable_http import StreamableHTTPServerTransport
from mcp.types import INTERNAL_ERROR, PARSE_ERROR
from starlette.datastructures import Headers
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import Message, Receive, Scope, Send

from .config import MCP_JSON_RESPONSE, SESSION_ID_HEADER
from .server import create_server
from .session_registry import InvalidCredentialError, SessionNotFoundError, SessionRegistry

logger = logging.getLogger(__name__)

# Application-defined error code used for session/credential problems
SESSION_ERROR = -32000

MISSING_TOKEN_MESSAGE = (
    "Spotify access token is required for session initialization. Provide it via "
    "'X-Spotify-Token', 'Spotify-Token', 'Authorization: Bearer <token>' header, "
    "or 'spotify_token' in request body."
)

_BEARER_PREFIX = re.compile(r"^Bearer\s+", re.IGNORECASE)


class RejectedRequest(Exception):
    """A request answered here, before it reaches a session transport."""
    def __init__(self, status_code: int, message: str, request_id: Any = None, code: int = SESSION_ERROR, data: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.request_id = request_id
        self.code = code
        self.data = data

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status_code,
            content=error_envelope(self.code, self.message, self.request_id, self.data),
        )


def error_envelope(code: int, message: str, request_id: Any = None, data: Any = None) -> dict:
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "error": error, "id": request_id}


def is_initialize_request(message: Any) -> bool:
    return isinstance(message, dict) and message.get("method") == "initialize" and "id" in message


def request_id_of(message: Any) -> Any:
    return message.get("id") if isinstance(message, dict) else None


def extract_spotify_token(headers: Headers, body: Any = None) -> Optional[str]:
    """Find the caller's Spotify token in headers or the request body."""
    token = headers.get("x-spotify-token") or headers.get("spotify-token")
    if not token and headers.get("authorization"):
        token = _BEARER_PREFIX.sub("", headers["authorization"])
    if not token and isinstance(body, dict):
        token = body.get("spotify_token")
    return token or None


def replay_body(body: bytes, receive: Receive) -> Receive:
    """Hand an already-read body to the transport as if it were unread."""
    delivered = False

    async def replay() -> Message:
        nonlocal delivered
        if not delivered:
            delivered = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay


class SpotifyMCPEndpoint:
    """Raw ASGI app for `/mcp`, mounted as a Starlette route endpoint."""

    def __init__(self, registry: SessionRegistry, json_response: bool = MCP_JSON_RESPONSE):
        self.registry = registry
        self.json_response = json_response
        self._task_group: Optional[TaskGroup] = None

    @asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        """Hold the task group the per-session servers run in.

        Enter this from the application lifespan. Leaving it cancels every
        session server still running.
        """
        async with anyio.create_task_group() as tg:
            self._task_group = tg
            logger.info("[MCP] Session task group started")
            try:
                yield
            finally:
                logger.info("[MCP] Session task group shutting down")
                tg.cancel_scope.cancel()
                self._task_group = None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        try:
            if request.method == "POST":
                transport, receive = await self._route_post(request, receive)
            else:
                transport = await self._route_existing(request)
        except RejectedRequest as e:
            await e.to_response()(scope, receive, send)
            return

        await transport.handle_request(scope, receive, send)

        if request.method == "DELETE" and transport.is_terminated:
            session_id = request.headers[SESSION_ID_HEADER]
            await self.registry.delete_session(session_id)
            logger.info(f"[MCP] Session manually closed: {session_id[:8]}...")

    # ==========================================================================
    # Routing
    # ==========================================================================

    async def _route_post(self, request: Request, receive: Receive) -> tuple[StreamableHTTPServerTransport, Receive]:
        body = await request.body()
        try:
            message = json.loads(body)
        except (ValueError, RecursionError):
            raise RejectedRequest(400, "Parse error", code=PARSE_ERROR)

        session_id = request.headers.get(SESSION_ID_HEADER)
        spotify_token = extract_spotify_token(request.headers, message)
        request_id = request_id_of(message)

        if not session_id and not is_initialize_request(message):
            raise RejectedRequest(
                400,
                "Bad Request: No valid session ID provided or not an initialize request",
                request_id,
            )
        if not session_id and not spotify_token:
            raise RejectedRequest(401, MISSING_TOKEN_MESSAGE, request_id)

        try:
            if session_id:
                session = await self.registry.touch(session_id)
                if spotify_token and spotify_token != session.spotify_token:
                    await self.registry.update_credential(session_id, spotify_token)
                transport = await self.registry.get_transport(session_id)
                if transport is None:
                    raise SessionNotFoundError(f"Session not found: {session_id[:8]}...")
            else:
                transport = await self._open_session(spotify_token)

        except InvalidCredentialError as e:
            raise RejectedRequest(401, str(e), request_id)
        except SessionNotFoundError:
            raise RejectedRequest(404, "Session not found", request_id)
        except Exception as e:
            logger.error(f"[MCP] Error handling request: {e}", exc_info=True)
            raise RejectedRequest(500, "Internal error", request_id, code=INTERNAL_ERROR, data=str(e))

        return transport, replay_body(body, receive)

    async def _route_existing(self, request: Request) -> StreamableHTTPServerTransport:
        session_id = request.headers.get(SESSION_ID_HEADER)
        if not session_id:
            raise RejectedRequest(400, "Missing MCP session ID header")

        try:
            await self.registry.touch(session_id)
        except SessionNotFoundError:
            raise RejectedRequest(404, "Session not found")

        transport = await self.registry.get_transport(session_id)
        if transport is None:
            raise RejectedRequest(404, "Session not found")
        return transport

    # ==========================================================================
    # Session Servers
    # ==========================================================================

    async def _open_session(self, spotify_token: str) -> StreamableHTTPServerTransport:
        """Create a session for a validated token and start its server."""
        if self._task_group is None:
            raise RuntimeError("SpotifyMCPEndpoint.run() must be entered before serving requests")

        session = await self.registry.create_session(spotify_token)
        transport = StreamableHTTPServerTransport(
            mcp_session_id=session.session_id,
            is_json_response_enabled=self.json_response,
        )
        await self.registry.attach_transport(session.session_id, transport)
        await self._task_group.start(self._serve_session, session.session_id, transport)
        return transport

    async def _serve_session(
        self,
        session_id: str,
        transport: StreamableHTTPServerTransport,
        *,
        task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        server = create_server(partial(self.registry.resolve_credential, session_id))

        async with transport.connect() as streams:
            read_stream, write_stream = streams
            task_status.started()
            try:
                await server.run(
                    read_stream,
                    write_stream,
                    server.create_initialization_options(),
                    stateless=False,
                )
            except Exception:
                logger.exception(f"[MCP] Session {session_id[:8]}... crashed")
            finally:
                if not transport.is_terminated:
                    self.registry.discard(session_id)
