"""Session client for the Spotify MCP server.

SpotifyMCPClient owns exactly one MCP session, opened with one Spotify
access token, and mediates every tool call through it.

Lifecycle:
    UNINITIALIZED -> INITIALIZING -> READY -> CLOSED
    INITIALIZING -> FAILED on a non-retryable error or exhausted retries

Nothing leaves CLOSED or FAILED; calls made in those states fail fast with
SessionNotInitialized and never touch the network.
"""
import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Optional
import logging

import httpx

from .config import (
    MCP_CLIENT_NAME,
    MCP_CLIENT_VERSION,
    MCP_INIT_MAX_ATTEMPTS,
    MCP_INIT_RETRY_BASE_SECONDS,
    MCP_PROTOCOL_VERSION,
    MCP_REQUEST_TIMEOUT_SECONDS,
    MCP_SERVER_URL,
)
from .errors import (
    MissingSessionId,
    RemoteCallError,
    RemoteHandshakeError,
    RemoteProcedureError,
    SessionInitializationFailed,
    SessionNotInitialized,
)
from .response_decoder import decode_response

logger = logging.getLogger(__name__)

SESSION_ID_HEADER = "mcp-session-id"

Sleep = Callable[[float], Awaitable[Any]]


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    CLOSED = "closed"
    FAILED = "failed"


class SpotifyMCPClient:
    """Client for one session on the Spotify MCP server.

    Usage:
        async with SpotifyMCPClient(spotify_token) as client:
            tools = await client.list_procedures()
            result = await client.call_procedure("search_tracks", {"query": "jazz"})
    """

    def __init__(
        self,
        spotify_token: str,
        server_url: str = MCP_SERVER_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        max_attempts: int = MCP_INIT_MAX_ATTEMPTS,
        retry_base_seconds: float = MCP_INIT_RETRY_BASE_SECONDS,
        sleep: Sleep = asyncio.sleep,
    ):
        if not spotify_token:
            raise ValueError("Spotify access token is required")

        self.server_url = server_url
        self.max_attempts = max_attempts
        self.retry_base_seconds = retry_base_seconds
        self._sleep = sleep
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=MCP_REQUEST_TIMEOUT_SECONDS)
        self._base_headers = {
            "X-Spotify-Token": spotify_token,
            "Content-Type": "application/json",
            "Accept": "application/json, text/event-stream",
        }
        self._request_id = 1
        self.session_id: Optional[str] = None
        self.state = SessionState.UNINITIALIZED

    async def __aenter__(self) -> "SpotifyMCPClient":
        try:
            await self.initialize()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _next_request_id(self) -> int:
        request_id = self._request_id
        self._request_id += 1
        return request_id

    def _session_headers(self) -> dict[str, str]:
        return {**self._base_headers, SESSION_ID_HEADER: self.session_id}

    def _require_ready(self) -> None:
        if self.state is not SessionState.READY or not self.session_id:
            raise SessionNotInitialized(self.state.value)

    # ==========================================================================
    # Initialization
    # ==========================================================================

    async def initialize(self) -> None:
        """Open the session, retrying with exponential backoff on HTTP 429.

        Raises:
            SessionNotInitialized: If the client was already initialized or closed
            SessionInitializationFailed: If every attempt was rate limited
            RemoteHandshakeError: On any other non-2xx response or network failure
            MissingSessionId: If the server did not return a session id
        """
        if self.state is not SessionState.UNINITIALIZED:
            raise SessionNotInitialized(self.state.value)

        logger.info("[MCPClient] Initializing Spotify MCP session...")
        self.state = SessionState.INITIALIZING

        try:
            response = await self._handshake()
        except Exception:
            self.state = SessionState.FAILED
            raise

        session_id = response.headers.get(SESSION_ID_HEADER)
        if not session_id:
            self.state = SessionState.FAILED
            raise MissingSessionId()

        self.session_id = session_id
        self.state = SessionState.READY
        logger.info(f"[MCPClient] Session initialized with ID: {session_id[:8]}...")

        await self._send_notification("notifications/initialized", {})
        logger.info("[MCPClient] Initialization complete")

    async def _handshake(self) -> httpx.Response:
        for attempt in range(self.max_attempts):
            envelope = {
                "jsonrpc": "2.0",
                "method": "initialize",
                "params": {
                    "protocolVersion": MCP_PROTOCOL_VERSION,
                    "capabilities": {"tools": {}},
                    "clientInfo": {"name": MCP_CLIENT_NAME, "version": MCP_CLIENT_VERSION},
                },
                "id": self._next_request_id(),
            }

            try:
                response = await self._http_client.post(
                    self.server_url, json=envelope, headers=self._base_headers
                )
            except httpx.RequestError as e:
                raise RemoteHandshakeError(None, str(e))

            if response.status_code == 429:
                delay = (2 ** attempt) * self.retry_base_seconds
                logger.warning(f"[MCPClient] Rate limited (429). Retrying in {delay:.1f}s...")
                await self._sleep(delay)
                continue

            if not response.is_success:
                raise RemoteHandshakeError(response.status_code, response.text)

            return response

        raise SessionInitializationFailed(self.max_attempts)

    async def _send_notification(self, method: str, params: dict) -> None:
        """Send a one-way notification. Failures are logged, never raised."""
        envelope = {"jsonrpc": "2.0", "method": method, "params": params}
        try:
            response = await self._http_client.post(
                self.server_url, json=envelope, headers=self._session_headers()
            )
        except httpx.RequestError as e:
            logger.warning(f"[MCPClient] Notification {method} failed: {e}")
            return

        if not response.is_success:
            logger.warning(
                f"[MCPClient] Notification {method} failed: "
                f"{response.status_code} - {response.text}"
            )

    # ==========================================================================
    # Procedure Calls
    # ==========================================================================

    async def _send_request(self, method: str, params: dict) -> Any:
        self._require_ready()

        request_id = self._next_request_id()
        envelope = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": request_id,
        }

        logger.info(f"[MCPClient] Sending request: {method}")

        try:
            response = await self._http_client.post(
                self.server_url, json=envelope, headers=self._session_headers()
            )
        except httpx.RequestError as e:
            raise RemoteCallError(None, str(e))

        if not response.is_success:
            if response.status_code == 404:
                # The server no longer knows this session
                logger.warning(f"[MCPClient] Session {self.session_id[:8]}... closed by server")
                self.session_id = None
                self.state = SessionState.CLOSED
            raise RemoteCallError(response.status_code, response.text)

        logger.debug(f"[MCPClient] Raw response: {response.text[:200]}...")
        result = decode_response(response.text)

        # An error the server could not tie to a request carries a null id
        if result.id != request_id and (result.id is not None or result.error is None):
            raise RemoteCallError(
                response.status_code,
                f"Response id {result.id!r} does not match request id {request_id!r}",
            )

        if result.error is not None:
            raise RemoteProcedureError(result.error.code, result.error.message, result.error.data)

        logger.info(f"[MCPClient] Request {method} completed successfully")
        return result.result

    async def call_procedure(self, name: str, arguments: Optional[dict] = None) -> Any:
        """Call a named tool on the server and return the JSON-RPC result."""
        return await self._send_request("tools/call", {"name": name, "arguments": arguments or {}})

    async def list_procedures(self) -> Any:
        """List the tools the server exposes."""
        return await self._send_request("tools/list", {})

    # ==========================================================================
    # Teardown
    # ==========================================================================

    async def close(self) -> None:
        """End the session. Safe to call more than once."""
        session_id = self.session_id
        self.session_id = None
        if self.state is not SessionState.FAILED:
            self.state = SessionState.CLOSED

        if session_id:
            try:
                response = await self._http_client.delete(
                    self.server_url,
                    headers={**self._base_headers, SESSION_ID_HEADER: session_id},
                )
                if not response.is_success:
                    logger.warning(
                        f"[MCPClient] Closing session {session_id[:8]}... returned "
                        f"{response.status_code}"
                    )
            except httpx.RequestError as e:
                logger.warning(f"[MCPClient] Error closing Spotify session: {e}")

        if self._owns_http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
