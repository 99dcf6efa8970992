"""Session Registry for the Spotify MCP Server.

This module handles:
- Mapping session identifiers to the Spotify token they were opened with
- Validating tokens against the Spotify identity endpoint on session
  creation and whenever a session presents a different token
- Holding the streamable HTTP transport that serves each session
- Tracking activity and sweeping sessions that have gone idle
"""
import asyncio
import uuid
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional
import logging

from mcp.server.streamable_http import StreamableHTTPServerTransport

from .config import LOG_SESSION_EVENTS, SESSION_TIMEOUT_SECONDS
from .models import McpSession, SessionSummary, utc_now
from .spotify_client import spotify_client

logger = logging.getLogger(__name__)

TokenValidator = Callable[[str], Awaitable[bool]]


class InvalidCredentialError(Exception):
    """Raised when Spotify rejects the presented access token."""
    pass


class SessionNotFoundError(Exception):
    """Raised when a session identifier is unknown or already closed."""
    pass


class SessionRegistry:
    """Owns every open session and the transport attached to it.

    The session map is mutated from concurrent requests and from the
    periodic sweep, so every insert/lookup/delete runs under one lock.
    Token validation happens outside the lock since it performs network I/O.
    """

    def __init__(
        self,
        validator: Optional[TokenValidator] = None,
        timeout_seconds: int = SESSION_TIMEOUT_SECONDS,
    ):
        self._sessions: dict[str, McpSession] = {}
        self._transports: dict[str, StreamableHTTPServerTransport] = {}
        self._lock = asyncio.Lock()
        self._validator = validator
        self.timeout_seconds = timeout_seconds

    async def _validate(self, token: str) -> bool:
        validator = self._validator or spotify_client.validate_token
        return await validator(token)

    # ==========================================================================
    # Session Lifecycle
    # ==========================================================================

    async def create_session(self, spotify_token: str) -> McpSession:
        """Validate a token and open a new session for it.

        Raises:
            InvalidCredentialError: If Spotify rejects the token
        """
        if not await self._validate(spotify_token):
            raise InvalidCredentialError("Invalid Spotify access token provided")

        session = McpSession(
            session_id=str(uuid.uuid4()),
            spotify_token=spotify_token,
        )
        async with self._lock:
            self._sessions[session.session_id] = session

        if LOG_SESSION_EVENTS:
            logger.info(f"[SessionRegistry] Session created: {session.session_id[:8]}... with valid token")
        return session

    async def get_session(self, session_id: str) -> Optional[McpSession]:
        async with self._lock:
            return self._sessions.get(session_id)

    async def touch(self, session_id: str) -> McpSession:
        """Record activity on a session and return it."""
        async with self._lock:
            session = self._sessions.get(session_id)
            if not session:
                raise SessionNotFoundError(f"Session not found: {session_id[:8]}...")
            session.last_activity = utc_now()
            return session

    async def update_credential(self, session_id: str, spotify_token: str) -> McpSession:
        """Swap the token of an existing session when a different one is presented.

        Raises:
            SessionNotFoundError: If the session does not exist
            InvalidCredentialError: If Spotify rejects the new token
        """
        session = await self.get_session(session_id)
        if not session:
            raise SessionNotFoundError(f"Session not found: {session_id[:8]}...")
        if spotify_token == session.spotify_token:
            return session

        if not await self._validate(spotify_token):
            raise InvalidCredentialError("Invalid Spotify access token provided")

        async with self._lock:
            session = self._sessions.get(session_id)
            if not session:
                raise SessionNotFoundError(f"Session not found: {session_id[:8]}...")
            session.spotify_token = spotify_token

        if LOG_SESSION_EVENTS:
            logger.info(f"[SessionRegistry] Updated token for session: {session_id[:8]}...")
        return session

    async def resolve_credential(self, session_id: str) -> str:
        """Return the token a tool call on this session should use."""
        session = await self.get_session(session_id)
        if not session:
            raise SessionNotFoundError(f"Session not found: {session_id[:8]}...")
        return session.spotify_token

    async def delete_session(self, session_id: str) -> bool:
        """Close a session and terminate its transport."""
        async with self._lock:
            session = self._sessions.pop(session_id, None)
            transport = self._transports.pop(session_id, None)
        if session is None:
            return False

        session.connected = False
        if transport is not None and not transport.is_terminated:
            await transport.terminate()

        if LOG_SESSION_EVENTS:
            logger.info(f"[SessionRegistry] Session closed: {session_id[:8]}...")
        return True

    def discard(self, session_id: str) -> None:
        """Forget a session whose server task has already stopped.

        Synchronous so it can run from a cancelled task's cleanup.
        """
        session = self._sessions.pop(session_id, None)
        self._transports.pop(session_id, None)
        if session is not None:
            session.connected = False
            logger.info(f"[SessionRegistry] Discarded session: {session_id[:8]}...")

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    # ==========================================================================
    # Transports
    # ==========================================================================

    async def attach_transport(self, session_id: str, transport: StreamableHTTPServerTransport) -> None:
        async with self._lock:
            if session_id not in self._sessions:
                raise SessionNotFoundError(f"Session not found: {session_id[:8]}...")
            self._transports[session_id] = transport

    async def get_transport(self, session_id: str) -> Optional[StreamableHTTPServerTransport]:
        async with self._lock:
            return self._transports.get(session_id)

    # ==========================================================================
    # Maintenance
    # ==========================================================================

    async def sweep_idle(self, now: Optional[datetime] = None) -> list[str]:
        """Close every session idle longer than the timeout.

        Returns:
            IDs of the sessions that were closed
        """
        now = now or utc_now()
        cutoff = now - timedelta(seconds=self.timeout_seconds)

        async with self._lock:
            expired = [
                session_id
                for session_id, session in self._sessions.items()
                if session.last_activity < cutoff
            ]

        for session_id in expired:
            logger.info(f"[SessionRegistry] Cleaning up inactive session: {session_id[:8]}...")
            await self.delete_session(session_id)

        return expired

    async def close_all(self, grace_seconds: float) -> int:
        """Close every open session, giving up after the grace period.

        The map is cleared even if closing did not finish in time.

        Returns:
            Number of sessions that were open
        """
        async with self._lock:
            session_ids = list(self._sessions)

        if session_ids:
            logger.info(f"[SessionRegistry] Closing {len(session_ids)} session(s)")
            try:
                await asyncio.wait_for(
                    asyncio.gather(*(self.delete_session(sid) for sid in session_ids)),
                    timeout=grace_seconds,
                )
            except asyncio.TimeoutError:
                logger.warning("[SessionRegistry] Force closing sessions after grace period")

        async with self._lock:
            self._sessions.clear()
            self._transports.clear()

        return len(session_ids)

    async def list_sessions(self) -> list[SessionSummary]:
        """Debug listing of every open session."""
        async with self._lock:
            return [
                SessionSummary(
                    id=session.session_id,
                    last_activity=session.last_activity.isoformat(),
                    created_at=session.created_at.isoformat(),
                    connected=session.connected,
                    has_token=bool(session.spotify_token),
                )
                for session in self._sessions.values()
            ]


# Global session registry instance
session_registry = SessionRegistry()
