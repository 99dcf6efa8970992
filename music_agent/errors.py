"""Errors raised by the Spotify MCP session client."""
from typing import Any, Optional


class MCPClientError(Exception):
    """Base class for every session client failure."""
    pass


class SessionInitializationFailed(MCPClientError):
    """Raised when initialization is still rate-limited after the last retry."""
    def __init__(self, attempts: int):
        super().__init__(
            f"Spotify MCP session initialization failed after {attempts} attempts (rate limited)"
        )
        self.attempts = attempts


class RemoteHTTPError(MCPClientError):
    """A non-2xx response (or no response at all) from the MCP server."""
    action = "request"

    def __init__(self, status_code: Optional[int], body: str):
        status = status_code if status_code is not None else "network error"
        super().__init__(f"Spotify MCP {self.action} failed: {status} - {body}")
        self.status_code = status_code
        self.body = body


class RemoteHandshakeError(RemoteHTTPError):
    action = "initialization"


class RemoteCallError(RemoteHTTPError):
    action = "request"


class MissingSessionId(MCPClientError):
    """Raised when the handshake succeeds but no session id header comes back."""
    def __init__(self):
        super().__init__("No session ID returned from server")


class SessionNotInitialized(MCPClientError):
    """Raised for calls on a client that is not in the READY state."""
    def __init__(self, state: str):
        super().__init__(f"Session not initialized (state: {state})")
        self.state = state


class RemoteProcedureError(MCPClientError):
    """The server answered with a JSON-RPC error member."""
    def __init__(self, code: Optional[int], message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


class UnparseableResponse(MCPClientError):
    """The body was neither JSON nor an event stream carrying JSON."""
    def __init__(self, body: str):
        self.snippet = body[:200]
        super().__init__(f"Unable to parse response: {self.snippet}")
