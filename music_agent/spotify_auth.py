"""Spotify OAuth authorization-code exchange."""
from typing import Optional
import logging

import httpx

from .config import (
    SPOTIFY_CLIENT_ID,
    SPOTIFY_CLIENT_SECRET,
    SPOTIFY_REDIRECT_URI,
    SPOTIFY_TOKEN_URL,
)
from .schemas import SpotifyTokenResponse

logger = logging.getLogger(__name__)


class SpotifyAuthError(Exception):
    """Raised when Spotify refuses the code exchange."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


async def exchange_code_for_token(
    http_client: httpx.AsyncClient,
    code: str,
    redirect_uri: str = SPOTIFY_REDIRECT_URI,
) -> SpotifyTokenResponse:
    """Exchange an authorization code for access and refresh tokens.

    Args:
        http_client: Shared HTTP client
        code: Authorization code from the Spotify redirect
        redirect_uri: Must match the URI used in the authorize request

    Raises:
        SpotifyAuthError: If the token endpoint rejects the request
    """
    try:
        response = await http_client.post(
            SPOTIFY_TOKEN_URL,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
            },
            auth=(SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
    except httpx.RequestError as e:
        raise SpotifyAuthError(f"Network error: {e}")

    if response.status_code != 200:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        error = payload.get("error", response.status_code) if isinstance(payload, dict) else response.status_code
        logger.error(f"[SpotifyAuth] Token exchange failed: {response.status_code} - {response.text}")
        raise SpotifyAuthError(f"Spotify API Error: {error}", status_code=response.status_code)

    return SpotifyTokenResponse(**response.json())
