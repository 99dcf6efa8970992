"""API Client for the Spotify Web API.

Every method takes the caller's access token as an explicit argument, so
concurrent requests on different sessions never share credential state.
"""
import httpx
from typing import Any, Optional
import logging

from .config import SPOTIFY_API_URL, SPOTIFY_API_TIMEOUT_SECONDS
from .models import (
    CurrentPlayback,
    GetRecommendationsInput,
    PlaybackAction,
    SnapshotResponse,
    SpotifyAlbum,
    SpotifyArtist,
    SpotifyPlaylist,
    SpotifyTrack,
    SpotifyUser,
)

logger = logging.getLogger(__name__)

SEARCH_RESULT_KEYS = {
    "track": "tracks",
    "artist": "artists",
    "album": "albums",
    "playlist": "playlists",
}

SEARCH_RESULT_MODELS = {
    "track": SpotifyTrack,
    "artist": SpotifyArtist,
    "album": SpotifyAlbum,
    "playlist": SpotifyPlaylist,
}

# action -> (HTTP method, endpoint)
PLAYBACK_ENDPOINTS = {
    "play": ("PUT", "/me/player/play"),
    "pause": ("PUT", "/me/player/pause"),
    "next": ("POST", "/me/player/next"),
    "previous": ("POST", "/me/player/previous"),
}


class SpotifyAPIError(Exception):
    """Raised when a Spotify Web API request fails."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SpotifyAPIClient:
    """Client for the Spotify Web API.

    This client:
    - Sends the session's bearer token on every request
    - Maps non-2xx responses to SpotifyAPIError with the upstream body
    - Validates responses into typed models
    """

    def __init__(
        self,
        base_url: str = SPOTIFY_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=SPOTIFY_API_TIMEOUT_SECONDS,
                transport=self._transport,
            )
        return self._http_client

    async def close(self):
        """Close the HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        token: str,
        params: Optional[dict] = None,
        json_body: Optional[Any] = None,
    ) -> httpx.Response:
        """Make an authenticated request to the Spotify API.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: API endpoint path relative to the base URL
            token: Spotify access token of the calling session
            params: Query parameters
            json_body: JSON request body

        Returns:
            The successful response (2xx)

        Raises:
            SpotifyAPIError: If the request fails or returns a non-2xx status
        """
        client = await self._get_http_client()
        headers = {"Authorization": f"Bearer {token}"}

        logger.debug(f"[SpotifyClient] {method} {endpoint}")

        try:
            response = await client.request(
                method,
                endpoint,
                params=params,
                json=json_body,
                headers=headers,
            )
        except httpx.RequestError as e:
            logger.error(f"[SpotifyClient] Network error: {e}")
            raise SpotifyAPIError(f"Network error: {e}")

        if response.status_code >= 400:
            raise SpotifyAPIError(
                f"Spotify API error ({response.status_code}): {response.text}",
                status_code=response.status_code
            )

        return response

    # ==========================================================================
    # Identity
    # ==========================================================================

    async def validate_token(self, token: str) -> bool:
        """Check a token against the identity endpoint. Never raises."""
        try:
            await self._make_request("GET", "/me", token)
            return True
        except SpotifyAPIError as e:
            logger.warning(f"[SpotifyClient] Token validation failed: {e}")
            return False

    async def get_current_user(self, token: str) -> SpotifyUser:
        response = await self._make_request("GET", "/me", token)
        return SpotifyUser(**response.json())

    # ==========================================================================
    # Search
    # ==========================================================================

    async def search(
        self,
        token: str,
        query: str,
        search_type: str,
        limit: int = 20,
        offset: int = 0,
    ) -> list:
        """Search the catalogue for one item type.

        Args:
            token: Spotify access token
            query: Search query
            search_type: One of "track", "artist", "album", "playlist"
            limit: Number of results (1-50)
            offset: Pagination offset

        Returns:
            List of typed items for the requested type
        """
        if search_type not in SEARCH_RESULT_KEYS:
            raise ValueError(f"Unsupported search type: {search_type}")

        response = await self._make_request(
            "GET",
            "/search",
            token,
            params={"q": query, "type": search_type, "limit": limit, "offset": offset},
        )
        page = response.json().get(SEARCH_RESULT_KEYS[search_type]) or {}
        model = SEARCH_RESULT_MODELS[search_type]
        # Spotify pads playlist search pages with nulls
        return [model(**item) for item in page.get("items", []) if item]

    # ==========================================================================
    # Playlists
    # ==========================================================================

    async def get_my_playlists(self, token: str, limit: int = 20, offset: int = 0) -> list[SpotifyPlaylist]:
        response = await self._make_request(
            "GET", "/me/playlists", token, params={"limit": limit, "offset": offset}
        )
        return [SpotifyPlaylist(**item) for item in response.json().get("items", []) if item]

    async def create_playlist(
        self,
        token: str,
        name: str,
        description: Optional[str] = None,
        public: bool = True,
    ) -> SpotifyPlaylist:
        """Create a playlist owned by the current user."""
        user = await self.get_current_user(token)
        body: dict[str, Any] = {"name": name, "public": public}
        if description is not None:
            body["description"] = description
        response = await self._make_request(
            "POST", f"/users/{user.id}/playlists", token, json_body=body
        )
        return SpotifyPlaylist(**response.json())

    async def add_tracks_to_playlist(self, token: str, playlist_id: str, track_uris: list[str]) -> SnapshotResponse:
        response = await self._make_request(
            "POST", f"/playlists/{playlist_id}/tracks", token, json_body={"uris": track_uris}
        )
        return SnapshotResponse(**response.json())

    async def remove_tracks_from_playlist(self, token: str, playlist_id: str, track_uris: list[str]) -> SnapshotResponse:
        response = await self._make_request(
            "DELETE",
            f"/playlists/{playlist_id}/tracks",
            token,
            json_body={"tracks": [{"uri": uri} for uri in track_uris]},
        )
        return SnapshotResponse(**response.json())

    async def get_playlist_tracks(
        self,
        token: str,
        playlist_id: str,
        limit: int = 100,
        offset: int = 0,
    ) -> list[SpotifyTrack]:
        response = await self._make_request(
            "GET",
            f"/playlists/{playlist_id}/tracks",
            token,
            params={"limit": limit, "offset": offset},
        )
        # Local files and removed episodes come back with "track": null
        return [
            SpotifyTrack(**item["track"])
            for item in response.json().get("items", [])
            if item.get("track")
        ]

    # ==========================================================================
    # Playback
    # ==========================================================================

    async def get_current_playback(self, token: str) -> Optional[CurrentPlayback]:
        """Return the playback state, or None when no device is active."""
        response = await self._make_request("GET", "/me/player", token)
        if response.status_code == 204 or not response.content:
            return None
        return CurrentPlayback(**response.json())

    async def play(
        self,
        token: str,
        track_uri: Optional[str] = None,
        context_uri: Optional[str] = None,
        device_id: Optional[str] = None,
    ) -> None:
        body: dict[str, Any] = {}
        if track_uri:
            body["uris"] = [track_uri]
        if context_uri:
            body["context_uri"] = context_uri

        await self._make_request(
            "PUT",
            "/me/player/play",
            token,
            params={"device_id": device_id} if device_id else None,
            json_body=body or None,
        )

    async def control_playback(
        self,
        token: str,
        action: PlaybackAction,
        device_id: Optional[str] = None,
    ) -> None:
        method, endpoint = PLAYBACK_ENDPOINTS[action]
        await self._make_request(
            method,
            endpoint,
            token,
            params={"device_id": device_id} if device_id else None,
        )

    # ==========================================================================
    # Recommendations
    # ==========================================================================

    async def get_recommendations(self, token: str, options: GetRecommendationsInput) -> list[SpotifyTrack]:
        params: dict[str, Any] = {"limit": options.limit}
        for seed in ("seed_artists", "seed_tracks", "seed_genres"):
            values = getattr(options, seed)
            if values:
                params[seed] = ",".join(values)
        for target in ("target_acousticness", "target_danceability", "target_energy", "target_valence"):
            value = getattr(options, target)
            if value is not None:
                params[target] = value

        response = await self._make_request("GET", "/recommendations", token, params=params)
        return [SpotifyTrack(**track) for track in response.json().get("tracks", [])]


# Global Spotify client instance
spotify_client = SpotifyAPIClient()
