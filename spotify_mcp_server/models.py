"""Pydantic models for the Spotify MCP Server"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Literal, Optional
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time with timezone info."""
    return datetime.now(timezone.utc)


# ==============================================================================
# Session Models
# ==============================================================================

class McpSession(BaseModel):
    """A server-side session bound to one Spotify access token."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
    )

    session_id: str = Field(..., description="Opaque session identifier")
    spotify_token: str = Field(..., description="Spotify access token for this session")
    created_at: datetime = Field(default_factory=utc_now, description="Session creation time")
    last_activity: datetime = Field(default_factory=utc_now, description="Last request seen on this session")
    connected: bool = Field(default=True, description="Whether the session is still open")


class SessionSummary(BaseModel):
    """Debug view of a session. Never includes the token itself."""
    id: str
    last_activity: str
    created_at: str
    connected: bool
    has_token: bool


class SessionListResponse(BaseModel):
    sessions: list[SessionSummary]
    total: int


# ==============================================================================
# Spotify API Models
# ==============================================================================

class SpotifyImage(BaseModel):
    url: str
    height: Optional[int] = None
    width: Optional[int] = None


class ExternalUrls(BaseModel):
    spotify: str


class Followers(BaseModel):
    total: int


class ArtistRef(BaseModel):
    id: str
    name: str


class AlbumRef(BaseModel):
    id: str
    name: str
    images: list[SpotifyImage] = Field(default_factory=list)


class SpotifyTrack(BaseModel):
    """Track object returned by search, playlists and recommendations."""
    id: str
    name: str
    artists: list[ArtistRef]
    album: AlbumRef
    duration_ms: int
    external_urls: ExternalUrls
    preview_url: Optional[str] = None
    popularity: int


class SpotifyArtist(BaseModel):
    id: str
    name: str
    genres: list[str] = Field(default_factory=list)
    popularity: int
    followers: Followers
    external_urls: ExternalUrls
    images: list[SpotifyImage] = Field(default_factory=list)


class SpotifyAlbum(BaseModel):
    id: str
    name: str
    artists: list[ArtistRef]
    release_date: str
    total_tracks: int
    external_urls: ExternalUrls
    images: list[SpotifyImage] = Field(default_factory=list)


class PlaylistOwner(BaseModel):
    id: str
    display_name: Optional[str] = None


class PlaylistTracksRef(BaseModel):
    total: int


class SpotifyPlaylist(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    public: Optional[bool] = None
    owner: PlaylistOwner
    tracks: PlaylistTracksRef
    external_urls: ExternalUrls
    images: list[SpotifyImage] = Field(default_factory=list)


class SpotifyUser(BaseModel):
    """The current user's profile (GET /me)."""
    id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    followers: Optional[Followers] = None
    external_urls: ExternalUrls
    images: list[SpotifyImage] = Field(default_factory=list)


class PlaybackDevice(BaseModel):
    id: Optional[str] = None
    name: str
    type: str
    volume_percent: Optional[int] = None


class CurrentPlayback(BaseModel):
    is_playing: bool
    currently_playing_type: str
    item: Optional[SpotifyTrack] = None
    progress_ms: Optional[int] = None
    device: Optional[PlaybackDevice] = None


class SnapshotResponse(BaseModel):
    """Returned by playlist mutations."""
    snapshot_id: str


# ==============================================================================
# Tool Input Models
# ==============================================================================

class SearchInput(BaseModel):
    """Shared shape of the four search tools."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        extra='forbid'
    )

    query: str = Field(..., description="Search query", min_length=1)
    limit: int = Field(default=20, description="Number of results to return", ge=1, le=50)
    offset: int = Field(default=0, description="Offset for pagination", ge=0)


class SearchTracksInput(SearchInput):
    """Input parameters for the search_tracks tool."""
    query: str = Field(..., description="Search query for tracks", min_length=1)


class SearchArtistsInput(SearchInput):
    """Input parameters for the search_artists tool."""
    query: str = Field(..., description="Search query for artists", min_length=1)


class SearchAlbumsInput(SearchInput):
    """Input parameters for the search_albums tool."""
    query: str = Field(..., description="Search query for albums", min_length=1)


class SearchPlaylistsInput(SearchInput):
    """Input parameters for the search_playlists tool."""
    query: str = Field(..., description="Search query for playlists", min_length=1)


class GetMyPlaylistsInput(BaseModel):
    """Input parameters for the get_my_playlists tool."""
    model_config = ConfigDict(extra='forbid')

    limit: int = Field(default=20, description="Number of playlists to return", ge=1, le=50)
    offset: int = Field(default=0, description="Offset for pagination", ge=0)


class CreatePlaylistInput(BaseModel):
    """Input parameters for the create_playlist tool."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        extra='forbid'
    )

    name: str = Field(..., description="Name of the playlist", min_length=1)
    description: Optional[str] = Field(default=None, description="Description of the playlist")
    public: bool = Field(default=True, description="Whether the playlist is public")


class PlaylistTracksMutationInput(BaseModel):
    model_config = ConfigDict(
        str_strip_whitespace=True,
        extra='forbid'
    )

    playlist_id: str = Field(..., description="ID of the playlist", min_length=1)
    track_uris: list[str] = Field(
        ...,
        description="Array of track URIs (e.g., ['spotify:track:4iV5W9uYEdYUVa79Axb7Rh'])",
        min_length=1,
    )


class AddTracksToPlaylistInput(PlaylistTracksMutationInput):
    """Input parameters for the add_tracks_to_playlist tool."""


class RemoveTracksFromPlaylistInput(PlaylistTracksMutationInput):
    """Input parameters for the remove_tracks_from_playlist tool."""


class GetPlaylistTracksInput(BaseModel):
    """Input parameters for the get_playlist_tracks tool."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        extra='forbid'
    )

    playlist_id: str = Field(..., description="ID of the playlist", min_length=1)
    limit: int = Field(default=100, description="Number of tracks to return", ge=1, le=100)
    offset: int = Field(default=0, description="Offset for pagination", ge=0)


class GetCurrentPlaybackInput(BaseModel):
    """The get_current_playback tool takes no arguments."""
    model_config = ConfigDict(extra='forbid')


class PlayTrackInput(BaseModel):
    """Input parameters for the play_track tool."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        extra='forbid'
    )

    track_uri: Optional[str] = Field(
        default=None,
        description="URI of the track to play (e.g., 'spotify:track:4iV5W9uYEdYUVa79Axb7Rh')"
    )
    context_uri: Optional[str] = Field(
        default=None,
        description="URI of the context to play (e.g., 'spotify:album:1DFixLWuPkv3KT3TnV35m3')"
    )
    device_id: Optional[str] = Field(default=None, description="ID of the device to play on")


PlaybackAction = Literal["play", "pause", "next", "previous"]


class ControlPlaybackInput(BaseModel):
    """Input parameters for the control_playback tool."""
    model_config = ConfigDict(extra='forbid')

    action: PlaybackAction = Field(..., description="Playback action")
    device_id: Optional[str] = Field(default=None, description="ID of the device to control")


class GetRecommendationsInput(BaseModel):
    """Input parameters for the get_recommendations tool."""
    model_config = ConfigDict(extra='forbid')

    seed_artists: Optional[list[str]] = Field(default=None, description="Artist IDs for recommendations")
    seed_tracks: Optional[list[str]] = Field(default=None, description="Track IDs for recommendations")
    seed_genres: Optional[list[str]] = Field(
        default=None,
        description="Genre names for recommendations (e.g., ['pop', 'rock', 'jazz'])"
    )
    limit: int = Field(default=20, description="Number of recommendations", ge=1, le=100)
    target_acousticness: Optional[float] = Field(default=None, description="Target acousticness (0.0 to 1.0)", ge=0.0, le=1.0)
    target_danceability: Optional[float] = Field(default=None, description="Target danceability (0.0 to 1.0)", ge=0.0, le=1.0)
    target_energy: Optional[float] = Field(default=None, description="Target energy (0.0 to 1.0)", ge=0.0, le=1.0)
    target_valence: Optional[float] = Field(default=None, description="Target valence/positivity (0.0 to 1.0)", ge=0.0, le=1.0)
