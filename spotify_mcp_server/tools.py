"""MCP Tools for Spotify.

Each tool is a (description, input model, handler) triple registered in
TOOLS under its procedure name. A handler:
- Receives input already validated by its Pydantic model
- Receives the calling session's Spotify token explicitly
- Calls the Spotify API client
- Returns the text placed in the tool result
"""
import json
from dataclasses import dataclass
from typing import Awaitable, Callable, Type
import logging

from pydantic import BaseModel

from .models import (
    AddTracksToPlaylistInput,
    ControlPlaybackInput,
    CreatePlaylistInput,
    GetCurrentPlaybackInput,
    GetMyPlaylistsInput,
    GetPlaylistTracksInput,
    GetRecommendationsInput,
    PlayTrackInput,
    RemoveTracksFromPlaylistInput,
    SearchAlbumsInput,
    SearchArtistsInput,
    SearchPlaylistsInput,
    SearchTracksInput,
)
from .spotify_client import spotify_client

logger = logging.getLogger(__name__)

ToolHandler = Callable[[BaseModel, str], Awaitable[str]]


@dataclass(frozen=True)
class ToolSpec:
    """A remote procedure descriptor plus the handler behind it."""
    name: str
    description: str
    input_model: Type[BaseModel]
    handler: ToolHandler

    @property
    def input_schema(self) -> dict:
        return self.input_model.model_json_schema()


def to_json(data) -> str:
    """Serialize models (or lists of them) the way tool results are returned."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    elif isinstance(data, list):
        data = [item.model_dump(mode="json") if isinstance(item, BaseModel) else item for item in data]
    return json.dumps(data, indent=2)


# ==============================================================================
# Tool Handlers
# ==============================================================================

async def search_tracks_tool(params: SearchTracksInput, token: str) -> str:
    tracks = await spotify_client.search(token, params.query, "track", params.limit, params.offset)
    return to_json(tracks)


async def search_artists_tool(params: SearchArtistsInput, token: str) -> str:
    artists = await spotify_client.search(token, params.query, "artist", params.limit, params.offset)
    return to_json(artists)


async def search_albums_tool(params: SearchAlbumsInput, token: str) -> str:
    albums = await spotify_client.search(token, params.query, "album", params.limit, params.offset)
    return to_json(albums)


async def search_playlists_tool(params: SearchPlaylistsInput, token: str) -> str:
    playlists = await spotify_client.search(token, params.query, "playlist", params.limit, params.offset)
    return to_json(playlists)


async def get_my_playlists_tool(params: GetMyPlaylistsInput, token: str) -> str:
    playlists = await spotify_client.get_my_playlists(token, params.limit, params.offset)
    return to_json(playlists)


async def create_playlist_tool(params: CreatePlaylistInput, token: str) -> str:
    """Create a playlist for the current user.

    Looks up the user's ID first, since playlists are created under
    /users/{user_id}/playlists.
    """
    playlist = await spotify_client.create_playlist(
        token,
        name=params.name,
        description=params.description,
        public=params.public,
    )
    return to_json(playlist)


async def add_tracks_to_playlist_tool(params: AddTracksToPlaylistInput, token: str) -> str:
    result = await spotify_client.add_tracks_to_playlist(token, params.playlist_id, params.track_uris)
    return to_json(result)


async def remove_tracks_from_playlist_tool(params: RemoveTracksFromPlaylistInput, token: str) -> str:
    result = await spotify_client.remove_tracks_from_playlist(token, params.playlist_id, params.track_uris)
    return to_json(result)


async def get_playlist_tracks_tool(params: GetPlaylistTracksInput, token: str) -> str:
    tracks = await spotify_client.get_playlist_tracks(token, params.playlist_id, params.limit, params.offset)
    return to_json(tracks)


async def get_current_playback_tool(params: GetCurrentPlaybackInput, token: str) -> str:
    """Return the playback state; "null" when nothing is playing."""
    playback = await spotify_client.get_current_playback(token)
    return to_json(playback)


async def play_track_tool(params: PlayTrackInput, token: str) -> str:
    await spotify_client.play(
        token,
        track_uri=params.track_uri,
        context_uri=params.context_uri,
        device_id=params.device_id,
    )
    return "Playback started successfully"


async def control_playback_tool(params: ControlPlaybackInput, token: str) -> str:
    await spotify_client.control_playback(token, params.action, params.device_id)
    return f"Playback {params.action} executed successfully"


async def get_recommendations_tool(params: GetRecommendationsInput, token: str) -> str:
    tracks = await spotify_client.get_recommendations(token, params)
    return to_json(tracks)


# ==============================================================================
# Tool Registry
# ==============================================================================

TOOLS: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec("search_tracks", "Search for tracks on Spotify", SearchTracksInput, search_tracks_tool),
        ToolSpec("search_artists", "Search for artists on Spotify", SearchArtistsInput, search_artists_tool),
        ToolSpec("search_albums", "Search for albums on Spotify", SearchAlbumsInput, search_albums_tool),
        ToolSpec("search_playlists", "Search for playlists on Spotify", SearchPlaylistsInput, search_playlists_tool),
        ToolSpec("get_my_playlists", "Get the current user's playlists", GetMyPlaylistsInput, get_my_playlists_tool),
        ToolSpec("create_playlist", "Create a new playlist", CreatePlaylistInput, create_playlist_tool),
        ToolSpec(
            "add_tracks_to_playlist",
            "Add tracks to a playlist",
            AddTracksToPlaylistInput,
            add_tracks_to_playlist_tool,
        ),
        ToolSpec(
            "remove_tracks_from_playlist",
            "Remove tracks from a playlist",
            RemoveTracksFromPlaylistInput,
            remove_tracks_from_playlist_tool,
        ),
        ToolSpec("get_playlist_tracks", "Get tracks from a playlist", GetPlaylistTracksInput, get_playlist_tracks_tool),
        ToolSpec(
            "get_current_playback",
            "Get information about the current playback state",
            GetCurrentPlaybackInput,
            get_current_playback_tool,
        ),
        ToolSpec("play_track", "Play a track or context (album, playlist)", PlayTrackInput, play_track_tool),
        ToolSpec(
            "control_playback",
            "Control playback (play, pause, next, previous)",
            ControlPlaybackInput,
            control_playback_tool,
        ),
        ToolSpec(
            "get_recommendations",
            "Get track recommendations based on seeds and audio features",
            GetRecommendationsInput,
            get_recommendations_tool,
        ),
    )
}
