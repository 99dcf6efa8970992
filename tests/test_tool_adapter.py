import json

import pytest

from music_agent.errors import RemoteProcedureError, SessionNotInitialized
from music_agent.tool_adapter import (
    SPOTIFY_PROCEDURES,
    advertised_names,
    build_spotify_tools,
)
from spotify_mcp_server.tools import TOOLS


class RecordingClient:
    """Stands in for an initialized SpotifyMCPClient."""

    def __init__(self, result=None, error=None):
        self.result = result if result is not None else {"content": [{"type": "text", "text": "[]"}]}
        self.error = error
        self.calls = []

    async def call_procedure(self, name, arguments=None):
        self.calls.append((name, arguments))
        if self.error is not None:
            raise self.error
        return self.result


def test_procedure_catalogue_matches_the_server():
    assert [spec.name for spec in SPOTIFY_PROCEDURES] == list(TOOLS)
    for spec in SPOTIFY_PROCEDURES:
        assert spec.args_schema is TOOLS[spec.name].input_model
        assert spec.description == TOOLS[spec.name].description


def test_builds_one_tool_per_procedure():
    tools = build_spotify_tools(RecordingClient())
    assert len(tools) == 13
    assert {tool.name for tool in tools} == {spec.name for spec in SPOTIFY_PROCEDURES}


def test_only_advertised_procedures_are_wrapped():
    listing = {"tools": [{"name": "search_tracks"}, {"name": "play_track"}, {"name": "not_ours"}]}
    tools = build_spotify_tools(RecordingClient(), available=advertised_names(listing))
    assert sorted(tool.name for tool in tools) == ["play_track", "search_tracks"]


def test_advertised_names_tolerates_odd_listings():
    assert advertised_names(None) == set()
    assert advertised_names({"tools": ["bad", {"name": "search_albums"}]}) == {"search_albums"}


@pytest.mark.anyio
async def test_tool_forwards_validated_arguments():
    client = RecordingClient()
    tool = next(t for t in build_spotify_tools(client) if t.name == "search_tracks")

    output = await tool.ainvoke({"query": "jazz", "limit": 5})

    assert client.calls == [("search_tracks", {"query": "jazz", "limit": 5, "offset": 0})]
    assert json.loads(output) == client.result


@pytest.mark.anyio
async def test_optional_arguments_left_unset_are_not_sent():
    client = RecordingClient()
    tool = next(t for t in build_spotify_tools(client) if t.name == "control_playback")

    await tool.ainvoke({"action": "pause"})

    assert client.calls == [("control_playback", {"action": "pause"})]


@pytest.mark.anyio
async def test_client_errors_come_back_as_text():
    client = RecordingClient(error=RemoteProcedureError(-32602, "Unknown tool: search_tracks"))
    tool = next(t for t in build_spotify_tools(client) if t.name == "search_tracks")

    output = await tool.ainvoke({"query": "jazz"})

    assert output == "Error: Unknown tool: search_tracks"


@pytest.mark.anyio
async def test_closed_session_errors_come_back_as_text():
    client = RecordingClient(error=SessionNotInitialized("closed"))
    tool = next(t for t in build_spotify_tools(client) if t.name == "get_current_playback")

    output = await tool.ainvoke({})

    assert output == "Error: Session not initialized (state: closed)"
