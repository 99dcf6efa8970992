import json

import httpx
import pytest
from mcp.types import CallToolRequest, CallToolRequestParams, CallToolResult, ListToolsRequest

from spotify_mcp_server.server import call_spotify_tool, create_server
from spotify_mcp_server.tools import TOOLS

from .conftest import track_payload


def make_server(tokens):
    """A server whose token resolver hands out `tokens` in order."""
    issued = iter(tokens)

    async def resolve_token():
        return next(issued)

    return create_server(resolve_token)


async def call(server, name, arguments):
    handler = server.request_handlers[CallToolRequest]
    result = await handler(
        CallToolRequest(method="tools/call", params=CallToolRequestParams(name=name, arguments=arguments))
    )
    assert isinstance(result.root, CallToolResult)
    return result.root


@pytest.fixture
def search_api(spotify_api):
    def spotify(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/search":
            return httpx.Response(200, json={"tracks": {"items": [track_payload()]}})
        return httpx.Response(404, json={"error": {"status": 404, "message": "Not found"}})

    spotify_api.handler = spotify
    return spotify_api


@pytest.mark.anyio
async def test_list_tools_advertises_every_spotify_tool():
    server = make_server([])

    result = await server.request_handlers[ListToolsRequest](ListToolsRequest(method="tools/list"))

    tools = result.root.tools
    assert [tool.name for tool in tools] == list(TOOLS)
    search = next(tool for tool in tools if tool.name == "search_tracks")
    assert search.description == "Search for tracks on Spotify"
    assert "query" in search.inputSchema["required"]


@pytest.mark.anyio
async def test_call_tool_runs_with_the_resolved_token(search_api):
    server = make_server(["first-token", "second-token"])

    first = await call(server, "search_tracks", {"query": "miles"})
    await call(server, "search_tracks", {"query": "coltrane"})

    assert first.isError is False
    assert json.loads(first.content[0].text)[0]["name"] == "So What"
    assert [r.headers["Authorization"] for r in search_api] == ["Bearer first-token", "Bearer second-token"]


@pytest.mark.anyio
async def test_unknown_tool_is_an_error_result(spotify_api):
    server = make_server(["token"])

    result = await call(server, "launch_rocket", {})

    assert result.isError is True
    assert result.content[0].text == "Unknown tool: launch_rocket"
    assert len(spotify_api) == 0


@pytest.mark.anyio
async def test_out_of_range_arguments_never_reach_spotify(spotify_api):
    server = make_server(["token"])

    result = await call(server, "search_tracks", {"query": "miles", "limit": 500})

    assert result.isError is True
    assert len(spotify_api) == 0


@pytest.mark.anyio
async def test_spotify_failure_is_an_error_result(spotify_api):
    spotify_api.handler = lambda request: httpx.Response(401, text="token expired")
    server = make_server(["stale-token"])

    result = await call(server, "get_my_playlists", {})

    assert result.isError is True
    assert result.content[0].text == "Spotify API error (401): token expired"


@pytest.mark.anyio
async def test_call_spotify_tool_reports_field_errors():
    with pytest.raises(ValueError, match=r"^Invalid arguments: query: "):
        await call_spotify_tool("search_tracks", {"query": ""}, "token")


@pytest.mark.anyio
async def test_call_spotify_tool_rejects_unknown_names():
    with pytest.raises(ValueError, match="Unknown tool: nope"):
        await call_spotify_tool("nope", {}, "token")
