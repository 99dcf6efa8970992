import httpx
import pytest

from spotify_mcp_server.spotify_client import spotify_client


@pytest.fixture
def anyio_backend():
    return "asyncio"


def track_payload(track_id: str = "t1", name: str = "So What") -> dict:
    return {
        "id": track_id,
        "name": name,
        "artists": [{"id": "a1", "name": "Miles Davis"}],
        "album": {"id": "al1", "name": "Kind of Blue", "images": []},
        "duration_ms": 562000,
        "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
        "preview_url": None,
        "popularity": 80,
    }


@pytest.fixture
def spotify_api(monkeypatch):
    """Route the global Spotify client through a MockTransport.

    Returns a list that records every request; assign `.handler` on the
    returned recorder to control responses.
    """

    class Recorder(list):
        handler = None

    recorder = Recorder()

    def dispatch(request: httpx.Request) -> httpx.Response:
        recorder.append(request)
        if recorder.handler is None:
            return httpx.Response(200, json={"id": "user-1", "external_urls": {"spotify": "x"}})
        return recorder.handler(request)

    monkeypatch.setattr(spotify_client, "_transport", httpx.MockTransport(dispatch))
    monkeypatch.setattr(spotify_client, "_http_client", None)
    return recorder
