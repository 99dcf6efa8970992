import base64

import httpx
import pytest

from music_agent import config
from music_agent.insights import InsightsAPIError, QlooInsightsClient
from music_agent.schemas import UserPreferences
from music_agent.spotify_auth import SpotifyAuthError, exchange_code_for_token


@pytest.mark.anyio
async def test_fetch_insights_sends_configured_query():
    seen = []

    def qloo(request):
        seen.append(request)
        return httpx.Response(200, json={"success": True, "results": {"entities": []}})

    client = QlooInsightsClient(
        base_url="https://qloo.test", api_key="qloo-key", transport=httpx.MockTransport(qloo)
    )

    insights = await client.fetch_insights(UserPreferences(favorite_genres=["jazz"]))
    await client.close()

    assert insights == {"success": True, "results": {"entities": []}}
    request = seen[0]
    assert request.url.path == "/v2/insights"
    assert request.headers["X-Api-Key"] == "qloo-key"
    assert request.url.params["filter.type"] == config.QLOO_FILTER_TYPE
    assert request.url.params["signal.interests.entities"] == config.QLOO_INTEREST_ENTITY_ID
    assert request.url.params["filter.location.query"] == config.QLOO_LOCATION_QUERY


@pytest.mark.anyio
async def test_fetch_insights_raises_on_upstream_error():
    client = QlooInsightsClient(
        base_url="https://qloo.test",
        api_key="bad",
        transport=httpx.MockTransport(lambda request: httpx.Response(403, text="forbidden")),
    )

    with pytest.raises(InsightsAPIError) as exc_info:
        await client.fetch_insights(UserPreferences())

    assert exc_info.value.status_code == 403


def test_build_params_needs_no_preferences():
    params = QlooInsightsClient(base_url="https://qloo.test", api_key="k").build_params()
    assert params == {
        "filter.type": config.QLOO_FILTER_TYPE,
        "signal.interests.entities": config.QLOO_INTEREST_ENTITY_ID,
        "filter.location.query": config.QLOO_LOCATION_QUERY,
    }


@pytest.mark.anyio
async def test_exchange_code_posts_form_with_basic_auth(monkeypatch):
    monkeypatch.setattr("music_agent.spotify_auth.SPOTIFY_CLIENT_ID", "client-id")
    monkeypatch.setattr("music_agent.spotify_auth.SPOTIFY_CLIENT_SECRET", "client-secret")
    seen = []

    def accounts(request):
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "access_token": "access",
                "token_type": "Bearer",
                "expires_in": 3600,
                "refresh_token": "refresh",
                "scope": "user-read-private",
            },
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(accounts)) as http_client:
        token = await exchange_code_for_token(http_client, "auth-code", redirect_uri="http://app.test/callback")

    assert token.access_token == "access"
    assert token.refresh_token == "refresh"

    request = seen[0]
    form = dict(httpx.QueryParams(request.content.decode()))
    assert form == {
        "grant_type": "authorization_code",
        "code": "auth-code",
        "redirect_uri": "http://app.test/callback",
    }
    expected_auth = "Basic " + base64.b64encode(b"client-id:client-secret").decode()
    assert request.headers["Authorization"] == expected_auth


@pytest.mark.anyio
async def test_exchange_code_surfaces_spotify_error():
    def accounts(request):
        return httpx.Response(400, json={"error": "invalid_grant", "error_description": "Invalid authorization code"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(accounts)) as http_client:
        with pytest.raises(SpotifyAuthError) as exc_info:
            await exchange_code_for_token(http_client, "stale-code")

    assert str(exc_info.value) == "Spotify API Error: invalid_grant"
    assert exc_info.value.status_code == 400
