import pytest
from langchain_core.language_models import FakeListChatModel

from music_agent.graph import build_personalized_prompt, build_preferences_graph, run_preferences_graph
from music_agent.insights import InsightsAPIError
from music_agent.schemas import UserPreferences


class FakeInsightsClient:
    def __init__(self, insights=None, error=None):
        self.insights = insights if insights is not None else {"results": {"entities": [{"name": "Blue Note"}]}}
        self.error = error
        self.seen = []

    async def fetch_insights(self, preferences):
        self.seen.append(preferences)
        if self.error is not None:
            raise self.error
        return self.insights


@pytest.mark.anyio
async def test_graph_fetches_insights_then_appends_reply():
    insights = FakeInsightsClient()
    llm = FakeListChatModel(responses=["Try the Blue Note in the Village tonight."])
    graph = build_preferences_graph(insights, llm)

    state = await run_preferences_graph(
        graph,
        UserPreferences(favorite_genres=["jazz"], favorite_artists=["Miles Davis"]),
        [{"role": "user", "content": "Where should I go tonight?"}],
    )

    assert insights.seen[0].favorite_genres == ["jazz"]
    assert state["insights"] == insights.insights
    assert state["user_preferences"]["favorite_artists"] == ["Miles Davis"]
    assert state["chat_history"] == [
        {"role": "user", "content": "Where should I go tonight?"},
        {"role": "agent", "content": "Try the Blue Note in the Village tonight."},
    ]


@pytest.mark.anyio
async def test_graph_starts_with_empty_history():
    graph = build_preferences_graph(FakeInsightsClient(), FakeListChatModel(responses=["Hello!"]))

    state = await run_preferences_graph(graph, UserPreferences())

    assert state["chat_history"] == [{"role": "agent", "content": "Hello!"}]


@pytest.mark.anyio
async def test_insights_failure_propagates():
    graph = build_preferences_graph(
        FakeInsightsClient(error=InsightsAPIError("Qloo API error 500: down", status_code=500)),
        FakeListChatModel(responses=["unused"]),
    )

    with pytest.raises(InsightsAPIError):
        await run_preferences_graph(graph, UserPreferences())


def test_prompt_includes_preferences_insights_and_history():
    prompt = build_personalized_prompt(
        {
            "user_preferences": {"favorite_genres": ["ambient"]},
            "insights": {"results": {"entities": [{"name": "Brian Eno"}]}},
            "chat_history": [{"role": "user", "content": "Something calm please"}],
        }
    )

    assert "ambient" in prompt
    assert "Brian Eno" in prompt
    assert "user: Something calm please" in prompt
