import pytest
from langchain_core.language_models import FakeListChatModel
from langchain_core.messages import AIMessage, ToolMessage

from music_agent import spotify_agent
from music_agent.errors import RemoteHandshakeError
from music_agent.schemas import ChatMessage
from music_agent.spotify_agent import (
    FRIENDLY_ERROR_MESSAGE,
    run_music_agent,
    sse_event,
    stream_music_agent,
    to_langchain_messages,
)


class FakeSessionClient:
    def __init__(self, init_error=None):
        self.init_error = init_error
        self.session_id = "session-abc"
        self.initialized = False
        self.closed = False

    async def initialize(self):
        if self.init_error is not None:
            raise self.init_error
        self.initialized = True

    async def close(self):
        self.closed = True


class FakeAgent:
    def __init__(self, reply="Here are some jazz tracks.", updates=None):
        self.reply = reply
        self.updates = updates or []
        self.inputs = []

    async def ainvoke(self, payload):
        self.inputs.append(payload)
        return {"messages": [AIMessage(content=self.reply)]}

    async def astream(self, payload):
        self.inputs.append(payload)
        for update in self.updates:
            yield update


@pytest.fixture
def llm():
    return FakeListChatModel(responses=["unused"])


def patch_agent(monkeypatch, agent):
    async def fake_create_agent_with_session(client, llm):
        return agent

    monkeypatch.setattr(spotify_agent, "create_agent_with_session", fake_create_agent_with_session)


def test_history_roles_are_mapped_for_langchain():
    messages = to_langchain_messages(
        [ChatMessage(role="user", content="hi"), ChatMessage(role="agent", content="hello")],
        "play something",
    )
    assert messages == [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
        {"role": "user", "content": "play something"},
    ]


def test_sse_event_splits_multiline_data():
    assert sse_event("message_chunk", "one\ntwo") == "event: message_chunk\ndata: one\ndata: two\n\n"


@pytest.mark.anyio
async def test_run_music_agent_returns_reply_and_closes_session(monkeypatch, llm):
    agent = FakeAgent()
    patch_agent(monkeypatch, agent)
    client = FakeSessionClient()

    reply = await run_music_agent("token", "find jazz", [], llm, client=client)

    assert reply == "Here are some jazz tracks."
    assert agent.inputs[0]["messages"][-1] == {"role": "user", "content": "find jazz"}
    assert client.closed


@pytest.mark.anyio
async def test_run_music_agent_turns_failures_into_friendly_reply(llm):
    client = FakeSessionClient(init_error=RemoteHandshakeError(503, "unavailable"))

    reply = await run_music_agent("token", "find jazz", [], llm, client=client)

    assert reply == FRIENDLY_ERROR_MESSAGE
    assert client.closed


@pytest.mark.anyio
async def test_stream_emits_tool_calls_and_message_events(monkeypatch, llm):
    agent = FakeAgent(
        updates=[
            {"model": {"messages": [AIMessage(content="")]}},
            {"tools": {"messages": [ToolMessage(content="[]", name="search_tracks", tool_call_id="call-1")]}},
            {"model": {"messages": [AIMessage(content="Found it.\nEnjoy!")]}},
        ]
    )
    patch_agent(monkeypatch, agent)
    client = FakeSessionClient()

    events = [event async for event in stream_music_agent("token", "find jazz", [], llm, client=client)]

    assert events == [
        "event: tool_call\ndata: search_tracks\n\n",
        "event: message_start\ndata: assistant\n\n",
        "event: message_chunk\ndata: Found it.\ndata: Enjoy!\n\n",
        "event: message_end\ndata: \n\n",
    ]
    assert client.closed


@pytest.mark.anyio
async def test_stream_reports_errors_as_an_event(llm):
    client = FakeSessionClient(init_error=RemoteHandshakeError(None, "connection refused"))

    events = [event async for event in stream_music_agent("token", "find jazz", [], llm, client=client)]

    assert events == [sse_event("error", FRIENDLY_ERROR_MESSAGE)]
    assert client.closed
