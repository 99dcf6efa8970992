"""Spotify music agent.

Session lifecycle:
- Each chat request carries the user's Spotify access token
- The agent opens an MCP session at the start of each invocation
- The session is closed when the invocation completes, success or error
"""
from typing import AsyncGenerator, Optional
import logging

from langchain.agents import create_agent
from langchain_core.language_models import BaseChatModel
from langsmith import traceable

from .agent_instruction import music_assistant_instruction
from .mcp_client import SpotifyMCPClient
from .schemas import ChatMessage
from .tool_adapter import advertised_names, build_spotify_tools

logger = logging.getLogger(__name__)

FRIENDLY_ERROR_MESSAGE = (
    "Sorry, I ran into a problem talking to Spotify. "
    "Please check that you're logged in and try again."
)

# Roles the browser client uses that LangChain does not know
ROLE_ALIASES = {"agent": "assistant"}


def to_langchain_messages(history: list[ChatMessage], user_message: str) -> list[dict]:
    messages = [
        {"role": ROLE_ALIASES.get(msg.role, msg.role), "content": msg.content}
        for msg in history
    ]
    messages.append({"role": "user", "content": user_message})
    return messages


async def create_agent_with_session(client: SpotifyMCPClient, llm: BaseChatModel):
    """Create an agent whose tools call through an initialized session."""
    listing = await client.list_procedures()
    tools = build_spotify_tools(client, available=advertised_names(listing))
    logger.info(f"[Agent] Loaded {len(tools)} tools for session {client.session_id[:8]}...")

    return create_agent(
        model=llm,
        tools=tools,
        system_prompt=music_assistant_instruction,
    )


@traceable(name="spotify_music_agent")
async def run_music_agent(
    spotify_token: str,
    message: str,
    history: list[ChatMessage],
    llm: BaseChatModel,
    client: Optional[SpotifyMCPClient] = None,
) -> str:
    """Answer one chat turn with the Spotify tools available.

    Any failure is logged and turned into a friendly reply.
    """
    client = client or SpotifyMCPClient(spotify_token)
    try:
        await client.initialize()
        agent = await create_agent_with_session(client, llm)
        result = await agent.ainvoke({"messages": to_langchain_messages(history, message)})
        return result["messages"][-1].content
    except Exception as e:
        logger.error(f"[Agent] Error running music agent: {e}", exc_info=True)
        return FRIENDLY_ERROR_MESSAGE
    finally:
        await client.close()


def sse_event(event: str, data: str) -> str:
    """Format one SSE event; multi-line data becomes multiple data: fields."""
    lines = "".join(f"data: {line}\n" for line in data.split("\n"))
    return f"event: {event}\n{lines}\n"


@traceable(name="spotify_music_agent_stream")
async def stream_music_agent(
    spotify_token: str,
    message: str,
    history: list[ChatMessage],
    llm: BaseChatModel,
    client: Optional[SpotifyMCPClient] = None,
) -> AsyncGenerator[str, None]:
    """Stream agent responses as SSE events.

    Yields SSE-formatted messages with the following event types:
    - message_start: Indicates a new message is starting
    - message_chunk: Content chunk for the current message
    - tool_call: Indicates a tool is being called
    - message_end: Indicates the message is complete
    - error: An error occurred
    """
    client = client or SpotifyMCPClient(spotify_token)
    try:
        await client.initialize()
        agent = await create_agent_with_session(client, llm)

        message_started = False
        async for chunk in agent.astream({"messages": to_langchain_messages(history, message)}):
            if not isinstance(chunk, dict) or not chunk:
                continue
            node = next(iter(chunk))
            update = chunk[node] or {}
            messages = update.get("messages", []) if isinstance(update, dict) else []

            if node == "tools":
                for tool_message in messages:
                    logger.info(f"[Agent] Tool call: {tool_message.name}")
                    yield sse_event("tool_call", tool_message.name)

            elif node == "model":
                for model_message in messages:
                    content = model_message.content if isinstance(model_message.content, str) else ""
                    content = content.split("</think>")[-1].strip()
                    if not content:
                        continue
                    if not message_started:
                        yield sse_event("message_start", "assistant")
                        message_started = True
                    yield sse_event("message_chunk", content)
            else:
                logger.debug(f"[Agent] Ignoring update from node: {node}")

        if message_started:
            yield sse_event("message_end", "")
        else:
            logger.warning("[Agent] Stream ended but no message was started")

    except Exception as e:
        logger.error(f"[Agent] Error during streaming: {e}", exc_info=True)
        yield sse_event("error", FRIENDLY_ERROR_MESSAGE)

    finally:
        await client.close()
