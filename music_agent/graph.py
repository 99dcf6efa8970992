"""Preferences pipeline: fetch Qloo insights, then generate a personalised reply.

    START -> fetch_insights -> generate_response -> END
"""
import json
from typing import Any, Optional, TypedDict
import logging

from langchain_core.language_models import BaseChatModel
from langgraph.graph import END, START, StateGraph
from langsmith import traceable

from .agent_instruction import personalized_chat_instruction
from .insights import QlooInsightsClient
from .schemas import UserPreferences

logger = logging.getLogger(__name__)


class PreferencesState(TypedDict):
    user_preferences: dict
    insights: Any
    chat_history: list[dict]


def format_chat_history(chat_history: list[dict]) -> str:
    return "\n".join(f"{m.get('role', 'user')}: {m.get('content', '')}" for m in chat_history)


def build_personalized_prompt(state: PreferencesState) -> str:
    return personalized_chat_instruction.format(
        preferences=json.dumps(state.get("user_preferences") or {}, indent=2),
        insights=json.dumps(state.get("insights"), indent=2, default=str),
        chat_history=format_chat_history(state.get("chat_history") or []),
    )


def build_preferences_graph(insights_client: QlooInsightsClient, llm: BaseChatModel):
    """Compile the preferences graph around an insights client and a chat model."""

    async def fetch_insights(state: PreferencesState) -> dict:
        preferences = UserPreferences.model_validate(state.get("user_preferences") or {})
        insights = await insights_client.fetch_insights(preferences)
        logger.info("[Graph] Insights fetched")
        return {"insights": insights}

    async def generate_response(state: PreferencesState) -> dict:
        prompt = build_personalized_prompt(state)
        reply = await llm.ainvoke(prompt)
        content = reply.content if isinstance(reply.content, str) else str(reply.content)
        logger.info(f"[Graph] Generated reply ({len(content)} chars)")
        history = list(state.get("chat_history") or [])
        history.append({"role": "agent", "content": content})
        return {"chat_history": history}

    builder = StateGraph(PreferencesState)
    builder.add_node("fetch_insights", fetch_insights)
    builder.add_node("generate_response", generate_response)
    builder.add_edge(START, "fetch_insights")
    builder.add_edge("fetch_insights", "generate_response")
    builder.add_edge("generate_response", END)
    return builder.compile()


@traceable(name="preferences_pipeline")
async def run_preferences_graph(
    graph,
    preferences: UserPreferences,
    chat_history: Optional[list[dict]] = None,
) -> PreferencesState:
    """Run the graph from a fresh state and return the final state."""
    initial: PreferencesState = {
        "user_preferences": preferences.model_dump(),
        "insights": None,
        "chat_history": list(chat_history or []),
    }
    return await graph.ainvoke(initial)
