"""FastAPI backend for the Spotify music assistant.

Routes:
- POST /spotify/token: exchange a Spotify authorization code for tokens
- POST /init: run the preferences graph (Qloo insights + personalised reply)
- POST /chat: one turn with the Spotify music agent
- POST /chat/stream: the same, streamed as Server-Sent Events
- GET /health

Each chat request opens its own MCP session with the user's Spotify token
and closes it when the agent finishes.
"""
import argparse
import os
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from langchain_openai import ChatOpenAI

from .config import HOST, LANGSMITH_PROJECT, LLM_MODEL, LLM_TEMPERATURE, PORT
from .graph import build_preferences_graph, run_preferences_graph
from .insights import QlooInsightsClient
from .schemas import (
    InitRequest,
    InitResponse,
    MusicChatRequest,
    SpotifyTokenResponse,
    TokenExchangeRequest,
)
from .spotify_agent import run_music_agent, stream_music_agent
from .spotify_auth import SpotifyAuthError, exchange_code_for_token

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

os.environ.setdefault("LANGSMITH_PROJECT", LANGSMITH_PROJECT)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup resources."""
    logger.info("[Backend] Starting Spotify Music Agent backend")

    app.state.http_client = httpx.AsyncClient(timeout=30.0)
    app.state.llm = ChatOpenAI(model_name=LLM_MODEL, temperature=LLM_TEMPERATURE)
    app.state.insights_client = QlooInsightsClient()
    app.state.preferences_graph = build_preferences_graph(app.state.insights_client, app.state.llm)

    logger.info("[Backend] LLM initialized, ready to accept requests")

    yield

    logger.info("[Backend] Shutting down...")
    await app.state.insights_client.close()
    await app.state.http_client.aclose()


app = FastAPI(
    title="Spotify Music Agent Backend",
    lifespan=lifespan,
)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==============================================================================
# API Endpoints
# ==============================================================================

@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "spotify-music-agent",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "llm_ready": getattr(app.state, "llm", None) is not None,
    }


@app.post("/spotify/token", response_model=SpotifyTokenResponse)
async def spotify_token(request: TokenExchangeRequest):
    """Exchange an authorization code for Spotify access and refresh tokens."""
    if not request.code:
        raise HTTPException(status_code=400, detail="Authorization code is required")

    try:
        return await exchange_code_for_token(app.state.http_client, request.code)
    except SpotifyAuthError as e:
        logger.error(f"[Backend] Spotify token exchange failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to exchange authorization code", "details": str(e)},
        )


@app.post("/init")
async def init(request: InitRequest):
    """Run the preferences graph and return its final state."""
    try:
        state = await run_preferences_graph(
            app.state.preferences_graph,
            request.preferences(),
            [msg.model_dump() for msg in request.chat_history],
        )
        response = InitResponse.model_validate(state)
    except Exception as e:
        logger.error(f"[Backend] /init failed: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    return response.model_dump(by_alias=False)


@app.post("/chat")
async def chat(request: MusicChatRequest):
    """Non-streaming chat with the Spotify music agent."""
    reply = await run_music_agent(
        request.spotify_token,
        request.message,
        request.history,
        app.state.llm,
    )
    return {"role": "assistant", "content": reply}


@app.post("/chat/stream")
async def chat_stream(request: MusicChatRequest):
    """Stream chat responses using Server-Sent Events.

    The response stream contains SSE events with the following types:
    - message_start: New message starting
    - message_chunk: Content chunk
    - tool_call: Tool being used
    - message_end: Message complete
    - error: Error occurred
    """
    return StreamingResponse(
        stream_music_agent(
            request.spotify_token,
            request.message,
            request.history,
            app.state.llm,
        ),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable buffering in nginx
        },
    )


def main():
    import uvicorn

    parser = argparse.ArgumentParser(description="Spotify Music Agent backend")
    parser.add_argument("--host", default=HOST, help="Host to bind to")
    parser.add_argument("--port", type=int, default=PORT, help="Port to bind to")
    args = parser.parse_args()

    logger.info(f"[Backend] Starting Spotify Music Agent backend on port {args.port}")
    uvicorn.run("music_agent.main:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
