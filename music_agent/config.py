"""Configuration for the Music Agent backend"""
import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "4000"))

# Spotify MCP server
MCP_SERVER_URL = os.getenv("MCP_SERVER_URL", "http://localhost:3002/mcp")
MCP_PROTOCOL_VERSION = "2024-11-05"
MCP_CLIENT_NAME = "spotify-mcp-client"
MCP_CLIENT_VERSION = "1.0.0"
MCP_REQUEST_TIMEOUT_SECONDS = float(os.getenv("MCP_REQUEST_TIMEOUT_SECONDS", "60"))

# Initialization retry on HTTP 429: delay = 2**attempt * base
MCP_INIT_MAX_ATTEMPTS = 3
MCP_INIT_RETRY_BASE_SECONDS = 1.0

# Spotify OAuth
SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID", "")
SPOTIFY_CLIENT_SECRET = os.getenv("SPOTIFY_CLIENT_SECRET", "")
SPOTIFY_REDIRECT_URI = os.getenv("SPOTIFY_REDIRECT_URI", "http://127.0.0.1:5173/callback")
SPOTIFY_TOKEN_URL = os.getenv("SPOTIFY_TOKEN_URL", "https://accounts.spotify.com/api/token")

# Qloo insights
QLOO_API_URL = os.getenv("QLOO_API_URL", "https://hackathon.api.qloo.com")
QLOO_API_KEY = os.getenv("QLOO_API_KEY", "")
QLOO_FILTER_TYPE = os.getenv("QLOO_FILTER_TYPE", "urn:entity:place")
QLOO_INTEREST_ENTITY_ID = os.getenv("QLOO_INTEREST_ENTITY_ID", "FCE8B172-4795-43E4-B222-3B550DC05FD9")
QLOO_LOCATION_QUERY = os.getenv("QLOO_LOCATION_QUERY", "New York")

# Chat model
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-5-mini-2025-08-07")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.3"))

# LangSmith
LANGSMITH_PROJECT = os.getenv("LANGSMITH_PROJECT", "Spotify Music Agent")
