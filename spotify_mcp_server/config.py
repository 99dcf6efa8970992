"""Configuration for the Spotify MCP Server"""
import os

# Spotify Web API
SPOTIFY_API_URL = os.getenv("SPOTIFY_API_URL", "https://api.spotify.com/v1")
SPOTIFY_API_TIMEOUT_SECONDS = float(os.getenv("SPOTIFY_API_TIMEOUT_SECONDS", "30"))

# Server identity reported during the initialize handshake
SERVER_NAME = "spotify-mcp-server"
SERVER_VERSION = "0.1.0"

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3002"))

# Header carrying the session identifier in both directions
SESSION_ID_HEADER = "mcp-session-id"

# Sessions idle longer than this are closed by the sweep task
SESSION_TIMEOUT_SECONDS = int(os.getenv("SESSION_TIMEOUT_SECONDS", str(30 * 60)))
SESSION_SWEEP_INTERVAL_SECONDS = int(os.getenv("SESSION_SWEEP_INTERVAL_SECONDS", str(5 * 60)))

# Upper bound on closing every open session at shutdown
SHUTDOWN_GRACE_SECONDS = float(os.getenv("SHUTDOWN_GRACE_SECONDS", "10"))

# Answer POST /mcp with plain JSON instead of an event stream
MCP_JSON_RESPONSE = os.getenv("MCP_JSON_RESPONSE", "false").lower() == "true"

# Logging
LOG_SESSION_EVENTS = os.getenv("LOG_SESSION_EVENTS", "true").lower() == "true"
