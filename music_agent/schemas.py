"""Pydantic schemas for the Music Agent backend.

Request bodies come from the browser client, which sends camelCase keys;
snake_case is accepted as well.
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Optional


class ChatMessage(BaseModel):
    """A chat message."""
    role: str = Field(..., description="Message role: 'user', 'assistant' or 'agent'")
    content: str = Field(..., description="Message content")


class UserPreferences(BaseModel):
    """Taste profile collected by the browser client."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    favorite_genres: list[str] = Field(default_factory=list)
    favorite_artists: list[str] = Field(default_factory=list)
    favorite_movies: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)


class InitRequest(UserPreferences):
    """Body of POST /init: the preferences plus any chat so far."""
    chat_history: list[ChatMessage] = Field(default_factory=list)

    def preferences(self) -> UserPreferences:
        return UserPreferences.model_validate(self.model_dump(exclude={"chat_history"}))


class InitResponse(BaseModel):
    """Final state of the preferences pipeline."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_preferences: UserPreferences
    insights: Any = None
    chat_history: list[ChatMessage] = Field(default_factory=list)


class TokenExchangeRequest(BaseModel):
    code: Optional[str] = Field(default=None, description="Authorization code from the Spotify callback")


class SpotifyTokenResponse(BaseModel):
    """Token payload returned by the Spotify accounts service."""
    access_token: str
    token_type: str
    expires_in: int
    refresh_token: Optional[str] = None
    scope: str = ""


class MusicChatRequest(BaseModel):
    """Request for the Spotify music assistant."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str = Field(..., description="User's message", min_length=1)
    spotify_token: str = Field(..., description="Spotify access token", min_length=1)
    history: list[ChatMessage] = Field(default_factory=list, description="Conversation history")
