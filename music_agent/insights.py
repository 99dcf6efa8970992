"""API Client for the Qloo insights service."""
from typing import Any, Optional
import logging

import httpx

from .config import (
    QLOO_API_KEY,
    QLOO_API_URL,
    QLOO_FILTER_TYPE,
    QLOO_INTEREST_ENTITY_ID,
    QLOO_LOCATION_QUERY,
)
from .schemas import UserPreferences

logger = logging.getLogger(__name__)


class InsightsAPIError(Exception):
    """Raised when an insights request fails."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class QlooInsightsClient:
    """Client for the Qloo /v2/insights endpoint."""

    def __init__(
        self,
        base_url: str = QLOO_API_URL,
        api_key: str = QLOO_API_KEY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url
        self._api_key = api_key
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=30.0,
                transport=self._transport,
            )
        return self._http_client

    async def close(self):
        """Close the HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    def build_params(self) -> dict[str, str]:
        """Query parameters for an insights lookup.

        The configured interest entity and location are used for every user.
        """
        return {
            "filter.type": QLOO_FILTER_TYPE,
            "signal.interests.entities": QLOO_INTEREST_ENTITY_ID,
            "filter.location.query": QLOO_LOCATION_QUERY,
        }

    async def fetch_insights(self, preferences: UserPreferences) -> Any:
        """Fetch insights for a user's preferences.

        Raises:
            InsightsAPIError: If the request fails
        """
        # TODO: resolve preferences.favorite_artists to Qloo entity IDs and send
        # them as signal.interests.entities instead of the configured entity
        client = await self._get_http_client()

        try:
            response = await client.get(
                "/v2/insights",
                params=self.build_params(),
                headers={"X-Api-Key": self._api_key},
            )
        except httpx.RequestError as e:
            logger.error(f"[Insights] Network error: {e}")
            raise InsightsAPIError(f"Network error: {e}")

        if response.status_code >= 400:
            logger.error(f"[Insights] Qloo API error: {response.status_code} - {response.text}")
            raise InsightsAPIError(
                f"Qloo API error {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        return response.json()
