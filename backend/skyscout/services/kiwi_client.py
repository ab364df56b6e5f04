"""Kiwi MCP client — default search provider, one tool call per airport pair.

The MCP response is returned untouched ({"content": [{"type": "text",
"text": "[...]"}]}); turning it into candidates is the extractor's job.
"""

import logging
from typing import Any

import httpx

from skyscout.config import settings
from skyscout.errors import ProviderCallError
from skyscout.services.flight_search_service import SearchQuery

logger = logging.getLogger(__name__)

SEARCH_TOOL_PATH = "/mcp/v1/tools/search-flight/call"


def format_kiwi_date(iso_date: str) -> str:
    """YYYY-MM-DD -> DD/MM/YYYY."""
    year, month, day = iso_date.split("-")
    return f"{day}/{month}/{year}"


class KiwiClient:
    """Adapter for the Kiwi.com MCP search-flight tool."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url or settings.kiwi_mcp_url
        self._timeout = timeout if timeout is not None else settings.kiwi_timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def build_arguments(self, query: SearchQuery) -> dict:
        arguments: dict[str, Any] = {
            "flyFrom": query.origin,
            "flyTo": query.destination,
            "departureDate": format_kiwi_date(query.departure_date),
            "passengers": {"adults": 1},
            "sort": "price",
            "curr": query.currency,
            "limit": query.max_results,
        }
        if query.return_date:
            arguments["returnDate"] = format_kiwi_date(query.return_date)
        return arguments

    async def search(self, query: SearchQuery) -> Any:
        """Run one search. Transport and HTTP failures raise ProviderCallError."""
        arguments = self.build_arguments(query)
        logger.debug(f"Kiwi search {query.origin}->{query.destination}: {arguments}")

        client = await self._get_client()
        try:
            resp = await client.post(SEARCH_TOOL_PATH, json={"arguments": arguments})
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ProviderCallError(
                f"Kiwi MCP error: {e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except httpx.RequestError as e:
            raise ProviderCallError(f"Kiwi MCP unreachable: {e}") from e

        try:
            return resp.json()
        except ValueError:
            # Not JSON; let the extractor try the free-text path
            return resp.text
