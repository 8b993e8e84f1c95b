from __future__ import annotations

from typing import Any

import httpx

from osint_investigator.config import settings
from osint_investigator.core.errors import ProviderNotConfiguredError, SearchQueryError
from osint_investigator.core.interfaces import SearchProvider
from osint_investigator.utils import get_logger
from osint_investigator.utils.retry import RetryPolicy

GOOGLE_CSE_ENDPOINT = "https://www.googleapis.com/customsearch/v1"
# The Custom Search API returns at most 10 results per page.
MAX_PAGE_SIZE = 10


class GoogleCustomSearchProvider(SearchProvider):
    """Google Programmable Search (Custom Search JSON API) over httpx."""

    def __init__(
        self,
        api_key: str | None = None,
        cse_id: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key or settings.secrets.google_api_key
        self.cse_id = cse_id or settings.secrets.google_cse_id
        if not self.api_key or not self.cse_id:
            raise ProviderNotConfiguredError("GOOGLE_API_KEY and GOOGLE_CSE_ID must both be set.")

        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(20.0))
        self.retry_policy = RetryPolicy(attempts=settings.runtime.agent_retry_attempts)
        self.logger = get_logger(__name__)

    async def search(self, query: str, **kwargs: Any) -> list[dict[str, Any]]:
        params = {
            "key": self.api_key,
            "cx": self.cse_id,
            "q": query,
            "num": min(int(kwargs.get("num_results", MAX_PAGE_SIZE)), MAX_PAGE_SIZE),
        }

        @self.retry_policy.wrap_async
        async def _call() -> httpx.Response:
            return await self._client.get(GOOGLE_CSE_ENDPOINT, params=params)

        response = await _call()
        if response.status_code >= 400:
            raise SearchQueryError(f"Google CSE returned HTTP {response.status_code}")

        items = response.json().get("items") or []
        self.logger.debug("google_cse.search", query=query, results=len(items))
        return [
            {
                "title": item.get("title", "Untitled"),
                "url": item.get("link", ""),
                "snippet": item.get("snippet", ""),
                "display_link": item.get("displayLink", ""),
                "source": "google",
            }
            for item in items
        ]

    async def aclose(self) -> None:
        await self._client.aclose()
