from __future__ import annotations

import asyncio
from typing import Any

from tavily import TavilyClient

from osint_investigator.config import settings
from osint_investigator.core.errors import ProviderNotConfiguredError, SearchQueryError
from osint_investigator.core.interfaces import SearchProvider
from osint_investigator.utils import get_logger
from osint_investigator.utils.retry import RetryPolicy


class TavilyProvider(SearchProvider):
    """Tavily search API integration."""

    def __init__(self, api_key: str | None = None) -> None:
        api_key = api_key or settings.secrets.tavily_api_key
        if not api_key:
            raise ProviderNotConfiguredError("Tavily API key is not configured.")

        self.client = TavilyClient(api_key=api_key)
        self.retry_policy = RetryPolicy(attempts=settings.runtime.agent_retry_attempts)
        self.logger = get_logger(__name__)

    async def search(self, query: str, **kwargs: Any) -> list[dict[str, Any]]:
        """Execute search query via Tavily API."""
        return await asyncio.to_thread(self._search_with_retry, query, kwargs)

    def _search_with_retry(self, query: str, options: dict[str, Any]) -> list[dict[str, Any]]:
        @self.retry_policy.wrap
        def _call() -> list[dict[str, Any]]:
            try:
                response = self.client.search(
                    query=query,
                    search_depth=options.get("search_depth", "basic"),
                    max_results=options.get("num_results", 10),
                )
            except (TimeoutError, ConnectionError):
                raise
            except Exception as e:
                raise SearchQueryError(f"Tavily search failed: {e}") from e

            if "results" not in response:
                return []

            return [
                {
                    "title": entry.get("title", "Untitled"),
                    "url": entry.get("url", ""),
                    "snippet": entry.get("content", ""),
                    "source": "tavily",
                }
                for entry in response.get("results", [])
            ]

        results = _call()
        self.logger.debug("tavily.search", query=query, results=len(results))
        return results
