from __future__ import annotations

from typing import Any, Mapping

from osint_investigator.agents.base import BaseAgent
from osint_investigator.analysis.name_matching import check_name_match
from osint_investigator.analysis.registries import parse_location_from_address
from osint_investigator.analysis.urls import display_domain
from osint_investigator.core.agents import AgentKind
from osint_investigator.core.errors import SearchQueryError
from osint_investigator.core.interfaces import AgentRequest, AgentResponse, SearchProvider

CONFIRMED_THRESHOLD = 0.6
MAX_RESULTS = 10


def score_result(exact: bool, partial: bool, location_present: bool) -> float:
    """Name-match confidence for one hit: exact 0.75 (0.90 with location), partial 0.35 (0.50)."""
    if exact:
        return 0.90 if location_present else 0.75
    if partial:
        return 0.50 if location_present else 0.35
    return 0.5


def build_name_query(search_data: Mapping[str, Any], target: str) -> str:
    """Exact-phrase name query with location and keywords appended as loose terms."""
    name = search_data.get("fullName") or target
    query = f'"{name}"'
    location = parse_location_from_address(search_data.get("address"))
    location_terms = [location[key] for key in ("city", "state") if location.get(key)]
    if location_terms:
        query += " " + " ".join(location_terms)
    keywords = search_data.get("keywords")
    if isinstance(keywords, str) and keywords.strip():
        query += " " + keywords.replace(",", " ").strip()
    return " ".join(query.split())


class WebSearchAgent(BaseAgent):
    """Web search run in-process against a ``SearchProvider``.

    Hits are split into confirmed and possible items by how closely the
    subject's name appears in the title and snippet.
    """

    def __init__(self, kind: AgentKind, provider: SearchProvider, max_results: int = MAX_RESULTS) -> None:
        super().__init__(kind.value)
        self.kind = kind
        self.provider = provider
        self.max_results = max_results

    def query_for(self, request: AgentRequest) -> str:
        search_data = request.payload.get("searchData") or {}
        if self.kind is AgentKind.WEB and search_data.get("fullName"):
            return build_name_query(search_data, request.target)
        return request.target

    async def aclose(self) -> None:
        await self.provider.aclose()

    async def invoke(self, request: AgentRequest) -> AgentResponse:
        query = self.query_for(request)
        search_data = request.payload.get("searchData") or {}
        try:
            results = await self.provider.search(query, num_results=self.max_results)
        except SearchQueryError as exc:
            self.log("web_search.provider_error", query=query, error=str(exc))
            return AgentResponse.failure(str(exc))

        subject = search_data.get("fullName") or request.target.strip('"')
        address_parts = [
            part.strip().lower() for part in str(search_data.get("address") or "").split(",") if len(part.strip()) > 2
        ]

        confirmed: list[dict[str, Any]] = []
        possible: list[dict[str, Any]] = []
        for entry in results[: self.max_results]:
            link = entry.get("url") or entry.get("link") or ""
            text = f"{entry.get('title') or ''} {entry.get('snippet') or ''}"
            match = check_name_match(text, subject, link)
            location_present = any(part in text.lower() for part in address_parts)
            score = score_result(match.exact, match.partial, location_present)
            item = {
                "title": entry.get("title") or "",
                "link": link,
                "snippet": entry.get("snippet") or "",
                "displayLink": entry.get("display_link") or display_domain(link),
                "confidenceScore": score,
                "isExactMatch": match.exact,
                "hasLocation": location_present,
            }
            (confirmed if score >= CONFIRMED_THRESHOLD else possible).append(item)

        confirmed.sort(key=lambda item: item["confidenceScore"], reverse=True)
        possible.sort(key=lambda item: item["confidenceScore"], reverse=True)
        self.log("web_search.completed", query=query, confirmed=len(confirmed), possible=len(possible))
        if not confirmed and not possible:
            return AgentResponse(data=None)
        return AgentResponse(
            data={"confirmedItems": confirmed, "possibleItems": possible, "query": query}
        )
