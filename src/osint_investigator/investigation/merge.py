"""Merge and deduplicate the results of every successful web-class task.

Outcomes are walked in dispatch order, ``confirmedItems`` before
``possibleItems``; the first item seen for a normalized URL wins and later
duplicates are dropped. Because the walk happens after every task settled,
completion order never influences which duplicate survives.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from osint_investigator.analysis.name_matching import extract_potential_relatives, is_keyword_potential_relative
from osint_investigator.analysis.urls import display_domain, normalize_url
from osint_investigator.core.state import SearchParameters, WebResultItem
from osint_investigator.investigation.dispatcher import TaskOutcome
from osint_investigator.utils import get_logger

logger = get_logger(__name__)

_NON_DIGIT = re.compile(r"\D")


@dataclass(slots=True)
class WebMergeResult:
    confirmed_items: list[WebResultItem] = field(default_factory=list)
    possible_items: list[WebResultItem] = field(default_factory=list)
    discovered_relatives: list[dict[str, Any]] = field(default_factory=list)
    queries_used: list[str] = field(default_factory=list)
    merged_search_types: list[str] = field(default_factory=list)
    duplicates_dropped: int = 0
    rejected: dict[str, str] = field(default_factory=dict)

    @property
    def has_results(self) -> bool:
        """True when at least one web-class task succeeded."""
        return bool(self.merged_search_types)

    def keys(self) -> set[str]:
        return {normalize_url(item.link) for item in (*self.confirmed_items, *self.possible_items)}

    def to_payload(self, search_context: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "confirmedItems": [item.to_dict() for item in self.confirmed_items],
            "possibleItems": [item.to_dict() for item in self.possible_items],
            "discoveredRelatives": self.discovered_relatives,
            "queriesUsed": self.queries_used,
            "searchContext": dict(search_context),
        }


class _Signals:
    """Fragment values looked for in a result's title and snippet."""

    def __init__(self, params: SearchParameters) -> None:
        self.email = (params.email or "").lower()
        self.username = (params.username or "").lstrip("@").lower()
        digits = _NON_DIGIT.sub("", params.phone or "")
        self.phone_digits = digits[-10:] if len(digits) >= 7 else ""
        self.keywords = params.keyword_list
        self.relatives = [relative.lower() for relative in params.relative_list]
        # Keywords naming a relative ("Owen Petrie" for Michael Petrie) count as known relatives;
        # the subject's own name parts do not.
        own_name = (params.full_name or "").lower().split()
        for keyword in self.keywords:
            if keyword in self.relatives or keyword in own_name:
                continue
            if is_keyword_potential_relative(keyword, params.full_name or "", params.relative_list):
                self.relatives.append(keyword)

    def annotate(self, raw: Mapping[str, Any]) -> dict[str, Any]:
        item = dict(raw)
        text = f"{item.get('title') or ''} {item.get('snippet') or ''}"
        lowered = text.lower()
        if "hasEmail" not in item:
            item["hasEmail"] = bool(self.email) and self.email in lowered
        if "hasUsername" not in item:
            item["hasUsername"] = bool(self.username) and self.username in lowered
        if "hasPhone" not in item:
            item["hasPhone"] = bool(self.phone_digits) and self.phone_digits in _NON_DIGIT.sub("", text)
        if "hasKnownRelative" not in item:
            item["hasKnownRelative"] = any(relative in lowered for relative in self.relatives)
        if "keywordMatches" not in item:
            item["keywordMatches"] = [keyword for keyword in self.keywords if keyword in lowered]
        return item


def _relative_entries(raw: Any) -> Iterable[dict[str, Any]]:
    for entry in raw or []:
        if isinstance(entry, str) and entry.strip():
            yield {"name": entry.strip(), "relationship": None}
        elif isinstance(entry, Mapping) and str(entry.get("name") or "").strip():
            yield {**entry, "name": str(entry["name"]).strip(), "relationship": entry.get("relationship")}


def _bucket(data: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    items = data.get(key)
    if items is None and key == "possibleItems" and "confirmedItems" not in data:
        # Bare search responses carry a single ``items`` list.
        items = data.get("items")
    return [item for item in items or [] if isinstance(item, Mapping)]


def _fold_outcome(
    outcome: TaskOutcome, signals: _Signals, seen_keys: set[str]
) -> tuple[dict[str, list[WebResultItem]], set[str], int, list[dict[str, Any]]]:
    """Convert one outcome's items without touching the shared result."""
    data = outcome.data or {}
    query = outcome.task.target_query
    buckets: dict[str, list[WebResultItem]] = {"confirmedItems": [], "possibleItems": []}
    new_keys: set[str] = set()
    dropped = 0
    for bucket_name, bucket in buckets.items():
        for raw in _bucket(data, bucket_name):
            link = str(raw.get("link") or raw.get("url") or "")
            key = normalize_url(link)
            if not key:
                continue
            if key in seen_keys or key in new_keys:
                dropped += 1
                continue
            new_keys.add(key)
            annotated = signals.annotate(raw)
            annotated.setdefault("sourceQuery", query)
            if not annotated.get("displayLink"):
                annotated["displayLink"] = display_domain(link)
            bucket.append(WebResultItem.from_dict(annotated))
    relatives = list(_relative_entries(data.get("discoveredRelatives")))
    return buckets, new_keys, dropped, relatives


def merge_web_outcomes(outcomes: Sequence[TaskOutcome], params: SearchParameters) -> WebMergeResult:
    """Fold every successful web-class outcome into one deduplicated result.

    An outcome whose items cannot be converted is listed in ``rejected`` and
    contributes nothing; the other outcomes merge as usual.
    """
    result = WebMergeResult()
    signals = _Signals(params)
    seen_keys: set[str] = set()
    seen_relatives: set[str] = set()
    seen_queries: set[str] = set()
    confirmed_raw: list[WebResultItem] = []

    def add_relative(entry: dict[str, Any]) -> None:
        key = entry["name"].lower()
        if key not in seen_relatives:
            seen_relatives.add(key)
            result.discovered_relatives.append(entry)

    for outcome in outcomes:
        if not outcome.task.is_web_class or not outcome.succeeded or outcome.data is None:
            continue
        try:
            buckets, new_keys, dropped, relatives = _fold_outcome(outcome, signals, seen_keys)
        except Exception as exc:
            logger.warning("merge.outcome_rejected", search_type=outcome.search_type, error=str(exc))
            result.rejected[outcome.search_type] = f"Malformed web results: {exc}"
            continue

        query = outcome.task.target_query
        result.merged_search_types.append(outcome.search_type)
        if query not in seen_queries:
            seen_queries.add(query)
            result.queries_used.append(query)
        seen_keys.update(new_keys)
        result.duplicates_dropped += dropped
        result.confirmed_items.extend(buckets["confirmedItems"])
        result.possible_items.extend(buckets["possibleItems"])
        confirmed_raw.extend(buckets["confirmedItems"])
        for entry in relatives:
            add_relative(entry)

    if params.full_name:
        for item in confirmed_raw:
            for relative in extract_potential_relatives(f"{item.title} {item.snippet}", params.full_name):
                add_relative(relative.to_dict())

    # list.sort is stable: equal scores keep first-seen order.
    result.confirmed_items.sort(key=lambda item: item.confidence_score, reverse=True)
    result.possible_items.sort(key=lambda item: item.confidence_score, reverse=True)

    logger.debug(
        "merge.completed",
        web_tasks=len(result.merged_search_types),
        confirmed=len(result.confirmed_items),
        possible=len(result.possible_items),
        duplicates_dropped=result.duplicates_dropped,
        relatives=len(result.discovered_relatives),
    )
    return result


__all__ = ["WebMergeResult", "merge_web_outcomes"]
