from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

import orjson

from osint_investigator.core.state import SearchParameters

BASE_SCORE = 50
# (minimum data points, bonus), checked top down.
DATA_POINT_BONUSES: tuple[tuple[int, int], ...] = ((5, 35), (4, 25), (3, 15), (2, 10))
KEYWORD_BONUS_PER_MATCH = 5
KEYWORD_BONUS_CAP = 15


@dataclass(slots=True)
class ScoreBreakdown:
    """Components of one finding's confidence score."""

    base: int
    data_point_bonus: int
    co_occurrence_bonus: float
    keyword_bonus: int
    keyword_matches: int

    @property
    def total(self) -> int:
        raw = self.base + self.data_point_bonus + self.co_occurrence_bonus + self.keyword_bonus
        return max(0, min(100, int(round(raw))))

    def to_dict(self) -> dict[str, object]:
        return {
            "base": self.base,
            "data_point_bonus": self.data_point_bonus,
            "co_occurrence_bonus": self.co_occurrence_bonus,
            "keyword_bonus": self.keyword_bonus,
            "keyword_matches": self.keyword_matches,
            "total": self.total,
        }


def data_point_bonus(data_points: int) -> int:
    for minimum, bonus in DATA_POINT_BONUSES:
        if data_points >= minimum:
            return bonus
    return 0


def co_occurrence_bonus(payload: Mapping[str, Any]) -> float:
    """``max(items[].confidenceBoost) * 100`` when the payload carries positive boosts."""
    items = payload.get("items")
    if not isinstance(items, list):
        return 0.0
    boosts: list[float] = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        try:
            boost = float(item.get("confidenceBoost") or 0)
        except (TypeError, ValueError, OverflowError):
            continue
        if math.isfinite(boost):
            boosts.append(boost)
    best = max(boosts, default=0.0)
    # A boost of 1.0 already pins the total at the 100 ceiling.
    return min(best, 1.0) * 100 if best > 0 else 0.0


def keyword_matches(payload: Mapping[str, Any], keywords: list[str]) -> int:
    if not keywords:
        return 0
    try:
        serialized = orjson.dumps(payload, default=str, option=orjson.OPT_NON_STR_KEYS).decode()
    except orjson.JSONEncodeError:
        # orjson rejects integers wider than 64 bits and over-deep nesting.
        serialized = str(payload)
    serialized = serialized.lower()
    return sum(1 for keyword in keywords if keyword in serialized)


def score_breakdown(payload: Mapping[str, Any], params: SearchParameters) -> ScoreBreakdown:
    matches = keyword_matches(payload, params.keyword_list)
    return ScoreBreakdown(
        base=BASE_SCORE,
        data_point_bonus=data_point_bonus(params.data_point_count),
        co_occurrence_bonus=co_occurrence_bonus(payload),
        keyword_bonus=min(KEYWORD_BONUS_PER_MATCH * matches, KEYWORD_BONUS_CAP),
        keyword_matches=matches,
    )


def score_finding(payload: Mapping[str, Any], params: SearchParameters) -> int:
    """Deterministic 0-100 confidence for a non-web finding.

    ``payload`` is the agent's raw data, before ``searchContext`` is added,
    so the context block never feeds the keyword count.
    """
    return score_breakdown(payload, params).total


__all__ = [
    "ScoreBreakdown",
    "score_breakdown",
    "score_finding",
    "data_point_bonus",
    "co_occurrence_bonus",
    "keyword_matches",
]
