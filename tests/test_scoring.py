import pytest

from osint_investigator.core.agents import AgentKind
from osint_investigator.core.state import OutcomeStatus, SearchParameters, SearchTask
from osint_investigator.investigation.dispatcher import TaskOutcome
from osint_investigator.investigation.persistence import FindingWriter
from osint_investigator.investigation.scoring import score_breakdown, score_finding
from osint_investigator.storage.memory import InMemoryFindingStore

FRAGMENTS = {
    "full_name": "Jane Doe",
    "email": "jdoe@example.com",
    "phone": "555-123-4567",
    "username": "jdoe",
    "address": "123 Main St, Miami, FL 33101",
    "keywords": "zzzz",
}


def params_with(count: int, **extra) -> SearchParameters:
    values = dict(list(FRAGMENTS.items())[:count])
    values.update(extra)
    return SearchParameters(**values)


@pytest.mark.parametrize("count,expected", [(1, 50), (2, 60), (3, 65), (4, 75), (5, 85), (6, 85)])
def test_data_point_bonus(count, expected):
    assert score_finding({"found": True}, params_with(count)) == expected


def test_co_occurrence_boost_uses_the_best_item():
    payload = {"items": [{"confidenceBoost": 0.1}, {"confidenceBoost": 0.25}, {"confidenceBoost": "junk"}]}
    assert score_finding(payload, params_with(1)) == 75


def test_non_positive_boost_is_ignored():
    assert score_finding({"items": [{"confidenceBoost": -0.5}]}, params_with(1)) == 50
    assert score_finding({"items": "not-a-list"}, params_with(1)) == 50


def test_keyword_bonus_is_capped():
    params = SearchParameters(full_name="Jane Doe", keywords="a1, b2, c3, d4")
    breakdown = score_breakdown({"note": "A1 b2 c3 d4"}, params)
    assert breakdown.keyword_matches == 4
    assert breakdown.keyword_bonus == 15
    assert breakdown.total == 75


def test_score_is_clamped_to_100():
    payload = {"items": [{"confidenceBoost": 0.5}]}
    assert score_finding(payload, params_with(6)) == 100


def test_scoring_is_deterministic():
    payload = {"items": [{"confidenceBoost": 0.123}], "note": "nurse"}
    params = SearchParameters(full_name="Jane Doe", keywords="nurse")
    assert {score_finding(payload, params) for _ in range(5)} == {score_finding(payload, params)}


def test_search_context_never_feeds_the_keyword_count():
    params = SearchParameters(full_name="Jane Doe", keywords="jane")
    outcome = TaskOutcome(SearchTask(AgentKind.HOLEHE, "x"), OutcomeStatus.OK, data={"found": True})

    pending = FindingWriter(InMemoryFindingStore()).agent_finding("inv-1", outcome, params)

    assert "jane" in str(pending.finding.data["searchContext"]).lower()
    assert pending.finding.confidence_score == 60


@pytest.mark.parametrize("boost", [float("inf"), float("-inf"), float("nan"), 10**400])
def test_non_finite_and_oversized_boosts_do_not_break_scoring(boost):
    payload = {"items": [{"confidenceBoost": boost}, {"confidenceBoost": 0.25}]}
    assert score_finding(payload, params_with(1)) == 75


def test_keyword_scan_survives_integers_orjson_rejects():
    params = SearchParameters(full_name="Jane Doe", keywords="fraud")
    payload = {"recordId": 123456789012345678901234, "note": "Fraud filing"}
    assert score_breakdown(payload, params).keyword_matches == 1
