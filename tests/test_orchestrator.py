import json
from unittest.mock import patch

import httpx
import pytest

from osint_investigator.core.errors import (
    InvestigationNotFoundError,
    PersistenceError,
    UnknownAgentError,
    ValidationError,
)
from osint_investigator.core.interfaces import AgentResponse
from osint_investigator.core.orchestrator import InvestigationOrchestrator
from osint_investigator.core.state import InvestigationStatus, RetryRequest, SearchParameters, WebResultItem
from osint_investigator.investigation import merge, persistence
from osint_investigator.storage.memory import InMemoryFindingStore

from .fakes import RaisingAgent, ScriptedAgent, build_registry, web_item, web_response


class FlakyStore(InMemoryFindingStore):
    """Rejects inserts for the listed agent types."""

    def __init__(self, reject: set[str]) -> None:
        super().__init__()
        self.reject = reject

    async def insert_finding(self, finding):
        if finding.agent_type in self.reject:
            raise PersistenceError(f"insert rejected for {finding.agent_type}")
        return await super().insert_finding(finding)


def by_type(findings):
    return {finding.agent_type: finding for finding in findings}


@pytest.mark.asyncio
async def test_one_failing_task_does_not_block_the_others(make_orchestrator, store):
    registry = build_registry(toutatis=RaisingAgent(httpx.ConnectError("network down")))
    orchestrator = make_orchestrator(registry)

    result = await orchestrator.start(SearchParameters(username="jdoe"))

    assert result.searches_run == 5
    assert result.search_types == ["sherlock", "social_username", "leakcheck_username", "toutatis", "instaloader"]
    assert result.status is InvestigationStatus.COMPLETE
    assert result.findings_persisted == 5

    findings = by_type(await store.list_findings(result.investigation_id))
    assert set(findings) == {"Sherlock", "Social_username", "Leakcheck_username", "Instaloader", "System"}
    summary = {entry["agentType"]: entry for entry in findings["System"].data["searchSummary"]}
    assert summary["toutatis"]["status"] == "error"
    assert summary["toutatis"]["error"] == "network down"
    assert summary["sherlock"] == {**summary["sherlock"], "status": "ok", "hasData": True}
    assert findings["System"].data["message"] == "OSINT searches completed"
    assert findings["Sherlock"].source == "OSINT-sherlock"
    assert findings["Sherlock"].confidence_score == 50

    investigation = await store.get_investigation(result.investigation_id)
    assert investigation.status is InvestigationStatus.COMPLETE
    assert investigation.target == "jdoe"


@pytest.mark.asyncio
async def test_web_results_merge_into_one_finding_with_placeholders(make_orchestrator, store):
    registry = build_registry(
        web_keywords=ScriptedAgent(web_response(web_item("https://example.com/a", 0.9))),
        web_phone_search=RaisingAgent(TimeoutError("search timed out")),
        leakcheck_phone=ScriptedAgent(AgentResponse(data=None)),
    )
    orchestrator = make_orchestrator(registry)

    result = await orchestrator.start(SearchParameters(phone="555-123-4567", keywords="fraud"))

    assert result.searches_run == 5
    findings = by_type(await store.list_findings(result.investigation_id))
    # 2 agent findings + merged web + 1 placeholder, plus System.
    assert set(findings) == {"Phone", "People_search_phone", "Web", "Web_phone_search", "System"}
    assert result.findings_persisted == 5

    web = findings["Web"]
    assert web.confidence_score is None
    assert [item["link"] for item in web.data["confirmedItems"]] == ["https://example.com/a"]
    assert web.data["searchContext"]["hasPhone"] is True

    placeholder = findings["Web_phone_search"].data
    assert placeholder["confirmedItems"] == [] and placeholder["possibleItems"] == []
    assert placeholder["error"] == "search timed out"
    assert placeholder["searchType"] == "web_phone_search"

    statuses = {entry["agentType"]: entry["status"] for entry in findings["System"].data["searchSummary"]}
    assert statuses["leakcheck_phone"] == "no_data"
    assert findings["Phone"].confidence_score == 60


@pytest.mark.asyncio
async def test_failed_insert_marks_the_investigation_partial(limiter):
    store = FlakyStore(reject={"Sherlock"})
    orchestrator = InvestigationOrchestrator(store, build_registry(), limiter=limiter, query_top_n=0)

    result = await orchestrator.start(SearchParameters(username="jdoe"))

    assert result.status is InvestigationStatus.PARTIAL
    assert result.findings_persisted == 5
    assert "Sherlock" not in by_type(await store.list_findings(result.investigation_id))
    assert any(event["event"] == "writer.insert_failed" for event in result.events)
    assert (await store.get_investigation(result.investigation_id)).status is InvestigationStatus.PARTIAL


@pytest.mark.asyncio
async def test_missing_fragments_are_rejected_before_anything_runs(make_orchestrator, store):
    agent = ScriptedAgent()
    orchestrator = make_orchestrator(build_registry(agent))

    with pytest.raises(ValidationError):
        await orchestrator.start(SearchParameters(full_name="   "))

    assert store.investigations == {}
    assert agent.requests == []


@pytest.mark.asyncio
async def test_generated_queries_are_dispatched(make_orchestrator):
    orchestrator = make_orchestrator(query_top_n=2)

    result = await orchestrator.start(
        SearchParameters(full_name="Jane Doe", email="jdoe@example.com"), generate_queries=True
    )

    assert [t for t in result.search_types if t.startswith("web_query")] == ["web_query_1", "web_query_2"]


@pytest.mark.asyncio
async def test_result_carries_the_event_log(make_orchestrator):
    result = await make_orchestrator().start(SearchParameters(email="jdoe@example.com"))
    events = [event["event"] for event in result.events]
    assert events[0] == "orchestrator.start"
    assert events[-1] == "orchestrator.finish"
    assert result.to_dict()["status"] == "complete"


@pytest.mark.asyncio
async def test_retry_writes_one_new_finding(make_orchestrator, store):
    orchestrator = make_orchestrator()
    params = SearchParameters(username="jdoe")
    started = await orchestrator.start(params)
    before = await store.list_findings(started.investigation_id)

    result = await orchestrator.retry(RetryRequest(started.investigation_id, "Toutatis", params))

    assert result.success
    assert result.agent_type == "Toutatis"
    assert result.confidence_score == 50
    after = await store.list_findings(started.investigation_id)
    assert len(after) == len(before) + 1
    assert after[-1].agent_type == "Toutatis"
    assert sum(1 for finding in after if finding.agent_type == "System") == 1


@pytest.mark.asyncio
async def test_failed_retry_inserts_nothing(store, limiter):
    orchestrator = InvestigationOrchestrator(
        store,
        build_registry(
            toutatis=RaisingAgent(httpx.ConnectError("network down")),
            sherlock=ScriptedAgent(AgentResponse(data=None)),
        ),
        limiter=limiter,
    )
    params = SearchParameters(username="jdoe")
    started = await orchestrator.start(params)
    count = len(await store.list_findings(started.investigation_id))

    failed = await orchestrator.retry(RetryRequest(started.investigation_id, "toutatis", params))
    empty = await orchestrator.retry(RetryRequest(started.investigation_id, "sherlock", params))

    assert not failed.success and failed.error == "network down"
    assert not empty.success and empty.error == "No data returned from agent"
    assert len(await store.list_findings(started.investigation_id)) == count


@pytest.mark.asyncio
async def test_retry_of_a_web_task_stores_a_web_finding(make_orchestrator, store):
    registry = build_registry(web_keywords=ScriptedAgent(web_response(web_item("https://example.com/a"))))
    orchestrator = make_orchestrator(registry)
    params = SearchParameters(keywords="fraud")
    started = await orchestrator.start(params)

    result = await orchestrator.retry(RetryRequest(started.investigation_id, "web_keywords", params))

    assert result.success and result.confidence_score is None
    stored = (await store.list_findings(started.investigation_id))[-1]
    assert stored.agent_type == "Web_keywords"
    assert stored.data["confirmedItems"][0]["link"] == "https://example.com/a"


@pytest.mark.asyncio
async def test_retry_rejects_unknown_or_inapplicable_types(make_orchestrator):
    orchestrator = make_orchestrator()
    params = SearchParameters(username="jdoe")
    started = await orchestrator.start(params)

    with pytest.raises(UnknownAgentError):
        await orchestrator.retry(RetryRequest(started.investigation_id, "bogus", params))
    with pytest.raises(UnknownAgentError):
        await orchestrator.retry(RetryRequest(started.investigation_id, "holehe", params))


@pytest.mark.asyncio
async def test_retry_requires_an_existing_investigation(make_orchestrator):
    with pytest.raises(InvestigationNotFoundError):
        await make_orchestrator().retry(RetryRequest("missing", "sherlock", SearchParameters(username="jdoe")))


@pytest.mark.asyncio
async def test_out_of_range_payload_values_still_persist(make_orchestrator, store):
    registry = build_registry(
        sherlock=ScriptedAgent(AgentResponse(data=json.loads('{"items": [{"confidenceBoost": Infinity}]}'))),
        toutatis=ScriptedAgent(AgentResponse(data={"recordId": 123456789012345678901234})),
    )
    orchestrator = make_orchestrator(registry)

    result = await orchestrator.start(SearchParameters(username="jdoe", keywords="fraud"))

    assert result.status is InvestigationStatus.COMPLETE
    findings = by_type(await store.list_findings(result.investigation_id))
    assert {"Sherlock", "Toutatis", "System"} <= set(findings)
    assert findings["Sherlock"].confidence_score == findings["Toutatis"].confidence_score
    assert (await store.get_investigation(result.investigation_id)).status is InvestigationStatus.COMPLETE


@pytest.mark.asyncio
async def test_non_list_keyword_matches_are_dropped(make_orchestrator, store):
    item = {**web_item("https://example.com/a"), "keywordMatches": 2}
    orchestrator = make_orchestrator(build_registry(web_keywords=ScriptedAgent(web_response(item))))

    result = await orchestrator.start(SearchParameters(keywords="fraud"))

    assert result.status is InvestigationStatus.COMPLETE
    web = by_type(await store.list_findings(result.investigation_id))["Web"]
    assert web.data["confirmedItems"][0]["keywordMatches"] == []


@pytest.mark.asyncio
async def test_a_finding_that_cannot_be_built_only_costs_itself(make_orchestrator, store):
    real_score = persistence.score_finding

    def score(payload, params):
        if "corrupt" in payload:
            raise OverflowError("cannot convert float infinity to integer")
        return real_score(payload, params)

    registry = build_registry(sherlock=ScriptedAgent(AgentResponse(data={"corrupt": True})))
    orchestrator = make_orchestrator(registry)

    with patch.object(persistence, "score_finding", side_effect=score):
        result = await orchestrator.start(SearchParameters(username="jdoe"))

    assert result.status is InvestigationStatus.PARTIAL
    findings = by_type(await store.list_findings(result.investigation_id))
    assert set(findings) == {"Social_username", "Leakcheck_username", "Toutatis", "Instaloader", "System"}
    failures = [event for event in result.events if event["event"] == "writer.insert_failed"]
    assert [event["payload"]["agentType"] for event in failures] == ["Sherlock"]
    summary = {entry["agentType"]: entry["status"] for entry in findings["System"].data["searchSummary"]}
    assert summary["sherlock"] == "ok"
    assert (await store.get_investigation(result.investigation_id)).status is InvestigationStatus.PARTIAL


@pytest.mark.asyncio
async def test_a_malformed_web_outcome_is_left_out_of_the_merge(make_orchestrator, store):
    real_from_dict = WebResultItem.from_dict

    def from_dict(raw):
        if "broken" in raw["link"]:
            raise ValueError("unexpected item shape")
        return real_from_dict(raw)

    registry = build_registry(
        web_keywords=ScriptedAgent(web_response(web_item("https://example.com/a"))),
        web_phone_search=ScriptedAgent(web_response(web_item("https://broken.example/b"))),
    )
    orchestrator = make_orchestrator(registry)

    with patch.object(merge.WebResultItem, "from_dict", side_effect=from_dict):
        result = await orchestrator.start(SearchParameters(phone="555-123-4567", keywords="fraud"))

    assert result.status is InvestigationStatus.PARTIAL
    findings = by_type(await store.list_findings(result.investigation_id))
    assert [item["link"] for item in findings["Web"].data["confirmedItems"]] == ["https://example.com/a"]
    assert "Web_phone_search" not in findings
    assert "System" in findings
    failures = [event["payload"] for event in result.events if event["event"] == "writer.insert_failed"]
    assert failures[0]["agentType"] == "Web_phone_search"
    assert failures[0]["error"].startswith("Malformed web results")


@pytest.mark.asyncio
async def test_generated_queries_leave_the_callers_parameters_untouched(make_orchestrator):
    params = SearchParameters(full_name="Jane Doe", email="jdoe@example.com")

    result = await make_orchestrator(query_top_n=2).start(params, generate_queries=True)

    assert "web_query_1" in result.search_types
    assert params.generated_queries == []
