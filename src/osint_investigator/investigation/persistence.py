"""Finding writer and diagnostic reporter.

Turns settled outcomes into findings: one per successful non-web task, one
merged finding for all successful web-class tasks, one placeholder per failed
web-class task, then a single ``System`` finding that lists every task's
outcome. Inserts are independent; a failed insert is recorded and the rest
carry on.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Sequence

from osint_investigator.core.errors import PersistenceError
from osint_investigator.core.interfaces import FindingStore
from osint_investigator.core.payloads import PayloadVariant, validate_payload
from osint_investigator.core.state import EventLog, Finding, SearchParameters
from osint_investigator.investigation.dispatcher import TaskOutcome
from osint_investigator.investigation.merge import WebMergeResult, merge_web_outcomes
from osint_investigator.investigation.scoring import score_finding
from osint_investigator.observability.metrics import record_finding_persisted, record_persistence_failure
from osint_investigator.utils import get_logger

logger = get_logger(__name__)

SYSTEM_AGENT_TYPE = "System"
SYSTEM_MESSAGE = "OSINT searches completed"
WEB_SEARCH_TYPE = "web"


def agent_type_label(search_type: str) -> str:
    """Stored ``agent_type``: the search type with its first character upper-cased."""
    return search_type[:1].upper() + search_type[1:]


def source_label(search_type: str) -> str:
    return f"OSINT-{search_type}"


@dataclass(slots=True)
class PendingFinding:
    finding: Finding
    variant: PayloadVariant


@dataclass(slots=True)
class PersistReport:
    inserted: list[Finding] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    system_finding: Finding | None = None

    @property
    def inserted_count(self) -> int:
        return len(self.inserted)

    @property
    def complete(self) -> bool:
        return not self.failed


class FindingWriter:
    """Writes the findings of one investigation to a ``FindingStore``."""

    def __init__(self, store: FindingStore) -> None:
        self.store = store

    def agent_finding(self, investigation_id: str, outcome: TaskOutcome, params: SearchParameters) -> PendingFinding:
        raw = outcome.data or {}
        data = {**raw, "searchContext": params.search_context()}
        return PendingFinding(
            Finding(
                investigation_id=investigation_id,
                agent_type=agent_type_label(outcome.search_type),
                source=source_label(outcome.search_type),
                data=data,
                confidence_score=score_finding(raw, params),
            ),
            PayloadVariant.AGENT,
        )

    def web_finding(
        self,
        investigation_id: str,
        merged: WebMergeResult,
        params: SearchParameters,
        search_type: str = WEB_SEARCH_TYPE,
    ) -> PendingFinding:
        return PendingFinding(
            Finding(
                investigation_id=investigation_id,
                agent_type=agent_type_label(search_type),
                source=source_label(search_type),
                data=merged.to_payload(params.search_context()),
                confidence_score=None,
            ),
            PayloadVariant.WEB_SEARCH,
        )

    def placeholder_finding(
        self, investigation_id: str, outcome: TaskOutcome, params: SearchParameters
    ) -> PendingFinding:
        data: dict[str, Any] = {
            "confirmedItems": [],
            "possibleItems": [],
            "discoveredRelatives": [],
            "queriesUsed": [],
            "searchContext": params.search_context(),
            "error": outcome.error or "Search failed",
            "searchType": outcome.search_type,
        }
        return PendingFinding(
            Finding(
                investigation_id=investigation_id,
                agent_type=agent_type_label(outcome.search_type),
                source=source_label(outcome.search_type),
                data=data,
                confidence_score=None,
            ),
            PayloadVariant.WEB_SEARCH,
        )

    def _build(self, label: str, build: Callable[[], PendingFinding], events: EventLog) -> PendingFinding | None:
        try:
            return build()
        except Exception as exc:
            self._record_failure(label, f"Could not build finding: {exc}", events)
            return None

    def _record_failure(self, agent_type: str, error: str, events: EventLog) -> None:
        logger.error("writer.insert_failed", agent_type=agent_type, error=error)
        events.record_log("writer.insert_failed", {"agentType": agent_type, "error": error})
        record_persistence_failure(agent_type)

    def plan(
        self,
        investigation_id: str,
        outcomes: Sequence[TaskOutcome],
        params: SearchParameters,
        events: EventLog,
    ) -> tuple[list[PendingFinding], list[str]]:
        """Findings for ``outcomes`` in dispatch order, plus the agent types
        whose finding could not be built.

        The merged web finding takes the slot of the first successful web
        task that merged cleanly. Each finding is built on its own, so one
        malformed payload only costs its own finding.
        """
        merged = merge_web_outcomes(outcomes, params)
        pending: list[PendingFinding] = []
        failed: list[str] = []
        web_written = False
        for outcome in outcomes:
            label = agent_type_label(outcome.search_type)
            if outcome.task.is_web_class:
                if outcome.search_type in merged.rejected:
                    self._record_failure(label, merged.rejected[outcome.search_type], events)
                    failed.append(label)
                    continue
                if outcome.succeeded and not web_written:
                    web_written = True
                    label = agent_type_label(WEB_SEARCH_TYPE)
                    build = partial(self.web_finding, investigation_id, merged, params)
                elif outcome.failed:
                    build = partial(self.placeholder_finding, investigation_id, outcome, params)
                else:
                    continue
            elif outcome.succeeded:
                build = partial(self.agent_finding, investigation_id, outcome, params)
            else:
                continue

            built = self._build(label, build, events)
            if built is None:
                failed.append(label)
            else:
                pending.append(built)
        return pending, failed

    async def insert(self, pending: PendingFinding, events: EventLog) -> Finding | None:
        finding = pending.finding
        try:
            validate_payload(pending.variant, finding.data)
            stored = await self.store.insert_finding(finding)
        except PersistenceError as exc:
            logger.error(
                "writer.insert_failed",
                agent_type=finding.agent_type,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            events.record_log("writer.insert_failed", {"agentType": finding.agent_type, "error": str(exc)})
            record_persistence_failure(finding.agent_type)
            return None
        record_finding_persisted(finding.agent_type)
        logger.debug("writer.inserted", agent_type=finding.agent_type, confidence=finding.confidence_score)
        return stored

    async def persist(
        self,
        investigation_id: str,
        outcomes: Sequence[TaskOutcome],
        params: SearchParameters,
        events: EventLog,
    ) -> PersistReport:
        pending, build_failures = self.plan(investigation_id, outcomes, params, events)
        results = await asyncio.gather(*(self.insert(item, events) for item in pending))

        report = PersistReport(failed=list(build_failures))
        for item, stored in zip(pending, results):
            if stored is None:
                report.failed.append(item.finding.agent_type)
            else:
                report.inserted.append(stored)
        events.record_log(
            "writer.findings_persisted",
            {"inserted": len(report.inserted), "failed": len(report.failed)},
        )

        if outcomes:
            system = self.system_finding(investigation_id, outcomes, events)
            stored_system = await self.insert(system, events)
            if stored_system is None:
                report.failed.append(SYSTEM_AGENT_TYPE)
            else:
                report.system_finding = stored_system
        return report

    def system_finding(
        self, investigation_id: str, outcomes: Sequence[TaskOutcome], events: EventLog
    ) -> PendingFinding:
        data = {
            "message": SYSTEM_MESSAGE,
            "searchSummary": [outcome.diagnostic().to_dict() for outcome in outcomes],
            "events": events.to_list(),
        }
        return PendingFinding(
            Finding(
                investigation_id=investigation_id,
                agent_type=SYSTEM_AGENT_TYPE,
                source=source_label(SYSTEM_AGENT_TYPE),
                data=data,
                confidence_score=None,
            ),
            PayloadVariant.SYSTEM,
        )

    async def persist_retry(
        self,
        investigation_id: str,
        outcome: TaskOutcome,
        params: SearchParameters,
        events: EventLog,
    ) -> Finding | None:
        """Write the finding of one successful retried task. Never touches the System record."""
        label = agent_type_label(outcome.search_type)
        if outcome.task.is_web_class:
            merged = merge_web_outcomes([outcome], params)
            if outcome.search_type in merged.rejected:
                self._record_failure(label, merged.rejected[outcome.search_type], events)
                return None
            build = partial(self.web_finding, investigation_id, merged, params, search_type=outcome.search_type)
        else:
            build = partial(self.agent_finding, investigation_id, outcome, params)
        pending = self._build(label, build, events)
        if pending is None:
            return None
        return await self.insert(pending, events)


__all__ = [
    "FindingWriter",
    "PersistReport",
    "PendingFinding",
    "agent_type_label",
    "source_label",
    "SYSTEM_AGENT_TYPE",
]
