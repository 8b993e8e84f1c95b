from __future__ import annotations

from dataclasses import replace

from osint_investigator.agents.registry import AgentRegistry
from osint_investigator.config import settings
from osint_investigator.core.agents import AgentKind
from osint_investigator.core.errors import InvestigationNotFoundError, PersistenceError, UnknownAgentError
from osint_investigator.core.interfaces import FindingStore
from osint_investigator.core.state import (
    EventLog,
    InvestigationResult,
    InvestigationStatus,
    RetryRequest,
    RetryResult,
    SearchParameters,
)
from osint_investigator.investigation.dispatcher import AgentLookup, TaskOutcome, dispatch
from osint_investigator.investigation.persistence import FindingWriter
from osint_investigator.investigation.selector import flatten, select_tasks
from osint_investigator.observability.metrics import record_investigation
from osint_investigator.search.query_generator import QueryGenerator
from osint_investigator.storage import create_finding_store
from osint_investigator.utils import configure_logging, get_logger, investigation_context
from osint_investigator.utils.rate_limiter import ConcurrencyLimiter, default_concurrency_limiter


class InvestigationOrchestrator:
    """Entry point for running and retrying investigations."""

    def __init__(
        self,
        store: FindingStore,
        registry: AgentLookup,
        *,
        limiter: ConcurrencyLimiter | None = None,
        query_top_n: int | None = None,
        query_generator: QueryGenerator | None = None,
    ) -> None:
        self.logger = get_logger(__name__)
        self.store = store
        self.registry = registry
        self.limiter = limiter or default_concurrency_limiter()
        self.query_top_n = settings.runtime.web_query_top_n if query_top_n is None else query_top_n
        self.query_generator = query_generator or QueryGenerator()
        self.writer = FindingWriter(store)

    @classmethod
    def from_settings(cls) -> InvestigationOrchestrator:
        configure_logging()
        store = create_finding_store(settings.runtime.storage_backend)
        return cls(store, AgentRegistry.from_settings())

    async def aclose(self) -> None:
        if isinstance(self.registry, AgentRegistry):
            await self.registry.aclose()

    async def start(self, params: SearchParameters, *, generate_queries: bool = False) -> InvestigationResult:
        """Select, dispatch and persist every task the parameters justify.

        Raises ``ValidationError`` before anything is created or dispatched
        when no identity fragment was supplied.
        """
        params.validate()
        if generate_queries and not params.generated_queries:
            params = replace(params, generated_queries=self.query_generator.generate(params))

        selection = select_tasks(params, query_top_n=self.query_top_n)
        tasks = flatten(selection)
        investigation = await self.store.create_investigation(params.target)
        events = EventLog()

        with investigation_context(investigation.id):
            self.logger.info(
                "orchestrator.start",
                fragments=params.present_fragments(),
                builders=[builder_id.value for builder_id, _ in selection],
                tasks=len(tasks),
            )
            events.record_log(
                "orchestrator.start",
                {
                    "fragments": params.present_fragments(),
                    "builders": [builder_id.value for builder_id, _ in selection],
                    "searchTypes": [task.search_type for task in tasks],
                },
            )

            outcomes = await dispatch(tasks, self.registry, limiter=self.limiter, context=params)
            self._record_outcomes(outcomes, events)

            report = await self.writer.persist(investigation.id, outcomes, params, events)
            status = InvestigationStatus.COMPLETE if report.complete else InvestigationStatus.PARTIAL
            try:
                await self.store.update_investigation_status(investigation.id, status)
            except PersistenceError as exc:
                self.logger.error("orchestrator.status_update_failed", status=status.value, error=str(exc))
                events.record_log("orchestrator.status_update_failed", {"status": status.value, "error": str(exc)})

            persisted = report.inserted_count + (1 if report.system_finding else 0)
            events.record_log("orchestrator.finish", {"status": status.value, "findingsPersisted": persisted})
            record_investigation(status.value)
            self.logger.info(
                "orchestrator.finish",
                status=status.value,
                findings_persisted=persisted,
                insert_failures=len(report.failed),
            )

        return InvestigationResult(
            investigation_id=investigation.id,
            searches_run=len(tasks),
            search_types=[task.search_type for task in tasks],
            status=status,
            findings_persisted=persisted,
            events=events.to_list(),
        )

    async def retry(self, request: RetryRequest) -> RetryResult:
        """Re-run one task of an existing investigation in isolation.

        The task is rebuilt from ``search_data`` exactly as ``start`` would
        build it. The System diagnostic record is left untouched.
        """
        agent_type = request.agent_type.strip()
        AgentKind.from_search_type(agent_type)
        params = request.search_data.validate()

        investigation = await self.store.get_investigation(request.investigation_id)
        if investigation is None:
            raise InvestigationNotFoundError(f"Investigation {request.investigation_id} does not exist")

        tasks = [
            task
            for task in flatten(select_tasks(params, query_top_n=self.query_top_n))
            if task.search_type.lower() == agent_type.lower()
        ]
        if not tasks:
            raise UnknownAgentError(f"{agent_type!r} does not apply to the supplied search data")

        events = EventLog()
        with investigation_context(investigation.id, retry=True):
            self.logger.info("orchestrator.retry", search_type=tasks[0].search_type)
            events.record_log("orchestrator.retry", {"searchType": tasks[0].search_type})

            outcomes = await dispatch(tasks[:1], self.registry, limiter=self.limiter, context=params)
            outcome = outcomes[0]
            self._record_outcomes(outcomes, events)
            if not outcome.succeeded:
                error = outcome.error or "No data returned from agent"
                return RetryResult(success=False, agent_type=agent_type, error=error, events=events.to_list())

            stored = await self.writer.persist_retry(investigation.id, outcome, params, events)
            if stored is None:
                return RetryResult(
                    success=False,
                    agent_type=agent_type,
                    error="Finding could not be stored",
                    events=events.to_list(),
                )

            self.logger.info("orchestrator.retry_succeeded", confidence=stored.confidence_score)
            return RetryResult(
                success=True,
                agent_type=agent_type,
                confidence_score=stored.confidence_score,
                events=events.to_list(),
            )

    @staticmethod
    def _record_outcomes(outcomes: list[TaskOutcome], events: EventLog) -> None:
        for outcome in outcomes:
            if outcome.succeeded:
                continue
            events.record_log(
                f"dispatcher.task_{outcome.status.value}",
                {"searchType": outcome.search_type, "error": outcome.error, "durationMs": outcome.duration_ms},
            )
