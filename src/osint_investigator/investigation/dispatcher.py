"""Settle-all dispatch of search tasks to their agents.

Every task runs concurrently under a shared ``ConcurrencyLimiter`` (bounded
slots plus a per-call deadline). Nothing raised by one task reaches another:
each invocation is wrapped so that it always settles into a ``TaskOutcome``,
and the results come back in dispatch order whatever order they finished in.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

import httpx

from osint_investigator.core.agents import AgentKind
from osint_investigator.core.errors import AgentInvocationError
from osint_investigator.core.interfaces import Agent, AgentRequest, AgentResponse
from osint_investigator.core.state import DiagnosticEntry, OutcomeStatus, SearchParameters, SearchTask
from osint_investigator.observability.metrics import record_agent_call
from osint_investigator.utils import get_logger
from osint_investigator.utils.rate_limiter import ConcurrencyLimiter

logger = get_logger(__name__)

# Transport-level failures count as agent errors; anything else is a failed task.
INVOCATION_ERRORS: tuple[type[BaseException], ...] = (
    AgentInvocationError,
    httpx.HTTPError,
    ConnectionError,
    TimeoutError,
)


class AgentLookup(Protocol):
    def get(self, kind: AgentKind) -> Agent: ...


@dataclass(slots=True)
class TaskOutcome:
    """Settled result of one dispatched task."""

    task: SearchTask
    status: OutcomeStatus
    data: dict[str, Any] | None = None
    error: str | None = None
    duration_ms: int = 0

    @property
    def search_type(self) -> str:
        return self.task.search_type

    @property
    def agent(self) -> AgentKind:
        return self.task.agent

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.OK

    @property
    def failed(self) -> bool:
        return self.status in (OutcomeStatus.ERROR, OutcomeStatus.FAILED)

    def diagnostic(self) -> DiagnosticEntry:
        has_data: bool | None = None
        if self.status is OutcomeStatus.OK:
            has_data = True
        elif self.status is OutcomeStatus.NO_DATA:
            has_data = False
        return DiagnosticEntry(
            agent_type=self.search_type,
            status=self.status,
            error=self.error,
            has_data=has_data,
            duration_ms=self.duration_ms,
        )


def _describe(exc: BaseException) -> str:
    message = str(exc).strip()
    return message or type(exc).__name__


def classify_response(response: AgentResponse) -> tuple[OutcomeStatus, dict[str, Any] | None, str | None]:
    if response.error:
        return OutcomeStatus.ERROR, None, response.error
    if not response.data:
        return OutcomeStatus.NO_DATA, None, None
    return OutcomeStatus.OK, response.data, None


async def _run_task(
    task: SearchTask,
    registry: AgentLookup,
    limiter: ConcurrencyLimiter,
    context: SearchParameters | None,
) -> TaskOutcome:
    started = time.perf_counter()
    try:
        agent = registry.get(task.agent)
        request = AgentRequest(target=task.target_query, payload=dict(task.payload), context=context)
        response = await limiter.run(agent.invoke(request))
        status, data, error = classify_response(response)
    except INVOCATION_ERRORS as exc:
        status, data, error = OutcomeStatus.ERROR, None, _describe(exc)
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        logger.exception("dispatcher.task_crashed", search_type=task.search_type)
        status, data, error = OutcomeStatus.FAILED, None, _describe(exc)

    elapsed = time.perf_counter() - started
    outcome = TaskOutcome(task=task, status=status, data=data, error=error, duration_ms=int(elapsed * 1000))
    record_agent_call(task.agent.value, status.value, elapsed)
    logger.info(
        "dispatcher.task_settled",
        search_type=task.search_type,
        status=status.value,
        duration_ms=outcome.duration_ms,
        error=error,
    )
    return outcome


async def dispatch(
    tasks: Sequence[SearchTask],
    registry: AgentLookup,
    *,
    limiter: ConcurrencyLimiter,
    context: SearchParameters | None = None,
) -> list[TaskOutcome]:
    """Run every task and wait for all of them to settle.

    Returns one outcome per task, in the order the tasks were given.
    """
    if not tasks:
        return []
    logger.info("dispatcher.start", tasks=len(tasks), max_concurrent=limiter.max_concurrent)
    outcomes = await asyncio.gather(*(_run_task(task, registry, limiter, context) for task in tasks))
    logger.info(
        "dispatcher.settled",
        ok=sum(1 for outcome in outcomes if outcome.status is OutcomeStatus.OK),
        failed=sum(1 for outcome in outcomes if outcome.failed),
        no_data=sum(1 for outcome in outcomes if outcome.status is OutcomeStatus.NO_DATA),
    )
    return list(outcomes)


__all__ = ["TaskOutcome", "dispatch", "classify_response", "INVOCATION_ERRORS"]
