"""Shared fixtures: an in-memory store, a tight limiter and an orchestrator factory."""
from __future__ import annotations

from typing import Any

import pytest

from osint_investigator.agents.registry import AgentRegistry
from osint_investigator.core.orchestrator import InvestigationOrchestrator
from osint_investigator.storage.memory import InMemoryFindingStore
from osint_investigator.utils.rate_limiter import ConcurrencyLimiter

from .fakes import build_registry


@pytest.fixture
def store() -> InMemoryFindingStore:
    return InMemoryFindingStore()


@pytest.fixture
def limiter() -> ConcurrencyLimiter:
    return ConcurrencyLimiter(max_concurrent=4, timeout_seconds=2.0)


@pytest.fixture
def make_orchestrator(store, limiter):
    def _make(registry: AgentRegistry | None = None, **kwargs: Any) -> InvestigationOrchestrator:
        kwargs.setdefault("query_top_n", 3)
        return InvestigationOrchestrator(store, registry or build_registry(), limiter=limiter, **kwargs)

    return _make
