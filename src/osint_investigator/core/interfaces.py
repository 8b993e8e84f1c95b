from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from osint_investigator.core.state import (
    Finding,
    Investigation,
    InvestigationStatus,
    SearchParameters,
)


@dataclass(slots=True)
class AgentRequest:
    """What every lookup agent receives."""
    target: str
    payload: dict[str, Any] = field(default_factory=dict)
    context: SearchParameters | None = None


@dataclass(slots=True)
class AgentResponse:
    """Either ``data`` or ``error`` is set, never both."""
    data: dict[str, Any] | None = None
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> AgentResponse:
        return cls(data=None, error=error)


class Agent(ABC):
    """Uniform contract implemented by every lookup adapter."""

    name: str = "agent"

    @abstractmethod
    async def invoke(self, request: AgentRequest) -> AgentResponse:
        """Run one lookup and return structured data or an error."""
        pass

    async def aclose(self) -> None:
        """Release transport resources held by the agent."""
        return None


class SearchProvider(ABC):
    """Abstract base for web search backends used by the local web-search agent."""

    @abstractmethod
    async def search(self, query: str, **kwargs: Any) -> list[dict[str, Any]]:
        """Run a search query and return structured results."""
        pass

    async def aclose(self) -> None:
        return None


class FindingStore(ABC):
    """Durable storage for investigations and their findings."""

    @abstractmethod
    async def create_investigation(self, target: str) -> Investigation:
        pass

    @abstractmethod
    async def get_investigation(self, investigation_id: str) -> Investigation | None:
        pass

    @abstractmethod
    async def update_investigation_status(self, investigation_id: str, status: InvestigationStatus) -> None:
        pass

    @abstractmethod
    async def insert_finding(self, finding: Finding) -> Finding:
        """Persist one finding and return it with ``id`` and ``created_at`` set."""
        pass

    @abstractmethod
    async def list_findings(self, investigation_id: str) -> list[Finding]:
        pass
