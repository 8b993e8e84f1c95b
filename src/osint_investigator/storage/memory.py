from __future__ import annotations

import asyncio
import uuid
from dataclasses import replace

from osint_investigator.core.errors import InvestigationNotFoundError, PersistenceError
from osint_investigator.core.interfaces import FindingStore
from osint_investigator.core.state import Finding, Investigation, InvestigationStatus, utcnow


class InMemoryFindingStore(FindingStore):
    """Process-local store used by tests and dry runs."""

    def __init__(self) -> None:
        self.investigations: dict[str, Investigation] = {}
        self.findings: dict[str, list[Finding]] = {}
        self._lock = asyncio.Lock()

    async def create_investigation(self, target: str) -> Investigation:
        investigation = Investigation(id=str(uuid.uuid4()), target=target)
        async with self._lock:
            self.investigations[investigation.id] = investigation
            self.findings[investigation.id] = []
        return investigation

    async def get_investigation(self, investigation_id: str) -> Investigation | None:
        return self.investigations.get(investigation_id)

    async def update_investigation_status(self, investigation_id: str, status: InvestigationStatus) -> None:
        async with self._lock:
            investigation = self.investigations.get(investigation_id)
            if investigation is None:
                raise InvestigationNotFoundError(investigation_id)
            investigation.status = status

    async def insert_finding(self, finding: Finding) -> Finding:
        async with self._lock:
            if finding.investigation_id not in self.investigations:
                raise PersistenceError(f"Unknown investigation {finding.investigation_id}")
            stored = replace(finding, id=str(uuid.uuid4()), created_at=utcnow())
            self.findings[finding.investigation_id].append(stored)
        return stored

    async def list_findings(self, investigation_id: str) -> list[Finding]:
        return list(self.findings.get(investigation_id, []))
