from __future__ import annotations

import asyncio
import uuid
from pathlib import Path
from typing import Any

import orjson

from osint_investigator.core.errors import InvestigationNotFoundError, PersistenceError
from osint_investigator.core.interfaces import FindingStore
from osint_investigator.core.state import Finding, Investigation, InvestigationStatus, utcnow
from osint_investigator.utils import get_logger


class JsonFindingStore(FindingStore):
    """One orjson document per investigation under ``root``.

    Each file holds ``{"investigation": {...}, "findings": [...]}`` using the
    same record shapes as the database tables.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self._lock = asyncio.Lock()
        self.logger = get_logger(__name__)

    def _path(self, investigation_id: str) -> Path:
        return self.root / f"{investigation_id}.json"

    def _read(self, investigation_id: str) -> dict[str, Any] | None:
        path = self._path(investigation_id)
        if not path.exists():
            return None
        try:
            return orjson.loads(path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as exc:
            raise PersistenceError(f"Could not read {path}: {exc}") from exc

    def _write(self, investigation_id: str, document: dict[str, Any]) -> None:
        path = self._path(investigation_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".json.tmp")
            tmp_path.write_bytes(orjson.dumps(document, option=orjson.OPT_INDENT_2, default=str))
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Could not write {path}: {exc}") from exc

    async def create_investigation(self, target: str) -> Investigation:
        investigation = Investigation(id=str(uuid.uuid4()), target=target)
        async with self._lock:
            await asyncio.to_thread(
                self._write, investigation.id, {"investigation": investigation.to_record(), "findings": []}
            )
        self.logger.debug("json_store.investigation_created", investigation_id=investigation.id)
        return investigation

    async def get_investigation(self, investigation_id: str) -> Investigation | None:
        document = await asyncio.to_thread(self._read, investigation_id)
        if document is None:
            return None
        return Investigation.from_record(document["investigation"])

    async def update_investigation_status(self, investigation_id: str, status: InvestigationStatus) -> None:
        async with self._lock:
            document = await asyncio.to_thread(self._read, investigation_id)
            if document is None:
                raise InvestigationNotFoundError(investigation_id)
            document["investigation"]["status"] = status.value
            await asyncio.to_thread(self._write, investigation_id, document)

    async def insert_finding(self, finding: Finding) -> Finding:
        stored = Finding.from_record({**finding.to_record(), "id": str(uuid.uuid4()), "created_at": utcnow()})
        async with self._lock:
            document = await asyncio.to_thread(self._read, finding.investigation_id)
            if document is None:
                raise PersistenceError(f"Unknown investigation {finding.investigation_id}")
            document["findings"].append(stored.to_record())
            await asyncio.to_thread(self._write, finding.investigation_id, document)
        return stored

    async def list_findings(self, investigation_id: str) -> list[Finding]:
        document = await asyncio.to_thread(self._read, investigation_id)
        if document is None:
            return []
        return [Finding.from_record(record) for record in document.get("findings", [])]
