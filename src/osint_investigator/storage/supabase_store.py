from __future__ import annotations

import asyncio
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from osint_investigator.config import settings
from osint_investigator.core.errors import InvestigationNotFoundError, PersistenceError, ProviderNotConfiguredError
from osint_investigator.core.interfaces import FindingStore
from osint_investigator.core.state import Finding, Investigation, InvestigationStatus
from osint_investigator.utils import get_logger

INVESTIGATIONS_TABLE = "investigations"
FINDINGS_TABLE = "findings"

_STORE_ERRORS = (APIError, httpx.HTTPError)


class SupabaseFindingStore(FindingStore):
    """Findings in the ``investigations`` and ``findings`` tables of a Supabase project.

    The supabase client is synchronous; every ``execute()`` runs in a worker
    thread so concurrent inserts do not block the event loop.
    """

    def __init__(self, client: Client | None = None) -> None:
        if client is None:
            if not settings.secrets.supabase_url or not settings.secrets.supabase_key:
                raise ProviderNotConfiguredError("SUPABASE_URL and SUPABASE_KEY must both be set.")
            client = create_client(settings.secrets.supabase_url, settings.secrets.supabase_key)
        self.client = client
        self.logger = get_logger(__name__)

    async def _execute(self, query: Any, action: str) -> list[dict[str, Any]]:
        try:
            result = await asyncio.to_thread(query.execute)
        except _STORE_ERRORS as exc:
            self.logger.warning("supabase_store.error", action=action, error=str(exc))
            raise PersistenceError(f"{action} failed: {exc}") from exc
        except Exception as exc:
            # Callers only handle PersistenceError.
            self.logger.error(
                "supabase_store.unexpected_error", action=action, error=str(exc), error_type=type(exc).__name__
            )
            raise PersistenceError(f"{action} failed unexpectedly: {exc}") from exc
        return result.data or []

    async def create_investigation(self, target: str) -> Investigation:
        query = self.client.table(INVESTIGATIONS_TABLE).insert(
            {"target": target, "status": InvestigationStatus.ACTIVE.value}
        )
        rows = await self._execute(query, "create_investigation")
        if not rows:
            raise PersistenceError("create_investigation returned no row")
        return Investigation.from_record(rows[0])

    async def get_investigation(self, investigation_id: str) -> Investigation | None:
        query = self.client.table(INVESTIGATIONS_TABLE).select("*").eq("id", investigation_id)
        rows = await self._execute(query, "get_investigation")
        return Investigation.from_record(rows[0]) if rows else None

    async def update_investigation_status(self, investigation_id: str, status: InvestigationStatus) -> None:
        query = self.client.table(INVESTIGATIONS_TABLE).update({"status": status.value}).eq("id", investigation_id)
        rows = await self._execute(query, "update_investigation_status")
        if not rows:
            raise InvestigationNotFoundError(investigation_id)

    async def insert_finding(self, finding: Finding) -> Finding:
        query = self.client.table(FINDINGS_TABLE).insert(finding.to_record())
        rows = await self._execute(query, "insert_finding")
        return Finding.from_record(rows[0]) if rows else finding

    async def list_findings(self, investigation_id: str) -> list[Finding]:
        query = (
            self.client.table(FINDINGS_TABLE)
            .select("*")
            .eq("investigation_id", investigation_id)
            .order("created_at")
        )
        rows = await self._execute(query, "list_findings")
        return [Finding.from_record(row) for row in rows]
