from typing import Literal

from .json_store import JsonFindingStore
from .memory import InMemoryFindingStore

StorageBackend = Literal["memory", "json", "supabase"]


def create_finding_store(backend: StorageBackend, **kwargs):
    """Factory function to create finding stores."""
    from osint_investigator.config import settings
    from osint_investigator.core.errors import ProviderNotConfiguredError

    if backend == "memory":
        return InMemoryFindingStore()

    if backend == "json":
        return JsonFindingStore(kwargs.get("root") or settings.runtime.findings_dir)

    if backend == "supabase":
        from .supabase_store import SupabaseFindingStore

        return SupabaseFindingStore(**kwargs)

    raise ProviderNotConfiguredError(f"Unsupported storage backend: {backend}")


__all__ = [
    "InMemoryFindingStore",
    "JsonFindingStore",
    "StorageBackend",
    "create_finding_store",
]
