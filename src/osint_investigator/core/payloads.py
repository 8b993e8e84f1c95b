"""Schemas for finding payloads, one per payload variant.

Every finding is validated against the schema of its variant right before it
is written. Web-class findings have a fixed shape; agent findings are open
(adapter specific) but must carry the search context; the System finding
carries the diagnostic summary.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from osint_investigator.core.agents import AgentKind
from osint_investigator.core.errors import PayloadValidationError


class PayloadVariant(str, Enum):
    WEB_SEARCH = "web_search"
    AGENT = "agent"
    SYSTEM = "system"

    @classmethod
    def for_agent(cls, kind: AgentKind) -> PayloadVariant:
        return cls.WEB_SEARCH if kind.is_web_class else cls.AGENT


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class SearchContextPayload(_CamelModel):
    full_name: str | None = None
    has_email: bool = False
    has_phone: bool = False
    has_username: bool = False
    has_address: bool = False
    has_keywords: bool = False
    keywords: list[str] = Field(default_factory=list)
    known_relatives: list[str] = Field(default_factory=list)
    total_data_points: int = Field(ge=0, le=6)


class WebResultItemPayload(_CamelModel):
    title: str = ""
    link: str
    snippet: str = ""
    display_link: str = ""
    confidence_score: float = 0.0
    is_exact_match: bool = False
    has_location: bool = False
    has_phone: bool = False
    has_email: bool = False
    has_username: bool = False
    has_known_relative: bool = False
    keyword_matches: list[str] = Field(default_factory=list)
    source_query: str | None = None


class RelativePayload(_CamelModel):
    name: str
    relationship: str | None = None


class WebSearchPayload(_CamelModel):
    confirmed_items: list[WebResultItemPayload]
    possible_items: list[WebResultItemPayload]
    discovered_relatives: list[RelativePayload]
    queries_used: list[str]
    search_context: SearchContextPayload
    error: str | None = None
    search_type: str | None = None


class AgentPayload(_CamelModel):
    search_context: SearchContextPayload


class DiagnosticEntryPayload(_CamelModel):
    agent_type: str
    status: str = Field(pattern=r"^(ok|error|no_data|failed)$")
    error: str | None = None
    has_data: bool | None = None
    duration_ms: int | None = None


class SystemPayload(_CamelModel):
    message: str
    search_summary: list[DiagnosticEntryPayload]
    events: list[dict[str, Any]] = Field(default_factory=list)


SCHEMAS: dict[PayloadVariant, type[BaseModel]] = {
    PayloadVariant.WEB_SEARCH: WebSearchPayload,
    PayloadVariant.AGENT: AgentPayload,
    PayloadVariant.SYSTEM: SystemPayload,
}


def validate_payload(variant: PayloadVariant, data: dict[str, Any]) -> dict[str, Any]:
    """Validate ``data`` against its variant schema and return it unchanged."""
    try:
        SCHEMAS[variant].model_validate(data)
    except PydanticValidationError as exc:
        raise PayloadValidationError(
            f"{variant.value} payload failed validation: {exc.error_count()} error(s): "
            + "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()[:5])
        ) from exc
    return data


__all__ = [
    "PayloadVariant",
    "SearchContextPayload",
    "WebResultItemPayload",
    "WebSearchPayload",
    "AgentPayload",
    "SystemPayload",
    "validate_payload",
]
