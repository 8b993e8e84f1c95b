from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from osint_investigator.core.agents import AgentKind
from osint_investigator.core.errors import ValidationError

_LIST_DELIMITER = re.compile(r"[,;\n]")


def utcnow() -> str:
    return datetime.now(UTC).isoformat()


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def split_delimited(value: str | None) -> list[str]:
    """Split a comma/semicolon/newline separated list, dropping blanks."""
    if not value:
        return []
    return [part.strip() for part in _LIST_DELIMITER.split(value) if part.strip()]


class VerificationStatus(str, Enum):
    NEEDS_REVIEW = "needs_review"
    VERIFIED = "verified"
    INACCURATE = "inaccurate"


class InvestigationStatus(str, Enum):
    ACTIVE = "active"
    COMPLETE = "complete"
    PARTIAL = "partial"


class OutcomeStatus(str, Enum):
    OK = "ok"
    ERROR = "error"
    NO_DATA = "no_data"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class GeneratedQuery:
    """Ranked web-search query produced by the query generator."""

    query: str
    priority: int
    total_value: int
    template: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "priority": self.priority,
            "totalValue": self.total_value,
            "template": self.template,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> GeneratedQuery:
        return cls(
            query=str(raw.get("query", "")).strip(),
            priority=int(raw.get("priority", 0)),
            total_value=int(raw.get("totalValue", raw.get("total_value", 0))),
            template=str(raw.get("template", "")),
        )


@dataclass(slots=True)
class SearchParameters:
    """Identity fragments supplied by the caller for one investigation."""

    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    username: str | None = None
    address: str | None = None
    keywords: str | None = None
    known_relatives: str | None = None
    generated_queries: list[GeneratedQuery] = field(default_factory=list)

    FRAGMENT_FIELDS = ("full_name", "email", "phone", "username", "address", "keywords", "known_relatives")
    DATA_POINT_FIELDS = ("full_name", "email", "phone", "username", "address", "keywords")

    def __post_init__(self) -> None:
        for name in self.FRAGMENT_FIELDS:
            setattr(self, name, _clean(getattr(self, name)))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> SearchParameters:
        """Build parameters from camelCase (wire) or snake_case keys."""
        aliases = {
            "fullName": "full_name",
            "knownRelatives": "known_relatives",
            "generatedQueries": "generated_queries",
            "_generatedQueries": "generated_queries",
        }
        values: dict[str, Any] = {}
        for key, value in raw.items():
            name = aliases.get(key, key)
            if name in cls.FRAGMENT_FIELDS:
                values[name] = value
            elif name == "generated_queries" and value:
                values[name] = [
                    item if isinstance(item, GeneratedQuery) else GeneratedQuery.from_dict(item)
                    for item in value
                ]
        return cls(**values)

    def validate(self) -> SearchParameters:
        if not self.present_fragments():
            raise ValidationError(
                "At least one identity fragment (name, email, phone, username, address, keywords, "
                "known relatives) must be supplied."
            )
        return self

    def present_fragments(self) -> list[str]:
        return [name for name in self.FRAGMENT_FIELDS if getattr(self, name)]

    @property
    def keyword_list(self) -> list[str]:
        return [keyword.lower() for keyword in split_delimited(self.keywords)]

    @property
    def relative_list(self) -> list[str]:
        return split_delimited(self.known_relatives)

    @property
    def data_point_count(self) -> int:
        return sum(1 for name in self.DATA_POINT_FIELDS if getattr(self, name))

    @property
    def target(self) -> str:
        """Human-readable investigation target."""
        for name in self.FRAGMENT_FIELDS:
            value = getattr(self, name)
            if value:
                return value
        return ""

    def search_context(self) -> dict[str, Any]:
        return {
            "fullName": self.full_name,
            "hasEmail": bool(self.email),
            "hasPhone": bool(self.phone),
            "hasUsername": bool(self.username),
            "hasAddress": bool(self.address),
            "hasKeywords": bool(self.keyword_list),
            "keywords": self.keyword_list,
            "knownRelatives": self.relative_list,
            "totalDataPoints": self.data_point_count,
        }

    def to_dict(self) -> dict[str, Any]:
        """Wire representation passed to agents as ``searchData``."""
        payload: dict[str, Any] = {
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "username": self.username,
            "address": self.address,
            "keywords": self.keywords,
            "knownRelatives": self.known_relatives,
        }
        payload = {key: value for key, value in payload.items() if value}
        if self.generated_queries:
            payload["generatedQueries"] = [query.to_dict() for query in self.generated_queries]
        return payload


@dataclass(frozen=True, slots=True)
class SearchTask:
    """One immutable unit of work bound to a single agent invocation."""

    agent: AgentKind
    target_query: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    qualifier: str | None = None
    priority: int | None = None
    source_template: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.payload, MappingProxyType):
            object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))

    @property
    def search_type(self) -> str:
        if self.qualifier:
            return f"{self.agent.value}_{self.qualifier}"
        return self.agent.value

    @property
    def is_web_class(self) -> bool:
        return self.agent.is_web_class

    def body(self) -> dict[str, Any]:
        """Request body sent to the agent."""
        return {"target": self.target_query, **dict(self.payload)}


@dataclass(slots=True)
class WebResultItem:
    """One web-search hit as carried in a merged web finding."""

    title: str
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
    keyword_matches: list[str] = field(default_factory=list)
    source_query: str | None = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> WebResultItem:
        try:
            score = float(raw.get("confidenceScore") or 0.0)
        except (TypeError, ValueError, OverflowError):
            score = 0.0
        if not math.isfinite(score):
            score = 0.0
        matches = raw.get("keywordMatches")
        return cls(
            title=str(raw.get("title") or ""),
            link=str(raw.get("link") or raw.get("url") or ""),
            snippet=str(raw.get("snippet") or ""),
            display_link=str(raw.get("displayLink") or ""),
            confidence_score=score,
            is_exact_match=bool(raw.get("isExactMatch", False)),
            has_location=bool(raw.get("hasLocation", False)),
            has_phone=bool(raw.get("hasPhone", False)),
            has_email=bool(raw.get("hasEmail", False)),
            has_username=bool(raw.get("hasUsername", False)),
            has_known_relative=bool(raw.get("hasKnownRelative", False)),
            keyword_matches=[str(match) for match in matches] if isinstance(matches, (list, tuple)) else [],
            source_query=str(raw["sourceQuery"]) if raw.get("sourceQuery") is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "link": self.link,
            "snippet": self.snippet,
            "displayLink": self.display_link,
            "confidenceScore": self.confidence_score,
            "isExactMatch": self.is_exact_match,
            "hasLocation": self.has_location,
            "hasPhone": self.has_phone,
            "hasEmail": self.has_email,
            "hasUsername": self.has_username,
            "hasKnownRelative": self.has_known_relative,
            "keywordMatches": self.keyword_matches,
            "sourceQuery": self.source_query,
        }


@dataclass(slots=True)
class DiagnosticEntry:
    agent_type: str
    status: OutcomeStatus
    error: str | None = None
    has_data: bool | None = None
    duration_ms: int | None = None

    def to_dict(self) -> dict[str, Any]:
        entry: dict[str, Any] = {"agentType": self.agent_type, "status": self.status.value}
        if self.error is not None:
            entry["error"] = self.error
        if self.has_data is not None:
            entry["hasData"] = self.has_data
        if self.duration_ms is not None:
            entry["durationMs"] = self.duration_ms
        return entry


@dataclass(slots=True)
class Investigation:
    id: str
    target: str
    status: InvestigationStatus = InvestigationStatus.ACTIVE
    created_at: str = field(default_factory=utcnow)

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "target": self.target,
            "status": self.status.value,
            "created_at": self.created_at,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Investigation:
        return cls(
            id=str(record["id"]),
            target=record.get("target") or "",
            status=InvestigationStatus(record.get("status") or InvestigationStatus.ACTIVE.value),
            created_at=record.get("created_at") or utcnow(),
        )


@dataclass(slots=True)
class Finding:
    investigation_id: str
    agent_type: str
    source: str
    data: dict[str, Any]
    confidence_score: int | None = None
    verification_status: VerificationStatus = VerificationStatus.NEEDS_REVIEW
    id: str | None = None
    created_at: str | None = None

    def to_record(self) -> dict[str, Any]:
        record = {
            "investigation_id": self.investigation_id,
            "agent_type": self.agent_type,
            "source": self.source,
            "data": self.data,
            "confidence_score": self.confidence_score,
            "verification_status": self.verification_status.value,
        }
        if self.id is not None:
            record["id"] = self.id
        if self.created_at is not None:
            record["created_at"] = self.created_at
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Finding:
        return cls(
            id=str(record["id"]) if record.get("id") is not None else None,
            investigation_id=str(record["investigation_id"]),
            agent_type=record["agent_type"],
            source=record.get("source") or "",
            data=dict(record.get("data") or {}),
            confidence_score=record.get("confidence_score"),
            verification_status=VerificationStatus(
                record.get("verification_status") or VerificationStatus.NEEDS_REVIEW.value
            ),
            created_at=record.get("created_at"),
        )


@dataclass(slots=True)
class InvestigationEvent:
    event: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.event, "timestamp": self.timestamp, "payload": self.payload}


@dataclass(slots=True)
class EventLog:
    """Investigation-scoped structured event log returned with every result."""

    events: list[InvestigationEvent] = field(default_factory=list)

    def record_log(self, event: str, payload: dict[str, Any] | None = None) -> None:
        self.events.append(InvestigationEvent(event=event, payload=payload or {}))

    def to_list(self) -> list[dict[str, Any]]:
        return [event.to_dict() for event in self.events]

    def __len__(self) -> int:
        return len(self.events)


@dataclass(slots=True)
class InvestigationResult:
    investigation_id: str
    searches_run: int
    search_types: list[str]
    status: InvestigationStatus
    findings_persisted: int
    events: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "investigationId": self.investigation_id,
            "searchesRun": self.searches_run,
            "searchTypes": self.search_types,
            "status": self.status.value,
            "findingsPersisted": self.findings_persisted,
            "events": self.events,
        }


@dataclass(slots=True)
class RetryRequest:
    investigation_id: str
    agent_type: str
    search_data: SearchParameters

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> RetryRequest:
        search_data = raw.get("searchData", raw.get("search_data")) or {}
        if not isinstance(search_data, SearchParameters):
            search_data = SearchParameters.from_mapping(search_data)
        return cls(
            investigation_id=str(raw.get("investigationId", raw.get("investigation_id", ""))),
            agent_type=str(raw.get("agentType", raw.get("agent_type", ""))),
            search_data=search_data,
        )


@dataclass(slots=True)
class RetryResult:
    success: bool
    agent_type: str
    confidence_score: int | None = None
    error: str | None = None
    events: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success, "agentType": self.agent_type}
        if self.confidence_score is not None:
            payload["confidenceScore"] = self.confidence_score
        if self.error is not None:
            payload["error"] = self.error
        payload["events"] = self.events
        return payload
