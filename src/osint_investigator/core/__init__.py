from .agents import AGENT_SPECS, AgentKind, AgentSpec
from .errors import (
    AgentInvocationError,
    InvestigationNotFoundError,
    OsintError,
    PayloadValidationError,
    PersistenceError,
    SearchQueryError,
    ProviderNotConfiguredError,
    UnknownAgentError,
    ValidationError,
)
from .interfaces import Agent, AgentRequest, AgentResponse, FindingStore, SearchProvider
from .state import (
    DiagnosticEntry,
    EventLog,
    Finding,
    GeneratedQuery,
    Investigation,
    InvestigationResult,
    InvestigationStatus,
    OutcomeStatus,
    RetryRequest,
    RetryResult,
    SearchParameters,
    SearchTask,
    VerificationStatus,
    WebResultItem,
)

__all__ = [
    "AGENT_SPECS",
    "AgentKind",
    "AgentSpec",
    "Agent",
    "AgentRequest",
    "AgentResponse",
    "FindingStore",
    "SearchProvider",
    "DiagnosticEntry",
    "EventLog",
    "Finding",
    "GeneratedQuery",
    "Investigation",
    "InvestigationResult",
    "InvestigationStatus",
    "OutcomeStatus",
    "RetryRequest",
    "RetryResult",
    "SearchParameters",
    "SearchTask",
    "VerificationStatus",
    "WebResultItem",
    "OsintError",
    "ValidationError",
    "ProviderNotConfiguredError",
    "AgentInvocationError",
    "UnknownAgentError",
    "PersistenceError",
    "PayloadValidationError",
    "SearchQueryError",
    "InvestigationNotFoundError",
]
