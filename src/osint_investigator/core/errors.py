"""Custom exceptions for the investigation orchestrator."""

class OsintError(Exception):
    """Base exception for all orchestrator errors."""
    pass

class ValidationError(OsintError):
    """Raised when caller-supplied search parameters are unusable."""
    pass

class ProviderNotConfiguredError(OsintError):
    """Raised when a required backend (agent gateway, search API, storage) is not configured."""
    pass

class AgentInvocationError(OsintError):
    """Raised by an agent transport when the remote lookup fails."""

    def __init__(self, agent: str, message: str) -> None:
        super().__init__(f"{agent}: {message}")
        self.agent = agent
        self.message = message

class UnknownAgentError(OsintError):
    """Raised when a search type does not resolve to a known agent."""
    pass

class PersistenceError(OsintError):
    """Raised when the finding store rejects a write or read."""
    pass

class PayloadValidationError(PersistenceError):
    """Raised when a finding payload does not match its schema."""
    pass

class InvestigationNotFoundError(OsintError):
    """Raised when an investigation id is not present in the store."""
    pass

class SearchQueryError(OsintError):
    """Raised when a web search backend fails to answer a query."""
    pass
