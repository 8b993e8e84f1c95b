from .metrics import (
    attach_metrics,
    record_agent_call,
    record_finding_persisted,
    record_investigation,
    record_persistence_failure,
)

__all__ = [
    "attach_metrics",
    "record_agent_call",
    "record_finding_persisted",
    "record_investigation",
    "record_persistence_failure",
]
