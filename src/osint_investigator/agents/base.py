from __future__ import annotations

from osint_investigator.core.interfaces import Agent
from osint_investigator.utils import get_logger
from osint_investigator.utils.retry import RetryPolicy


class BaseAgent(Agent):
    """Common functionality shared by all lookup agents."""

    def __init__(self, name: str, retry_policy: RetryPolicy | None = None) -> None:
        self.name = name
        self.logger = get_logger(f"agent.{name}")
        self.retry_policy = retry_policy or RetryPolicy()

    def log(self, event: str, **payload: object) -> None:
        """Emit a structured log event scoped to this agent."""
        self.logger.info(event, agent=self.name, **payload)
