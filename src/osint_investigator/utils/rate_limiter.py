from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from osint_investigator.config import settings
from osint_investigator.utils import get_logger

T = TypeVar("T")


class AgentDeadlineExceeded(TimeoutError):
    """Raised when a single agent call outlives its deadline."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"agent call exceeded {timeout:g}s deadline")
        self.timeout = timeout


class ConcurrencyLimiter:
    """Bounds in-flight agent calls and applies a per-call deadline.

    One limiter is shared by every task of a dispatch. Waiting for a slot does
    not count against the deadline; only the call itself does.
    """

    def __init__(self, max_concurrent: int, timeout_seconds: float | None) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.max_concurrent = max_concurrent
        self.timeout_seconds = timeout_seconds
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self.logger = get_logger(__name__)

    async def run(self, awaitable: Awaitable[T]) -> T:
        async with self._semaphore:
            if self.timeout_seconds is None:
                return await awaitable
            deadline = asyncio.timeout(self.timeout_seconds)
            try:
                async with deadline:
                    return await awaitable
            except TimeoutError as exc:
                # Timeouts raised by the agent itself keep their own message.
                if not deadline.expired():
                    raise
                self.logger.debug("limiter.deadline_exceeded", timeout=self.timeout_seconds)
                raise AgentDeadlineExceeded(self.timeout_seconds) from exc


def default_concurrency_limiter() -> ConcurrencyLimiter:
    return ConcurrencyLimiter(
        max_concurrent=settings.runtime.max_concurrent_agents,
        timeout_seconds=settings.runtime.agent_timeout_seconds,
    )
