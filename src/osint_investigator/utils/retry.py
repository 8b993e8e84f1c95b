from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from osint_investigator.utils import get_logger

T = TypeVar("T")

TRANSIENT_EXCEPTIONS: tuple[type[Exception], ...] = (
    TimeoutError,
    ConnectionError,
    httpx.TransportError,
)


class RetryPolicy:
    """Retry policy for agent transports and search provider calls.

    Only transport-level failures are retried. HTTP status errors and agent
    level errors are returned to the dispatcher as-is.
    """

    def __init__(
        self,
        *,
        attempts: int = 2,
        base: float = 0.5,
        max_wait: float = 4.0,
        retry_exceptions: tuple[type[Exception], ...] = TRANSIENT_EXCEPTIONS,
    ) -> None:
        self.attempts = attempts
        self.base = base
        self.max_wait = max_wait
        self.retry_exceptions = retry_exceptions
        self.logger = get_logger(__name__)

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        self.logger.warning(
            "retry.backoff",
            attempt=retry_state.attempt_number,
            wait=retry_state.next_action.sleep if retry_state.next_action else None,
            last_exception=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    def _retry_kwargs(self) -> dict[str, Any]:
        return {
            "stop": stop_after_attempt(self.attempts),
            "wait": wait_exponential_jitter(initial=self.base, max=self.max_wait),
            "retry": retry_if_exception_type(self.retry_exceptions),
            "before_sleep": self._before_sleep,
            "reraise": True,
        }

    def wrap(self, func: Callable[..., T]) -> Callable[..., T]:
        """Return a wrapped function with retry logic applied."""

        def wrapped(*args: Any, **kwargs: Any) -> T:
            try:
                for attempt in Retrying(**self._retry_kwargs()):
                    with attempt:
                        return func(*args, **kwargs)
            except RetryError as exc:
                raise exc.last_attempt.result() from exc

        return wrapped

    def wrap_async(self, func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        """Async counterpart of :meth:`wrap`."""

        async def wrapped(*args: Any, **kwargs: Any) -> T:
            try:
                async for attempt in AsyncRetrying(**self._retry_kwargs()):
                    with attempt:
                        return await func(*args, **kwargs)
            except RetryError as exc:
                raise exc.last_attempt.result() from exc

        return wrapped
