from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Any, Callable, Iterator, MutableMapping

import orjson
import structlog

from osint_investigator.config import settings

# Event keys whose values must never reach a log sink.
SECRET_KEYS = frozenset(
    {
        "authorization",
        "agent_gateway_token",
        "api_key",
        "google_api_key",
        "supabase_key",
        "tavily_api_key",
        "token",
    }
)
REDACTED = "***"

QUIET_LOGGERS = ("httpx", "httpcore", "hpack", "postgrest", "urllib3")


def redact_secrets(_: Any, __: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    for key in event_dict.keys() & SECRET_KEYS:
        if event_dict[key]:
            event_dict[key] = REDACTED
    headers = event_dict.get("headers")
    if isinstance(headers, dict) and any(name.lower() == "authorization" for name in headers):
        event_dict["headers"] = {
            name: REDACTED if name.lower() == "authorization" else value for name, value in headers.items()
        }
    return event_dict


def _dumps(event_dict: Any, **_: Any) -> str:
    return orjson.dumps(event_dict, default=str).decode()


def _shared_processors() -> list[Callable[..., Any]]:
    return [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.contextvars.merge_contextvars,
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _configure_structlog(level: int) -> None:
    if settings.runtime.environment == "local":
        processors: list[Callable[..., Any]] = [
            *_shared_processors(),
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.rich_traceback,
            ),
        ]
    else:
        processors = [
            structlog.processors.add_log_level,
            *_shared_processors(),
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(serializer=_dumps),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


def _configure_stdlib_logging(level: int) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(fmt="%(asctime)s %(levelname)s %(name)s %(message)s", datefmt="%Y-%m-%dT%H:%M:%S%z")
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Transport clients log each request; agents log their own calls.
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def _python_log_level(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


def configure_logging(level: str | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    ``level`` overrides ``LOG_LEVEL`` from the runtime settings.
    """
    numeric_level = _python_log_level(level or settings.runtime.log_level)
    _configure_stdlib_logging(numeric_level)
    _configure_structlog(numeric_level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    if not structlog.is_configured():
        configure_logging()
    return structlog.stdlib.get_logger(name)


@contextmanager
def investigation_context(investigation_id: str, **extra: Any) -> Iterator[None]:
    """Bind the investigation id (and any extra keys) to every log line in the block."""
    with structlog.contextvars.bound_contextvars(investigation_id=investigation_id, **extra):
        yield
