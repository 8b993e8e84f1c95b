from .logging import configure_logging, get_logger, investigation_context

__all__ = ["configure_logging", "get_logger", "investigation_context"]
