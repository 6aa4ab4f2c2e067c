"""Structured logging setup for the document generation pipeline."""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Optional, Dict, Any, Iterator
from pathlib import Path

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(generation_id)s] %(message)s"

# Context fields always present on records so format strings never fail
_DEFAULT_FIELDS = {"generation_id": "-", "document_type": "-"}

_log_context: ContextVar[Dict[str, Any]] = ContextVar("dispute_docs_log_context", default={})


class ContextFilter(logging.Filter):
    """Add request context information to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context fields to log record."""
        fields = dict(_DEFAULT_FIELDS)
        fields.update(_log_context.get())
        for key, value in fields.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


_context_filter = ContextFilter()


def setup_logging(
    level: str = "INFO",
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Set up structured logging with optional file output.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Format string for log messages
        log_file: Optional path to log file

    Returns:
        Configured root logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(_context_filter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(_context_filter)
        root_logger.addHandler(file_handler)

    return root_logger


def get_context() -> Dict[str, Any]:
    """Return a copy of the current task's log context."""
    return dict(_log_context.get())


@contextmanager
def log_context(**kwargs) -> Iterator[None]:
    """
    Scope context fields to a block, restoring the previous context after.

    Each asyncio task runs in its own copy of the context, so two requests
    generating concurrently never see each other's generation id.

    Args:
        **kwargs: Context key-value pairs
    """
    updated = dict(_log_context.get())
    updated.update(kwargs)
    token = _log_context.set(updated)
    try:
        yield
    finally:
        _log_context.reset(token)
