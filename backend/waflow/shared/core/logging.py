"""
Logging Configuration with Correlation ID Support

Both halves of the project log through here:
1. The flow service binds the incoming X-Request-ID per request (see middleware)
2. The editor's data client binds a fresh ID per outgoing call and forwards it,
   so one editor action can be traced through the server logs
"""
import logging
import uuid
from contextvars import ContextVar
from typing import Optional, Union

# Works with async code: each task sees its own value
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s | [%(correlation_id)s] | %(name)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_correlation_id() -> Optional[str]:
    """Get the correlation ID bound to the current context."""
    return correlation_id_var.get()


def new_correlation_id(prefix: str = "req") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """
    Bind a correlation ID to the current context.
    Generates one when not provided.

    Returns the ID that was bound.
    """
    if not correlation_id:
        correlation_id = new_correlation_id()
    correlation_id_var.set(correlation_id)
    return correlation_id


class CorrelationIdFilter(logging.Filter):
    """Adds `correlation_id` to every record so the formatter can print it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "no-request"
        return True


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Install the correlation-aware handler on the root logger.

    Safe to call more than once: existing root handlers are replaced,
    uvicorn loggers are pointed at the same handler.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(CorrelationIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicate logs
    for existing_handler in root_logger.handlers[:]:
        root_logger.removeHandler(existing_handler)

    root_logger.addHandler(handler)

    for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers = []
        uvicorn_logger.addHandler(handler)
