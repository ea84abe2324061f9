"""Logging for the ``partfinder`` package.

Every module logs under the ``partfinder`` hierarchy, either through
``logging.getLogger(__name__)`` or through the helpers below. Helper lines
start with an upper-case tag (REQUEST, RESPONSE, DB, EXTERNAL, ERROR) followed
by ``key=value`` pairs.
"""

import logging
import sys
from typing import Any

LOGGER_NAME = "partfinder"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the ``partfinder`` logger. Safe to call more than once."""
    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)

    return root


logger = setup_logging()


def _line(tag: str, *parts: str, **fields: Any) -> str:
    pairs = [f"{k}={v}" for k, v in fields.items() if v is not None]
    return " ".join([tag, *parts, *pairs])


def _ms(duration_ms: float | None) -> str | None:
    return f"{duration_ms:.2f}" if duration_ms is not None else None


def log_request(method: str, path: str, **fields: Any) -> None:
    logger.info(_line("REQUEST", method, path, **fields))


def log_response(method: str, path: str, status: int, duration_ms: float) -> None:
    logger.info(_line("RESPONSE", method, path, status=status, duration_ms=_ms(duration_ms)))


def log_error(message: str, exc: Exception | None = None, **fields: Any) -> None:
    """Log an error; the traceback is attached when ``exc`` is given."""
    logger.error(_line("ERROR", message, **fields), exc_info=exc)


def log_db_query(
    operation: str,
    table: str,
    duration_ms: float | None = None,
    rows: int | None = None,
) -> None:
    logger.debug(
        _line("DB", operation, table=table, rows=rows, duration_ms=_ms(duration_ms))
    )


def log_external_call(
    service: str, operation: str, success: bool, duration_ms: float | None = None
) -> None:
    """Log a call to NHTSA, OpenAI or another third-party API."""
    logger.info(
        _line(
            "EXTERNAL",
            service,
            operation,
            status="success" if success else "failed",
            duration_ms=_ms(duration_ms),
        )
    )
