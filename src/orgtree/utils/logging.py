"""Structured logging setup for orgtree.

Only the command line layer configures logging and emits events; the parser
and exporter are pure functions and never log.
"""

import atexit
import os
from pathlib import Path
from typing import Any, Optional, TextIO

import structlog


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
DEFAULT_LOG_FILE = Path(".cache") / "orgtree" / "logs" / "orgtree.log"

_log_stream: Optional[TextIO] = None


def configure_logging(log_file: Optional[Path] = None) -> None:
    """
    Send structlog events as JSON lines to ~/.cache/orgtree/logs/orgtree.log.

    ORGTREE_LOG_LEVEL selects the minimum level:
    - DEBUG: Everything
    - INFO: Files loaded and parsed, configuration loaded (default)
    - WARNING: Round-trip mismatches reported by `orgtree check`
    - ERROR: Unreadable files, contract violations, invalid configuration

    Calling this again replaces the previous destination and closes its
    file.

    Args:
        log_file: Override the log destination (mainly for tests)

    Example:
        ORGTREE_LOG_LEVEL=DEBUG orgtree check notes.org
        tail -f ~/.cache/orgtree/logs/orgtree.log | jq .
    """
    if log_file is None:
        log_file = Path.home() / DEFAULT_LOG_FILE

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_log_level()),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=_open_log_stream(log_file)),
        # Loggers resolve the configuration on every call so the previous
        # stream can be closed safely
        cache_logger_on_first_use=False,
    )


def _log_level() -> str:
    level = os.environ.get("ORGTREE_LOG_LEVEL", "INFO").strip().upper()
    return level if level in LOG_LEVELS else "INFO"


def _open_log_stream(log_file: Path) -> TextIO:
    global _log_stream

    if _log_stream is not None and not _log_stream.closed:
        if Path(_log_stream.name) == log_file:
            return _log_stream
        _log_stream.close()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    _log_stream = open(log_file, "a", encoding="utf-8")
    return _log_stream


@atexit.register
def _close_log_stream() -> None:
    if _log_stream is not None and not _log_stream.closed:
        _log_stream.close()


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of calling module)

    Returns:
        Structured logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("org_document_parsed", path="notes.org", headers=12)
    """
    return structlog.get_logger(name)
