"""Structured logging configuration.

Features:
- JSON-formatted log output for production
- Human-readable format for development
- Service context on every entry
- Turn-scoped loggers carrying session_id/turn, with INPUT/OUTPUT/METADATA
  entries marked via a ``marker`` key
- Per-session log files under ``log_dir``: ``<session_id>.log`` for the
  orchestrator and ``<session_id>_<provider>.log`` for each participant
"""

import logging
import sys
from pathlib import Path
from typing import Any

import structlog
from structlog.types import Processor

from llm_conversation.core.config import get_settings


# Markers for conversation content entries
INPUT = "INPUT"
OUTPUT = "OUTPUT"
METADATA = "METADATA"


def add_service_context(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add service context to all log entries.

    Args:
        logger: The wrapped logger object.
        method_name: The name of the method called on the logger.
        event_dict: The event dictionary to process.

    Returns:
        Updated event dictionary with service context.
    """
    settings = get_settings()
    event_dict["service"] = settings.service_name
    event_dict["environment"] = settings.environment
    return event_dict


class SessionLogWriter:
    """Processor that mirrors session-bound entries into per-session log files.

    Entries bound to a ``session_id`` are appended to ``<log_dir>/<session_id>.log``.
    Entries that also carry a ``provider`` (the participant adapters) go to
    ``<log_dir>/<session_id>_<provider>.log`` instead, tagged with ``[TURN n]``.
    Other entries pass through untouched; the event dict is never modified.

    Line format::

        [2025-03-01 09:05:07] [INFO] [TURN 3] Turn input marker=INPUT content=...
    """

    _SKIP_KEYS = frozenset({"event", "timestamp", "level", "session_id", "turn", "provider"})

    def __init__(self, log_dir: str | Path) -> None:
        self.log_dir = Path(log_dir)

    def __call__(
        self,
        logger: logging.Logger,
        method_name: str,
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        session_id = event_dict.get("session_id")
        if not session_id:
            return event_dict

        provider = event_dict.get("provider")
        filename = f"{session_id}_{provider}.log" if provider else f"{session_id}.log"
        self._append(self.log_dir / filename, self.format_line(method_name, event_dict))
        return event_dict

    def format_line(self, method_name: str, event_dict: dict[str, Any]) -> str:
        timestamp = str(event_dict.get("timestamp", ""))[:19].replace("T", " ")
        level = str(event_dict.get("level", method_name)).upper()
        parts = [f"[{timestamp}]", f"[{level}]"]
        if event_dict.get("turn"):
            parts.append(f"[TURN {event_dict['turn']}]")
        parts.append(str(event_dict.get("event", "")))
        parts.extend(
            f"{key}={value}" for key, value in event_dict.items() if key not in self._SKIP_KEYS
        )
        return " ".join(parts)

    def _append(self, path: Path, line: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")


def configure_logging(log_level: str | None = None) -> None:
    """Configure structured logging for the application.

    In development: Human-readable colored output
    In production: JSON-formatted structured logs
    With session_log_files on: session-bound entries also go to files
    under settings.log_dir (see SessionLogWriter)

    Args:
        log_level: Overrides the configured level when given.
    """
    settings = get_settings()
    level = logging.getLevelName((log_level or settings.log_level).upper())

    use_json = settings.environment in ("production", "staging")

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if settings.session_log_files:
        shared_processors.append(SessionLogWriter(settings.log_dir))
    shared_processors += [
        add_service_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if use_json:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Optional logger name (module name recommended).

    Returns:
        Configured structlog BoundLogger instance.

    Example:
        ```python
        from llm_conversation.core.logging import get_logger

        logger = get_logger(__name__)
        logger.info("Turn started", session_id="conversation_...", turn=3)
        ```
    """
    return structlog.get_logger(name)


def get_turn_logger(
    name: str | None,
    session_id: str,
    turn: int,
    **context: Any,
) -> structlog.BoundLogger:
    """Logger bound to one turn of one session."""
    return get_logger(name).bind(session_id=session_id, turn=turn, **context)


# Convenience type alias
Logger = structlog.BoundLogger
