"""
Logging for Agent Shell.

Two audiences read the logs: a developer watching the terminal, who gets
Rich-rendered lines on stderr, and whatever collects files in production,
which gets one JSON object per line. Lines logged while a prompt turn is
processed carry that turn's task_id.

Agents additionally report to a per-agent sink (see create_agent_log_sink),
which is part of the bots' user-facing output rather than of the log.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler

from agent_shell.config import Settings, get_settings

# Signature of the callback agents report diagnostics through
AgentLogger = Callable[[str], None]

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

_task_id: ContextVar[Optional[str]] = ContextVar("task_id", default=None)

# Attributes every LogRecord has; anything else came in through extra=
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with extra= fields and the current task_id."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        task_id = _task_id.get()
        if task_id:
            payload["task_id"] = task_id

        if record.levelno <= logging.DEBUG:
            payload["location"] = f"{record.filename}:{record.lineno}"

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        payload.update(
            (key, value) for key, value in vars(record).items() if key not in _STANDARD_ATTRS
        )
        return json.dumps(payload, default=str)


def _console_handler(settings: Settings) -> logging.Handler:
    # stdout belongs to the bots
    if settings.is_development():
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        return handler

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter())
    return handler


def _file_handler(path: Path) -> logging.Handler:
    handler = RotatingFileHandler(
        path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(
    log_level: Optional[str] = None,
    log_dir: Optional[Path] = None,
    log_file: str = "agent_shell.log",
    settings: Optional[Settings] = None,
) -> None:
    """
    Replace the root logger's handlers with the console and file handlers.

    Args:
        log_level: Level name; defaults to settings.log_level.
        log_dir: Directory of the rotating log file, "logs" by default.
            Created if missing.
        log_file: File name inside log_dir.
        settings: Settings deciding the console format; the cached
            get_settings() when omitted.
    """
    settings = settings or get_settings()
    level = log_level or settings.log_level
    log_path = (log_dir or Path("logs")) / log_file
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in (_console_handler(settings), _file_handler(log_path)):
        handler.setLevel(level)
        root.addHandler(handler)

    # LiteLLM is chatty at INFO
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging initialized",
        extra={"level": level, "environment": settings.environment, "log_file": str(log_path)},
    )


def get_logger(name: str) -> logging.Logger:
    """Module logger; configuration comes from setup_logging() on the root."""
    return logging.getLogger(name)


def set_task_id(task_id: str) -> None:
    """Set the task ID for the current context."""
    _task_id.set(task_id)


def get_task_id() -> Optional[str]:
    """Get the current task ID from context."""
    return _task_id.get()


def clear_task_id() -> None:
    """Clear the task ID from the current context."""
    _task_id.set(None)


def create_agent_log_sink(
    agent_name: str, output: Callable[[str], None] = print
) -> AgentLogger:
    """
    Build the logger callback installed on an agent.

    Each message is written as a banner line naming the agent, the message
    itself and a blank separator line.

    Args:
        agent_name: Name shown in the banner.
        output: Line writer, print by default.

    Returns:
        Callback accepting one diagnostic message.

    Example:
        >>> agent.set_logger(create_agent_log_sink(agent.name))
    """

    def sink(message: str) -> None:
        output(f"-----[{agent_name}]-----")
        output(message)
        output("\n")

    return sink
