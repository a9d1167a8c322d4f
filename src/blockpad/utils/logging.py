"""Structured logging for blockpad.

Editing and persistence events go to a JSON-lines file so they never mix with
the document the CLI prints. Event names are snake_case verbs in the past
tense (``block_split``, ``save_completed``) with ids passed as keywords.

Levels used across the package:
- DEBUG: applied commands, cursor fallbacks, skipped saves
- INFO: notes opened or created, saves started and completed, config loaded
- WARNING: spans, payload fields or blocks repaired while loading a note
- ERROR: failed saves and file writes

Example:
    BLOCKPAD_LOG_LEVEL=DEBUG blockpad show meeting
    tail -f ~/.cache/blockpad/logs/blockpad.log | jq .
"""

import os
from pathlib import Path
from typing import Any, Optional

import structlog

LOG_LEVEL_ENV = "BLOCKPAD_LOG_LEVEL"
DEFAULT_LOG_FILE = Path.home() / ".cache" / "blockpad" / "logs" / "blockpad.log"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def resolve_log_level(value: Optional[str]) -> str:
    """Normalize a level name, falling back to INFO for unset or unknown values."""
    level = (value or "").strip().upper()
    return level if level in LOG_LEVELS else "INFO"


def configure_logging(log_file: Optional[Path] = None, level: Optional[str] = None) -> Path:
    """
    Send structlog output for this process to a JSON-lines file.

    Args:
        log_file: Destination file (default ~/.cache/blockpad/logs/blockpad.log)
        level: Minimum level; read from BLOCKPAD_LOG_LEVEL when omitted

    Returns:
        The log file in use
    """
    log_file = Path(log_file) if log_file is not None else DEFAULT_LOG_FILE
    log_file.parent.mkdir(parents=True, exist_ok=True)
    log_level = resolve_log_level(level if level is not None else os.environ.get(LOG_LEVEL_ENV))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=open(log_file, "a")),
        cache_logger_on_first_use=True,
    )
    return log_file


def get_logger(name: str) -> Any:
    """Logger bound to a module name, e.g. ``get_logger(__name__)``."""
    return structlog.get_logger(name)
