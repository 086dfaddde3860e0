"""structlog setup shared by the client and its tests.

Records always pass through stdlib logging and are rendered by a
ProcessorFormatter on each handler. Two env vars tune the output
(case-insensitive):

    LOG_FORMAT  json | console (default: console)
    LOG_LEVEL   DEBUG | INFO | WARNING | ERROR | CRITICAL (default: INFO)
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any

LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

_LOG_FORMATS = frozenset({"JSON", "CONSOLE", ""})
_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# Library loggers that report every request or frame at INFO/DEBUG.
_QUIET_LOGGERS = ("httpx", "httpcore", "websockets")


def _serialize_enums(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Replace Enum instances with their .value for readable log output."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def _is_test() -> bool:
    return "pytest" in sys.modules


def _env_choice(name: str, default: str, choices: frozenset[str]) -> str:
    value = os.environ.get(name, default).strip().upper()
    if value not in choices:
        allowed = ", ".join(sorted(c or "unset" for c in choices))
        msg = f"Invalid {name}={value!r}. Expected one of: {allowed}."
        raise ValueError(msg)
    return value


def configure_structlog() -> None:
    """Route structlog events through stdlib logging.

    Rendering happens in the handler's ProcessorFormatter, so tests can
    call this alone and still capture records with caplog.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _serialize_enums,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def _build_formatter(*, json_mode: bool, colors: bool = False) -> logging.Formatter:
    renderer = structlog.processors.JSONRenderer() if json_mode else structlog.dev.ConsoleRenderer(colors=colors)
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def _open_log_file(log_dir: Path | str, formatter: logging.Formatter) -> logging.FileHandler:
    dir_path = Path(log_dir)
    dir_path.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)
    handler = logging.FileHandler(dir_path / f"{timestamp}.log")
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    log_dir: Path | str | None = None,
    level: int | None = None,
) -> Path | None:
    """Configure structlog with stderr and optional file output.

    The console front end owns stdout, so log lines go to stderr.
    When log_dir is provided, creates a datetime-stamped log file
    inside that directory and returns its path; None otherwise.
    """
    json_mode = _env_choice("LOG_FORMAT", "", _LOG_FORMATS) == "JSON"
    if level is None:
        level = getattr(logging, _env_choice("LOG_LEVEL", "INFO", _LOG_LEVELS))

    configure_structlog()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(_build_formatter(json_mode=json_mode, colors=sys.stderr.isatty()))
    root_logger.addHandler(stderr_handler)

    if log_dir is None or _is_test():
        return None

    file_handler = _open_log_file(log_dir, _build_formatter(json_mode=json_mode))
    root_logger.addHandler(file_handler)
    return Path(file_handler.baseFilename)
