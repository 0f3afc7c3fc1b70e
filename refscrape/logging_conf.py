"""structlog events rendered as JSON lines by python-json-logger.

Events go to stderr and ``logs/refscrape.log``; each profile run also gets
``logs/profiles/<name>.log``. ``REFSCRAPE_HOME`` selects the root of ``logs/``.
"""

from __future__ import annotations

import logging
import logging.config
import os
from collections import deque
from pathlib import Path

import structlog
from pythonjsonlogger.json import JsonFormatter

LOGGER_NAME = "refscrape"
_JSON_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s"

_configured = False


def log_dir() -> Path:
    home = os.environ.get("REFSCRAPE_HOME")
    root = Path(home).expanduser() if home else Path.cwd()
    return root.resolve() / "logs"


def run_log_path() -> Path:
    return log_dir() / "refscrape.log"


def profile_log_path(profile_name: str) -> Path:
    return log_dir() / "profiles" / f"{profile_name}.log"


def _json_formatter() -> JsonFormatter:
    return JsonFormatter(_JSON_FIELDS)


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Install the handlers and structlog pipeline once per process."""

    global _configured
    if not _configured:
        run_log = run_log_path()
        run_log.parent.mkdir(parents=True, exist_ok=True)
        level = logging.DEBUG if verbose else logging.INFO
        logging.config.dictConfig(
            {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {"json": {"()": _json_formatter}},
                "handlers": {
                    "console": {"class": "logging.StreamHandler", "level": level, "formatter": "json"},
                    "run_file": {
                        "class": "logging.FileHandler",
                        "level": logging.INFO,
                        "filename": str(run_log),
                        "formatter": "json",
                        "encoding": "utf-8",
                    },
                },
                "loggers": {
                    LOGGER_NAME: {"handlers": ["console", "run_file"], "level": level, "propagate": False},
                },
            }
        )
        # Event keys travel as ``extra`` and become top-level JSON fields.
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.filter_by_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.format_exc_info,
                structlog.stdlib.render_to_log_kwargs,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        _configured = True
    return structlog.get_logger(LOGGER_NAME)


def profile_logger(profile_name: str, verbose: bool = False) -> structlog.BoundLogger:
    """Logger bound to ``profile_name`` that also writes the profile's log file."""

    configure_logging(verbose)
    path = profile_log_path(profile_name)
    path.parent.mkdir(parents=True, exist_ok=True)
    py_logger = logging.getLogger(f"{LOGGER_NAME}.profile.{profile_name}")
    if all(getattr(handler, "baseFilename", None) != str(path) for handler in py_logger.handlers):
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(_json_formatter())
        handler.setLevel(logging.INFO)
        py_logger.addHandler(handler)
    return structlog.get_logger(py_logger.name).bind(profile=profile_name)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Last ``line_count`` lines of ``path``; empty when it does not exist."""

    try:
        with path.open(encoding="utf-8", errors="replace") as stream:
            return list(deque(stream, maxlen=line_count))
    except FileNotFoundError:
        return []


def available_profile_logs() -> list[Path]:
    return sorted((log_dir() / "profiles").glob("*.log"))


__all__ = [
    "available_profile_logs",
    "configure_logging",
    "log_dir",
    "profile_log_path",
    "profile_logger",
    "run_log_path",
    "tail_log",
]
