"""Structured logging for the storefront.

Driven by the ``[logging]`` table of ``domain.toml``: the level (falling back
to a per-environment default), the output format, an optional log directory
for rotating files and ``per_logger`` level overrides such as
``sqlalchemy.engine``. Handlers log through structlog; request and actor
identifiers are bound as context variables so every line emitted while
serving a request carries them.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog

from shared.config import current_env

_ENV_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_JSON_ENVS = {"production", "staging"}


def get_log_level(settings: dict[str, Any], env: str) -> str:
    return (settings.get("level") or _ENV_LEVELS.get(env, "INFO")).upper()


def _file_handler(path: Path, level: int | str, settings: dict[str, Any]) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=int(settings.get("max_bytes", 10 * 1024 * 1024)),
        backupCount=int(settings.get("backup_count", 5)),
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging(settings: dict[str, Any], env: str) -> None:
    """Route stdlib logging to stdout and, when ``log_dir`` is set, to files."""
    log_level = get_log_level(settings, env)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    if log_dir := settings.get("log_dir"):
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        prefix = settings.get("log_file_prefix") or "storefront"
        root_logger.addHandler(_file_handler(log_dir / f"{prefix}.log", log_level, settings))
        root_logger.addHandler(_file_handler(log_dir / f"{prefix}_error.log", logging.ERROR, settings))

    for name, level in settings.get("per_logger", {}).items():
        logging.getLogger(name).setLevel(str(level).upper())


def _renders_json(settings: dict[str, Any], env: str) -> bool:
    output_format = settings.get("format", "auto")
    if output_format == "auto":
        return env in _JSON_ENVS
    return output_format == "json"


def setup_structlog(settings: dict[str, Any], env: str) -> None:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if _renders_json(settings, env):
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=2),
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(settings: dict[str, Any], env: str | None = None) -> None:
    """Configure stdlib and structlog from a domain's ``[logging]`` table."""
    env = env or current_env()
    setup_stdlib_logging(settings, env)
    setup_structlog(settings, env)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def add_context(**kwargs: Any) -> None:
    """Bind values to every subsequent log line in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def bind_actor(actor) -> None:
    add_context(user_id=actor.user_id, role=actor.role.value)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
