"""Structured logging configuration.

Levels, from quiet to noisy:
- INFO (20): Client lifecycle, cache invalidations, server deprecations
- VERBOSE (15): Between DEBUG and INFO
- DEBUG (10): HTTP exchanges, cache hits and misses, parsed documents
- TRACE (5): DEBUG plus the httpx and httpcore loggers
"""

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from ..config import LoggingConfig

PACKAGE_LOGGER = "hateoas_resource"

# Transport libraries log every request at INFO
TRANSPORT_LOGGERS = ("httpx", "httpcore")

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

LOG_LEVELS = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "VERBOSE": VERBOSE,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_bound_fields: ContextVar[dict[str, Any]] = ContextVar("hateoas_bound_fields", default={})


class LogContext:
    """
    Bind fields to every event logged inside a ``with`` block.

    Blocks nest; leaving one restores the fields of the enclosing block.

    Usage:
        with LogContext(command="get", url=url):
            await client.go(url).get()
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = fields
        self._token = None

    def __enter__(self) -> "LogContext":
        self._token = _bound_fields.set({**_bound_fields.get(), **self.fields})
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._token is not None:
            _bound_fields.reset(self._token)
            self._token = None


def add_context(**fields: Any) -> None:
    _bound_fields.set({**_bound_fields.get(), **fields})


def clear_context(key: str) -> None:
    _bound_fields.set({k: v for k, v in _bound_fields.get().items() if k != key})


def clear_all_context() -> None:
    _bound_fields.set({})


def _context_processor(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add the bound fields to an event without overriding its own keys."""
    for key, value in _bound_fields.get().items():
        event_dict.setdefault(key, value)
    return event_dict


def get_log_level(level: str) -> int:
    """Map a level name to its number. Unknown names give INFO."""
    return LOG_LEVELS.get(level.upper(), logging.INFO)


def _build_handlers(log_file: str | Path | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path))
    return handlers


def _apply_component_filter(log_filter: str) -> None:
    """Keep the named package components verbose and raise the rest to WARNING."""
    components = [c.strip() for c in log_filter.split(",") if c.strip()]
    for name in list(logging.root.manager.loggerDict):
        if not name.startswith(PACKAGE_LOGGER):
            continue
        if not any(component in name for component in components):
            logging.getLogger(name).setLevel(logging.WARNING)


def _build_processors(json_logs: bool) -> list[Any]:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _context_processor,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_logs:
        processors.append(structlog.processors.JSONRenderer(default=str))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return processors


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    log_file: str | Path | None = None,
    log_filter: str | None = None,
) -> None:
    """
    Configure structlog on top of the standard logging module.

    Args:
        level: TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR or CRITICAL.
        json_logs: Render events as JSON lines.
        log_file: File that receives a copy of every event.
        log_filter: Comma-separated logger name fragments that stay at
            ``level``; other package loggers are raised to WARNING
            (e.g. "fetcher,cache").
    """
    log_level = get_log_level(level)
    logging.basicConfig(
        format="%(message)s", level=log_level, handlers=_build_handlers(log_file), force=True
    )

    transport_level = log_level if log_level <= TRACE else max(log_level, logging.WARNING)
    for name in TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)

    if log_filter:
        _apply_component_filter(log_filter)

    structlog.configure(
        processors=_build_processors(json_logs),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_from_config(config: "LoggingConfig", level: str | None = None) -> None:
    """Apply a LoggingConfig, optionally overriding its level."""
    configure_logging(
        level=level or config.level,
        json_logs=config.json_logs,
        log_file=config.log_file,
    )
