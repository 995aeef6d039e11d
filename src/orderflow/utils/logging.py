"""Logging for the orderflow service and its batch runner.

Everything logs through structlog with key/value context (order ids, status
codes, sweep counts). Records end up in the standard library root logger,
which writes to stdout and, unless ``ORDERFLOW_LOG_DIR`` is set to an empty
string, to ``orderflow.log`` and ``orderflow_error.log`` under that
directory. Production and staging render one JSON object per line so the
sweep and transition records can be shipped as-is.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path

import structlog

SERVICE_NAME = "orderflow"

LEVEL_BY_ENVIRONMENT = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}
JSON_ENVIRONMENTS = frozenset({"production", "staging"})

# Libraries whose INFO output drowns out sweep and transition records
_QUIET_LOGGERS = ("sqlalchemy.engine", "protean", "asyncio")


def current_environment() -> str:
    return (os.getenv("ENV") or os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level() -> str:
    """``LOG_LEVEL`` if set, otherwise the level for the current environment."""
    return os.getenv("LOG_LEVEL", LEVEL_BY_ENVIRONMENT.get(current_environment(), "INFO"))


def log_directory() -> Path | None:
    """Directory for the rotating log files, or None when file logging is off."""
    configured = os.getenv("ORDERFLOW_LOG_DIR", "logs")
    return Path(configured) if configured else None


def _file_handler(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging() -> None:
    level = get_log_level()

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = []

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    root.addHandler(console)

    directory = log_directory()
    if directory is not None:
        directory.mkdir(parents=True, exist_ok=True)
        root.addHandler(_file_handler(directory / f"{SERVICE_NAME}.log", level))
        root.addHandler(_file_handler(directory / f"{SERVICE_NAME}_error.log", logging.ERROR))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def add_service_name(logger, method_name, event_dict):
    """Tag every record with the service, so shared log shippers can route it."""
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def build_processors(json_output: bool) -> list:
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        add_service_name,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return processors


def setup_structlog() -> None:
    structlog.configure(
        processors=build_processors(current_environment() in JSON_ENVIRONMENTS),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging() -> None:
    setup_stdlib_logging()
    setup_structlog()
