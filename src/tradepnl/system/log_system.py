"""Centralized logging configuration for tradepnl.

Library loggers hand every event to the standard library logger of the
same name and never touch handlers, so host applications keep control of
where records go. Until something is configured, the ``tradepnl`` logger
carries only a ``NullHandler``.

Applications that want tradepnl's own output call
``LoggerFactory.configure()`` once at startup: it installs root handlers
whose ``structlog.stdlib.ProcessorFormatter`` renders records as colored
console lines or JSON.
"""

import inspect
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_LOG_FILE = Path("logs/tradepnl.log")

_TIMESTAMP_FORMATS = {
    "iso": "iso",
    "compact": "%y%m%d-%H%M%S",
    "time": "%H:%M:%S",
}

# Event dict -> stdlib call: the event becomes the message, context goes to ``extra``
_LIBRARY_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.render_to_log_kwargs,
]

logging.getLogger("tradepnl").addHandler(logging.NullHandler())


class LoggingConfig(BaseModel):
    """Configuration for logging system.

    Levels used by the library:

    INFO:
    - One summary per calculation (trades in, symbols, rows out)

    DEBUG:
    - Every diagnostic passed to the debug callback (skipped trades,
      position mismatches, option parent resolution, daily P&L inputs)

    The engine never writes files unless ``enable_file`` is set.
    """

    level: LogLevel = Field(
        default="INFO",
        description="Minimum console log level (DEBUG shows per-symbol diagnostics)",
    )
    format: Literal["console", "json"] = Field(
        default="console",
        description="Console output format",
    )
    timestamp_format: Literal["iso", "compact", "time"] = Field(
        default="compact",
        description="Timestamp format for console output",
    )
    enable_file: bool = Field(
        default=False,
        description="Also write JSON lines to a file",
    )
    file_path: Path | None = Field(
        default=None,
        description="Log file path (logs/tradepnl.log if None)",
    )
    file_level: LogLevel = Field(
        default="WARNING",
        description="Minimum log level for file output",
    )
    file_rotation: bool = Field(
        default=True,
        description="Rotate the log file when it reaches max_file_size_mb",
    )
    max_file_size_mb: int = Field(
        default=10,
        description="Maximum log file size in MB before rotation",
    )
    backup_count: int = Field(
        default=3,
        description="Number of rotated log files to keep",
    )


def _shared_processors(timestamp_format: str) -> list[Any]:
    """Processors turning a stdlib record into an event dict before rendering."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        # 'log_timestamp' keeps clear of the 'date' fields of trades
        structlog.processors.TimeStamper(
            fmt=_TIMESTAMP_FORMATS[timestamp_format],
            utc=True,
            key="log_timestamp",
        ),
        structlog.processors.StackInfoRenderer(),
    ]


def _console_handler(config: LoggingConfig, pre_chain: list[Any]) -> logging.Handler:
    renderer: Any
    if config.format == "console":
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            timestamp_key="log_timestamp",
            exception_formatter=structlog.dev.plain_traceback,
        )
    else:
        renderer = structlog.processors.JSONRenderer()

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(getattr(logging, config.level))
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=pre_chain,
        )
    )
    return handler


def _file_handler(config: LoggingConfig, pre_chain: list[Any]) -> logging.Handler:
    path = config.file_path or DEFAULT_LOG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)

    handler: logging.Handler
    if config.file_rotation:
        handler = RotatingFileHandler(
            filename=str(path),
            maxBytes=config.max_file_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    else:
        handler = logging.FileHandler(filename=str(path), encoding="utf-8")

    handler.setLevel(getattr(logging, config.file_level))
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            foreign_pre_chain=pre_chain,
        )
    )
    return handler


class LoggerFactory:
    """
    Factory for structured loggers and opt-in handler configuration.

    Library modules call get_logger() at import time; this never configures
    anything. Applications that want tradepnl to set up output call
    configure() once at startup.

    Example:
        # At application startup (optional)
        LoggerFactory.configure(LoggingConfig(level="DEBUG"))

        # In modules
        logger = LoggerFactory.get_logger()
        logger.info("pnl_service.calculated", symbols=12, rows=9)
    """

    _config: LoggingConfig | None = None
    _configured: bool = False

    @classmethod
    def configure(cls, config: LoggingConfig | None = None) -> None:
        """
        Install root handlers for console and optional file output.

        Replaces any root handlers already present.

        Args:
            config: LoggingConfig instance. If None, uses default configuration.
        """
        config = config or LoggingConfig()
        if config.enable_file and config.file_path is None:
            config = config.model_copy(update={"file_path": DEFAULT_LOG_FILE})
        cls._config = config

        pre_chain = _shared_processors(config.timestamp_format)
        handlers = [_console_handler(config, pre_chain)]
        root_level = getattr(logging, config.level)
        if config.enable_file:
            handlers.append(_file_handler(config, pre_chain))
            root_level = min(root_level, getattr(logging, config.file_level))

        logging.basicConfig(level=root_level, handlers=handlers, force=True)
        cls._configured = True

    @classmethod
    def get_logger(cls, name: str | None = None):
        """
        Get a structured logger backed by the stdlib logger of the same name.

        Args:
            name: Optional logger name. If None, uses the calling module's __name__.

        Returns:
            structlog BoundLogger proxy.
        """
        if name is None:
            frame = inspect.currentframe()
            caller = frame.f_back if frame else None
            name = caller.f_globals.get("__name__", "tradepnl") if caller else "tradepnl"

        return structlog.wrap_logger(
            logging.getLogger(name),
            processors=_LIBRARY_PROCESSORS,
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            cache_logger_on_first_use=True,
        )

    @classmethod
    def get_config(cls) -> LoggingConfig:
        """Current logging configuration (defaults if not configured)."""
        return cls._config or LoggingConfig()

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @classmethod
    def reset(cls) -> None:
        """Remove root handlers installed by configure() (mainly for testing)."""
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()
        root_logger.setLevel(logging.WARNING)
        cls._config = None
        cls._configured = False
