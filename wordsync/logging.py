"""Logging for wordsync, built on loguru.

Records emitted through ``get_logger`` carry the current chapter correlation
and are written to a single sink owned by this package. Sinks added by the
host application are left alone: ``configure_logging`` only ever replaces the
package's own handler.
"""

import os
import random
import sys
import threading
import uuid
from collections.abc import Callable, Generator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final, TextIO

from loguru import logger as _loguru_logger

if TYPE_CHECKING:
    from loguru import Record

PACKAGE_EXTRA_KEY: Final[str] = "wordsync_logger"

STANDARD_FORMAT: Final[str] = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<yellow>{extra[correlation]}</yellow> - <level>{message}</level>"
)


class LogFormat(StrEnum):
    """Supported logging output formats."""

    STANDARD = "standard"
    JSON = "json"


class LogLevel(StrEnum):
    """Supported log levels."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class CorrelationInfo:
    """Identifies one unit of alignment work, usually one chapter.

    Args:
        request_id: Unique identifier for the unit of work
        chapter_id: Optional chapter being aligned
    """

    request_id: str
    chapter_id: str | None = None

    def __str__(self) -> str:
        return self.chapter_id or self.request_id


@dataclass(frozen=True)
class LoggerConfig:
    """Configuration of the package sink.

    Args:
        level: Minimum level written to the sink
        format_type: Colorized text or serialized JSON
        sampling_rate: Share of records kept (0.0 to 1.0)
        use_stdout: Whether to write to stdout instead of stderr
    """

    level: LogLevel = LogLevel.INFO
    format_type: LogFormat = LogFormat.STANDARD
    sampling_rate: float = 1.0
    use_stdout: bool = False


class CorrelationManager:
    """Thread-local holder of the current correlation."""

    def __init__(self) -> None:
        self._correlation = threading.local()

    @property
    def current(self) -> CorrelationInfo | None:
        return getattr(self._correlation, "info", None)

    def set(self, *, correlation_info: CorrelationInfo | None) -> None:
        self._correlation.info = correlation_info


_correlation_manager = CorrelationManager()
_sink_lock = threading.RLock()
_handler_id: int | None = None


def _add_correlation(record: "Record") -> None:
    correlation_info = _correlation_manager.current
    record["extra"]["correlation"] = str(correlation_info) if correlation_info else ""


def _package_filter(sampling_rate: float) -> Callable[["Record"], bool]:
    def _filter(record: "Record") -> bool:
        if PACKAGE_EXTRA_KEY not in record["extra"]:
            return False
        return sampling_rate >= 1.0 or random.random() < sampling_rate

    return _filter


def configure_logging(config: LoggerConfig | None = None, *, sink: TextIO | None = None) -> int:
    """Install the package sink, replacing only a sink installed earlier by this function.

    Args:
        config: Sink configuration; read from the environment when omitted
        sink: Stream to write to instead of stdout/stderr

    Returns:
        Loguru handler id of the package sink
    """
    global _handler_id
    config = config or _config_from_env()
    stream = sink or (sys.stdout if config.use_stdout else sys.stderr)

    with _sink_lock:
        if _handler_id is not None:
            _loguru_logger.remove(_handler_id)
            _handler_id = None

        if config.format_type == LogFormat.JSON:
            _handler_id = _loguru_logger.add(
                stream,
                level=config.level.value,
                filter=_package_filter(config.sampling_rate),  # type: ignore[arg-type]
                serialize=True,
            )
        else:
            _handler_id = _loguru_logger.add(
                stream,
                level=config.level.value,
                filter=_package_filter(config.sampling_rate),  # type: ignore[arg-type]
                format=STANDARD_FORMAT,
            )
        return _handler_id


def remove_logging() -> None:
    """Remove the package sink if one is installed."""
    global _handler_id
    with _sink_lock:
        if _handler_id is not None:
            _loguru_logger.remove(_handler_id)
            _handler_id = None


def _ensure_sink() -> None:
    with _sink_lock:
        if _handler_id is None:
            configure_logging()


class WordSyncLogger:
    """Module logger tagging records with the package marker and chapter correlation.

    Args:
        name: Logger name, normally the module ``__name__``
    """

    def __init__(self, *, name: str) -> None:
        self._name = name
        self._logger = _loguru_logger.bind(**{PACKAGE_EXTRA_KEY: name}).patch(_add_correlation)

    @contextmanager
    def correlation_context(
        self, *, description: str, chapter_id: str | None = None, request_id: str | None = None
    ) -> Generator[CorrelationInfo, None, None]:
        """Tag records logged inside the block with a chapter correlation.

        Args:
            description: What the block does, logged at debug level
            chapter_id: Chapter being processed
            request_id: Optional specific request ID, generated when omitted

        Yields:
            The active correlation info
        """
        previous = _correlation_manager.current
        correlation_info = CorrelationInfo(request_id=request_id or uuid.uuid4().hex, chapter_id=chapter_id)
        _correlation_manager.set(correlation_info=correlation_info)
        self._logger.opt(depth=2).debug(f"Started '{description}' as {correlation_info.request_id}")

        try:
            yield correlation_info
        finally:
            _correlation_manager.set(correlation_info=previous)

    @property
    def correlation_info(self) -> CorrelationInfo | None:
        return _correlation_manager.current

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.opt(depth=1).debug(message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.opt(depth=1).info(message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.opt(depth=1).warning(message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.opt(depth=1).error(message, **kwargs)


_loggers: dict[str, WordSyncLogger] = {}


def get_logger(name: str) -> WordSyncLogger:
    """Get or create the logger for a module.

    The package sink is installed from the environment on first use
    (LOGLEVEL or LOG_LEVEL, LOG_FORMAT, LOG_JSON, LOG_SAMPLING_RATE).

    Args:
        name: Logger name (use __name__ for module loggers)

    Returns:
        Cached logger instance
    """
    _ensure_sink()
    if name not in _loggers:
        _loggers[name] = WordSyncLogger(name=name)
    return _loggers[name]


def _config_from_env() -> LoggerConfig:
    level_env = os.getenv("LOGLEVEL", os.getenv("LOG_LEVEL", "INFO"))
    format_env = os.getenv("LOG_FORMAT", "standard")
    json_env = os.getenv("LOG_JSON", "false")

    if json_env.lower() in {"1", "true", "yes", "on"}:
        format_type = LogFormat.JSON
    else:
        try:
            format_type = LogFormat(format_env.lower())
        except ValueError:
            format_type = LogFormat.STANDARD

    try:
        level = LogLevel(level_env.upper())
    except ValueError:
        level = LogLevel.INFO

    return LoggerConfig(
        level=level,
        format_type=format_type,
        sampling_rate=_get_sampling_rate("LOG_SAMPLING_RATE", 1.0),
    )


def _get_sampling_rate(env_name: str, default: float) -> float:
    """Read a sampling rate in [0, 1] from the environment, else the default."""
    try:
        value = float(os.getenv(env_name, str(default)))
    except ValueError:
        return default
    if not (0.0 <= value <= 1.0):
        return default
    return value
