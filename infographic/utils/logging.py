"""
Logging setup shared by the service and the extraction CLI.

Records go to a Rich console handler on stderr and, when ``LOG_FILE_PATH`` is
set, to a file as one JSON object per line. ``LogContext`` attaches key/value
pairs (preset, input path, ...) to every record emitted inside it.
"""

import functools
import inspect
import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler

from infographic.config import get_settings

# Attributes every LogRecord carries; anything else came from ``extra`` or a context
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

_NOISY_LOGGERS = ("aiohttp", "httpx", "httpcore", "uvicorn.access")


class StructuredFormatter(logging.Formatter):
    """Renders a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(
            (key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRS
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ContextFilter(logging.Filter):
    """Copies the current context onto each record passing through a handler."""

    def __init__(self) -> None:
        super().__init__()
        self.context: Dict[str, Any] = {}

    def filter(self, record: logging.LogRecord) -> bool:
        record.__dict__.update(self.context)
        return True


context_filter = ContextFilter()


def _console_handler(level: str, show_locals: bool) -> logging.Handler:
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
        tracebacks_show_locals=show_locals,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def _file_handler(path: Path, level: str, structured: bool) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
        )
    return handler


def setup_logging(
    log_level: Optional[str] = None,
    log_file_path: Optional[Path] = None,
    structured_file: bool = True,
) -> None:
    """
    (Re)configure the root logger.

    Args:
        log_level: Level name; defaults to ``LOG_LEVEL``
        log_file_path: Optional log file; defaults to ``LOG_FILE_PATH``
        structured_file: Write JSON lines to the file instead of plain text
    """
    settings = get_settings()
    level = (log_level or settings.log_level).upper()
    file_path = log_file_path or settings.get_log_file_path()

    handlers = [_console_handler(level, settings.dev_mode)]
    if file_path:
        handlers.append(_file_handler(file_path, level, structured_file))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in handlers:
        handler.addFilter(context_filter)
        root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging configured", extra={"log_level": level, "log_file": file_path}
    )


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module (pass ``__name__``)."""
    return logging.getLogger(name)


class LogContext:
    """
    Tag every record logged inside the block.

    Usage:
        with LogContext(preset="official"):
            pipeline.run()
    """

    def __init__(self, **values: Any) -> None:
        self.values = values
        self._saved: Dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self._saved = dict(context_filter.context)
        context_filter.context.update(self.values)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        context_filter.context.clear()
        context_filter.context.update(self._saved)


def _report(func: Callable, started: float, error: Optional[Exception] = None) -> None:
    logger = get_logger(func.__module__)
    elapsed = round(time.perf_counter() - started, 4)
    if error is None:
        logger.debug(f"{func.__qualname__} took {elapsed}s", extra={"duration_seconds": elapsed})
    else:
        logger.error(
            f"{func.__qualname__} failed after {elapsed}s: {error}",
            extra={"duration_seconds": elapsed},
        )


def log_performance(func: Callable) -> Callable:
    """Decorator timing a function or coroutine function; failures are logged and re-raised."""
    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def timed_async(*args, **kwargs):
            started = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _report(func, started, e)
                raise
            _report(func, started)
            return result

        return timed_async

    @functools.wraps(func)
    def timed(*args, **kwargs):
        started = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            _report(func, started, e)
            raise
        _report(func, started)
        return result

    return timed


if not logging.getLogger().handlers:
    setup_logging()
