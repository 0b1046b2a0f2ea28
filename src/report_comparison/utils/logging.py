# ============================================================================
# src/report_comparison/utils/logging.py
# ============================================================================
"""
Logging configuration and utilities for the report comparison engine.

Context fields (comparison_id, file_name, ...) are carried in a ContextVar,
so concurrent background jobs on one event loop each stamp their own id.
"""

import asyncio
import functools
import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


# Third-party loggers that are chatty below WARNING
NOISY_LOGGERS = ("pdfminer", "pdfplumber", "aiohttp.access", "multipart", "python_multipart")

_log_context: ContextVar[Dict[str, Any]] = ContextVar("report_comparison_log_context", default={})
_factory_installed = False


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    format_json: bool = False
) -> None:
    """
    Setup logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for logging
        format_json: Whether to use JSON format
    """
    log_level = getattr(logging, level.upper())

    if format_json:
        formatter = JsonFormatter()
    else:
        formatter = ContextFormatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        force=True
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def setup_logging_from_settings() -> None:
    """Configure logging from LOG_LEVEL / LOG_JSON / LOG_FILE settings."""
    from ..config import logging_settings

    setup_logging(
        level=logging_settings.LOG_LEVEL,
        log_file=logging_settings.LOG_FILE,
        format_json=logging_settings.LOG_JSON,
    )


class ContextFormatter(logging.Formatter):
    """Plain-text formatter that appends context fields as [key=value]."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = getattr(record, 'log_context', None)
        if context:
            fields = " ".join(f"{key}={value}" for key, value in context.items())
            message = f"{message} [{fields}]"
        return message


class JsonFormatter(logging.Formatter):
    """JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        log_data.update(getattr(record, 'log_context', None) or {})

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def _install_record_factory() -> None:
    global _factory_installed
    if _factory_installed:
        return

    base_factory = logging.getLogRecordFactory()

    def record_factory(*args, **kwargs):
        record = base_factory(*args, **kwargs)
        context = _log_context.get()
        record.log_context = dict(context)
        for key, value in context.items():
            setattr(record, key, value)
        return record

    logging.setLogRecordFactory(record_factory)
    _factory_installed = True


class LogContext:
    """
    Context manager that stamps fields onto every record logged inside it.

    Nested contexts merge; leaving a context restores the outer fields.

    Example:
        with LogContext(logger, comparison_id=comparison.id):
            await analyzer.extract(report_file)
    """

    def __init__(self, logger: logging.Logger, **context):
        self.logger = logger
        self.context = context
        self._token = None

    def __enter__(self):
        _install_record_factory()
        merged = dict(_log_context.get())
        merged.update(self.context)
        self._token = _log_context.set(merged)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _log_context.reset(self._token)


def log_performance(logger: logging.Logger, operation: str):
    """
    Decorator to log operation performance.

    Works on plain and async functions.

    Args:
        logger: Logger instance
        operation: Operation name
    """
    def _report(start_time: datetime, error: Optional[Exception] = None) -> None:
        duration = (datetime.now() - start_time).total_seconds()
        if error is None:
            logger.info(f"{operation} completed in {duration:.3f}s")
        else:
            logger.error(f"{operation} failed after {duration:.3f}s: {error}")

    def decorator(func):
        if asyncio.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                start_time = datetime.now()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _report(start_time, e)
                    raise
                _report(start_time)
                return result

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = datetime.now()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _report(start_time, e)
                raise
            _report(start_time)
            return result

        return wrapper
    return decorator
