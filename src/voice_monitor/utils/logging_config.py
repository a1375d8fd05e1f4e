"""Structured logging configuration for voice_monitor."""

import logging
import logging.handlers
import os
import sys
import json
import socket
import threading
from typing import Dict, Any, Optional
from pathlib import Path


# Attributes every LogRecord carries; anything else came in through `extra`
_RESERVED_ATTRS = frozenset([
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName",
    "relativeCreated", "thread", "threadName", "exc_info",
    "exc_text", "stack_info", "taskName",
])


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self):
        super().__init__()
        self.hostname = socket.gethostname()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "hostname": self.hostname,
            "process": record.process,
            "thread_name": record.threadName,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output in development."""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m'  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        # Color a copy so other handlers still see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logging(config: Optional[Dict[str, Any]] = None) -> None:
    """
    Set up structured logging configuration.

    Environment variables LOG_LEVEL, LOG_FORMAT and LOG_DIR take precedence
    over the values in ``config`` (the ``logging`` config section).

    Args:
        config: Optional logging configuration dictionary
    """
    config = config or {}
    log_level = os.getenv('LOG_LEVEL', config.get('level') or 'INFO').upper()
    log_format = os.getenv('LOG_FORMAT', config.get('format') or 'text').lower()
    log_dir = os.getenv('LOG_DIR', config.get('dir') or '')

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level))

    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, log_level))

    if log_format == 'json':
        console_handler.setFormatter(JSONFormatter())
    else:
        console_formatter = ColoredFormatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        console_handler.setFormatter(console_formatter)

    root_logger.addHandler(console_handler)

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=os.path.join(log_dir, 'voice_monitor.log'),
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    logging.getLogger('numba').setLevel(logging.WARNING)

    def exception_hook(exc_type, exc_value, exc_traceback):
        """Log uncaught exceptions."""
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        root_logger.critical(
            "Uncaught exception",
            exc_info=(exc_type, exc_value, exc_traceback)
        )

    sys.excepthook = exception_hook

    root_logger.info(
        "Logging configured",
        extra={"log_level": log_level, "log_format": log_format, "log_dir": log_dir or None}
    )


class LogContext:
    """Context manager for adding contextual information to logs."""

    _context = threading.local()

    def __init__(self, **kwargs):
        self.context = kwargs
        self.old_factory = None

    def __enter__(self):
        """Enter context manager."""
        if not hasattr(self._context, 'data'):
            self._context.data = {}

        self._context.data.update(self.context)

        self.old_factory = logging.getLogRecordFactory()
        old_factory = self.old_factory
        context = self._context

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            for key, value in getattr(context, 'data', {}).items():
                setattr(record, key, value)
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager."""
        if self.old_factory:
            logging.setLogRecordFactory(self.old_factory)

        for key in self.context:
            if hasattr(self._context, 'data'):
                self._context.data.pop(key, None)
