"""
Logging configuration for the Smart GeoAPI feature service.

Logging is configured once per process. Development runs use a plain text
format; production runs (or an explicit ``json`` format) emit one JSON
object per record so the output can be shipped to a log aggregator.
"""

import functools
import json
import logging
import logging.handlers
import os
import sys
import time
from pathlib import Path
from typing import Optional

# LogRecord attributes that are not user supplied ``extra`` values
_RESERVED_ATTRS = frozenset([
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'exc_info', 'exc_text', 'stack_info', 'lineno', 'funcName',
    'created', 'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'taskName', 'message', 'asctime',
])

_TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_NOISY_LOGGERS = ("httpx", "httpcore", "LiteLLM", "urllib3")


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON documents."""
    
    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON, including any ``extra`` fields."""
        log_entry = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }
        
        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)
        
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_entry:
                log_entry[key] = value
        
        return json.dumps(log_entry, default=str)


def _build_formatter(use_json: bool) -> logging.Formatter:
    if use_json:
        return JSONFormatter(datefmt='%Y-%m-%d %H:%M:%S')
    return logging.Formatter(_TEXT_FORMAT)


def setup_logging(environment: str = "development",
                  log_level: str = "INFO",
                  log_dir: Optional[str] = None,
                  log_format: Optional[str] = None) -> None:
    """
    Set up logging for the feature service process.
    
    Args:
        environment: Environment name (development/production)
        log_level: Logging level (DEBUG/INFO/WARNING/ERROR)
        log_dir: Directory for rotating log files (optional)
        log_format: ``json`` or ``standard``; defaults to JSON in production
    """
    use_json = (log_format == "json") if log_format else environment == "production"
    formatter = _build_formatter(use_json)
    
    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper()))
    
    # Remove existing handlers to avoid duplicates on reconfiguration
    root.handlers = []
    
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)
    
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=os.path.join(log_dir, f"smart_geo_{environment}.log"),
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
    
    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.
    
    Args:
        name: Logger name (typically __name__)
        
    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_performance(func):
    """
    Decorator to log function execution time.
    
    Args:
        func: Function to wrap
        
    Returns:
        Wrapped function with performance logging
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        start_time = time.perf_counter()
        
        logger.info(f"Starting {func.__name__}")
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(f"Failed {func.__name__} after {duration:.3f}s: {str(e)}")
            raise
        duration = time.perf_counter() - start_time
        logger.info(f"Completed {func.__name__} in {duration:.3f}s")
        return result
    
    return wrapper
