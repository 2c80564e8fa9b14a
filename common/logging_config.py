import logging
import os
import re
import sys
from typing import Iterable, Optional

SHARED_LOGGERS = ("lifecycle", "common")


class SensitiveDataFilter(logging.Filter):
    """Filter to mask sensitive data in log records."""
    
    PATTERNS = [
        (re.compile(r'(session[_-]?id["\']?\s*[:=]\s*["\']?)([^"\'}\s,\]]+)', re.IGNORECASE), r'\1***MASKED***'),
        (re.compile(r'(api[_-]?key["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE), r'\1***MASKED***'),
        (re.compile(r'(token["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE), r'\1***MASKED***'),
        (re.compile(r'(authorization["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE), r'\1***MASKED***'),
        (re.compile(r'(secret["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE), r'\1***MASKED***'),
    ]
    
    def filter(self, record: logging.LogRecord) -> bool:
        """Mask sensitive data in the log message."""
        if isinstance(record.msg, str):
            record.msg = self._mask_value(record.msg)
        
        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._mask_value(v) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self._mask_value(arg) for arg in record.args)
        
        return True
    
    def _mask_value(self, value):
        if isinstance(value, str):
            for pattern, replacement in self.PATTERNS:
                value = pattern.sub(replacement, value)
        return value


def _build_formatter(correlation_id: Optional[str] = None) -> logging.Formatter:
    if correlation_id:
        fmt = f'%(asctime)s - %(name)s - %(levelname)s - [{correlation_id}] - %(message)s'
    else:
        fmt = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    return logging.Formatter(fmt, datefmt='%Y-%m-%d %H:%M:%S')


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None,
    correlation_id: Optional[str] = None,
    shared: Iterable[str] = SHARED_LOGGERS,
) -> logging.Logger:
    """
    Set up logging configuration for a component.
    
    The shared library packages log under their own names, so they are
    attached to the same handler as the component.

    Args:
        component_name: Name of the component (e.g., 'server', 'cli')
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var or INFO
        correlation_id: Optional correlation ID to include in log format
        shared: Additional logger names that should write through the component's handler
        
    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO')
    
    level = getattr(logging, log_level.upper(), logging.INFO)
    
    logger = logging.getLogger(component_name)
    logger.setLevel(level)
    
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger
    
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(_build_formatter(correlation_id))
    handler.addFilter(SensitiveDataFilter())
    
    for name in (component_name, *shared):
        target = logging.getLogger(name)
        target.setLevel(level)
        if handler not in target.handlers:
            target.addHandler(handler)
        target.propagate = False
    
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the given name.
    
    Args:
        name: Logger name (typically __name__)
        
    Returns:
        Logger instance
    """
    return logging.getLogger(name)
