"""
Logging Package
Structured logging with security features

Provides drop-in replacement for standard logging that uses
structured JSON logging with sensitive data filtering.
"""
from dbsession.logging.logger_config import (
    LoggerConfig,
    JSONFormatter,
    SensitiveDataFilter
)
import logging
from typing import Optional

__all__ = [
    'LoggerConfig',
    'JSONFormatter',
    'SensitiveDataFilter',
    'getLogger',
    'setup_logging',
    'INFO',
    'DEBUG',
    'WARNING',
    'ERROR',
    'CRITICAL',
]

# Export logging levels for convenience
INFO = logging.INFO
DEBUG = logging.DEBUG
WARNING = logging.WARNING
ERROR = logging.ERROR
CRITICAL = logging.CRITICAL


def getLogger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance (drop-in replacement for logging.getLogger)

    Only allows logger names that are:
    - None (root logger)
    - Configured in app.ALLOWED_LOGGING_HANDLERS (e.g. 'security')
    - Module-based names (containing '.') like 'dbsession.session.handler'

    Args:
        name: Logger name

    Returns:
        Logger instance, structured if setup_logging() configured it

    Example:
        from dbsession.logging import getLogger
        logger = getLogger(__name__)

        logger.warning("Lock not acquired", extra={'session_id': session_id[:8] + '...'})
    """
    if name and name.startswith('sanic.'):
        return logging.getLogger(name)

    if name is not None and '.' not in name:
        from dbsession.support import Config
        allowed_handlers = Config.get('app.ALLOWED_LOGGING_HANDLERS', {})

        allowed_names = [
            handler_config.get('name')
            for handler_config in allowed_handlers.values()
            if handler_config.get('name') is not None
        ]

        if name not in allowed_names:
            # Force arbitrary names to use root logger
            name = None

    return logging.getLogger(name)


def setup_logging(format_type: str = 'json') -> logging.Logger:
    """
    Configure the package logger plus every handler in app.ALLOWED_LOGGING_HANDLERS

    Returns:
        The configured 'dbsession' logger
    """
    from dbsession.support import Config

    allowed_handlers = Config.get('app.ALLOWED_LOGGING_HANDLERS', {})
    for handler_config in allowed_handlers.values():
        LoggerConfig.setup_logger(
            name=handler_config.get('name'),
            format_type=format_type,
            filter_sensitive=handler_config.get('filter_sensitive', True),
            file_name=handler_config.get('file_name')
        )

    return LoggerConfig.setup_logger(
        name=Config.get('session.LOG_NAME', 'dbsession'),
        format_type=format_type,
        file_name=Config.get('session.LOG_FILE', 'session')
    )
