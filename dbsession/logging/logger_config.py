"""
Logging Configuration
Provides structured logging with security features
"""
import logging
import logging.handlers
import json
import re
from pathlib import Path
from typing import Dict, List, Optional
from datetime import datetime


class SensitiveDataFilter(logging.Filter):
    """
    Filter to redact sensitive data from logs
    Prevents security codes, session payloads, fingerprints and credentials from leaking
    """

    # JSON field patterns, redacted to "[REDACTED]"
    SENSITIVE_PATTERNS = {
        'security_code': r'("security_code"\s*:\s*)"[^"]*"',
        'session_data': r'("session_data"\s*:\s*)"[^"]*"',
        'hash': r'("hash"\s*:\s*)"[^"]*"',
        'fingerprint': r'("fingerprint"\s*:\s*)"[^"]*"',
        'password': r'("password"\s*:\s*)"[^"]*"',
        'token': r'("token"\s*:\s*)"[^"]*"',
        'secret': r'("secret"\s*:\s*)"[^"]*"',
        'secret_key': r'("secret_key"\s*:\s*)"[^"]*"',
    }

    # Header and DSN patterns, the matched prefix is kept
    PREFIX_PATTERNS = {
        'cookie_header': r'(Cookie:\s*)[^\r\n]+',
        'database_password': r'(://[^:/@\s]+:)[^@\s]+(?=@)',
    }

    # LogRecord attributes (passed via extra=) that are never written out
    SENSITIVE_FIELDS = ('security_code', 'session_data', 'fingerprint')

    def __init__(self, additional_patterns: Optional[Dict[str, str]] = None):
        """
        Initialize sensitive data filter
        Args:
            additional_patterns: Additional JSON field patterns to filter (name: pattern)
        """
        super().__init__()
        self.patterns = self.SENSITIVE_PATTERNS.copy()
        if additional_patterns:
            self.patterns.update(additional_patterns)

        self.compiled_patterns = {
            name: re.compile(pattern, re.IGNORECASE)
            for name, pattern in self.patterns.items()
        }
        self.compiled_prefix_patterns = {
            name: re.compile(pattern, re.IGNORECASE)
            for name, pattern in self.PREFIX_PATTERNS.items()
        }

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Filter log record to redact sensitive data
        Returns:
            True (always pass the record, but with redacted content)
        """
        if isinstance(record.msg, str):
            record.msg = self._redact_sensitive_data(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: self._redact_sensitive_data(v) if isinstance(v, str) else v
                    for k, v in record.args.items()
                }
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    self._redact_sensitive_data(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )

        for field in self.SENSITIVE_FIELDS:
            if hasattr(record, field):
                setattr(record, field, '[REDACTED]')

        return True

    def _redact_sensitive_data(self, text: str) -> str:
        """
        Redact sensitive data from text

        Returns:
            Text with sensitive data redacted
        """
        redacted = text

        for pattern in self.compiled_patterns.values():
            redacted = pattern.sub(r'\1"[REDACTED]"', redacted)

        for pattern in self.compiled_prefix_patterns.values():
            redacted = pattern.sub(r'\1[REDACTED]', redacted)

        return redacted


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging

    Outputs logs in JSON format for easy parsing and analysis
    """

    RESERVED_ATTRIBUTES = frozenset([
        'name', 'msg', 'args', 'created', 'filename', 'funcName',
        'levelname', 'levelno', 'lineno', 'module', 'msecs',
        'pathname', 'process', 'processName', 'relativeCreated',
        'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
        'getMessage', 'message', 'taskName',
    ])

    def __init__(self, include_fields: Optional[List[str]] = None):
        """
        Initialize JSON formatter

        Args:
            include_fields: Additional fields to include in JSON output
        """
        super().__init__()
        self.include_fields = include_fields or []

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON

        Args:
            record: Log record to format

        Returns:
            JSON formatted log string
        """
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data['stack'] = record.stack_info

        for field in self.include_fields:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        # Extra fields (session_id, lock_name, strategy, ...)
        for key, value in record.__dict__.items():
            if key not in self.RESERVED_ATTRIBUTES:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class LoggerConfig:
    """
    Centralized logging configuration
    """
    @staticmethod
    def setup_logger(
        name: str,
        format_type: str = 'json',
        max_bytes: int = None,
        backup_count: int = None,
        filter_sensitive: bool = True,
        additional_sensitive_patterns: Optional[Dict[str, str]] = None,
        file_name: Optional[str] = None,
        log_path: Optional[Path] = None
    ) -> logging.Logger:
        """
        Setup a logger with rotation and optional sensitive data filtering

        Args:
            name: Logger name
            format_type: Format type ('json' or 'text')
            max_bytes: Max bytes before rotation (default: 10MB)
            backup_count: Number of backup files to keep
            filter_sensitive: Enable sensitive data filtering
            additional_sensitive_patterns: Additional patterns to filter
            file_name: Log file name without extension (defaults to the logger name)
            log_path: Directory for log files (default: app.LOG_PATH)

        Returns:
            Configured logger

        Example:
            logger = LoggerConfig.setup_logger('dbsession', format_type='json')
        """
        from dbsession.defaults import DEFAULT_LOG_MAX_BYTES, DEFAULT_LOG_BACKUP_COUNT, DEFAULT_LOG_PATH
        from dbsession.support import Config

        if max_bytes is None:
            max_bytes = DEFAULT_LOG_MAX_BYTES
        if backup_count is None:
            backup_count = DEFAULT_LOG_BACKUP_COUNT
        if log_path is None:
            log_path = Path(Config.get('app.LOG_PATH', DEFAULT_LOG_PATH))

        app_env = Config.get('app.APP_ENV', 'local')
        app_debug = Config.get('app.APP_DEBUG', False)

        level = LoggerConfig.get_level_by_environment(app_env)
        enable_console = app_debug

        logger = logging.getLogger(name)
        logger.setLevel(level)

        # Clear existing handlers
        logger.handlers.clear()

        log_filename = file_name if file_name else name
        log_path = Path(log_path)
        log_path.mkdir(parents=True, exist_ok=True)
        log_file = log_path / f"{log_filename}.log"

        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )

        if format_type == 'json':
            formatter = JSONFormatter()
        else:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )

        handler.setFormatter(formatter)

        sensitive_filter = None
        if filter_sensitive:
            sensitive_filter = SensitiveDataFilter(additional_sensitive_patterns)
            handler.addFilter(sensitive_filter)

        logger.addHandler(handler)

        if enable_console:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            if sensitive_filter is not None:
                console_handler.addFilter(sensitive_filter)
            logger.addHandler(console_handler)

        # Prevent propagation to avoid duplicate logs
        logger.propagate = False

        return logger

    @staticmethod
    def get_level_by_environment(environment: str) -> int:
        """
        Get logging level based on environment

        Args:
            environment: Environment name ('production', 'development', 'testing')

        Returns:
            Logging level
        """
        levels = {
            'production': logging.WARNING,
            'staging': logging.INFO,
            'development': logging.DEBUG,
            'testing': logging.ERROR,
        }
        return levels.get(environment.lower(), logging.INFO)
