"""
Custom Exception Classes
Session-specific exceptions with HTTP status codes
"""
from typing import Optional


class FrameworkException(Exception):
    """Base exception for all package exceptions"""
    status_code = 500
    message = "An error occurred"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.__class__.message
        self.status_code = status_code or self.__class__.status_code
        super().__init__(self.message)


class ConnectivityException(FrameworkException):
    """
    No usable database connection

    Raised when the handler is constructed without a working connection,
    or when a reconnect attempt fails

    Example:
        raise ConnectivityException("Session: No DB-Connection!")
    """
    status_code = 503
    message = "Session: No DB-Connection!"


class LockTimeoutException(FrameworkException):
    """
    Session lock not obtained within the configured timeout

    Raised by read() so the caller can decide whether to retry or give up.
    Carries the session id the lock was requested for.

    Example:
        raise LockTimeoutException(session_id="abc123")
    """
    status_code = 503
    message = "Session: Could not obtain session lock!"

    def __init__(
        self,
        message: Optional[str] = None,
        session_id: Optional[str] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message, status_code)
        self.session_id = session_id


class StorageException(FrameworkException):
    """
    Query failure while reading, writing or sweeping session rows

    Example:
        raise StorageException("Failed to upsert session row")
    """
    status_code = 500
    message = "Session storage failure"


class PayloadOpacityException(FrameworkException):
    """
    Stored session bytes could not be decoded

    Example:
        raise PayloadOpacityException("Session payload is not valid JSON")
    """
    status_code = 500
    message = "Malformed session payload"


class ConfigurationException(FrameworkException):
    """
    Invalid session configuration

    Example:
        raise ConfigurationException("Unknown lock strategy: redis")
    """
    status_code = 500
    message = "Invalid session configuration"
