"""
Exceptions Package
Error taxonomy shared by the session handler, lock strategies and middleware
"""
from dbsession.exceptions.custom import (
    FrameworkException,
    ConnectivityException,
    LockTimeoutException,
    StorageException,
    PayloadOpacityException,
    ConfigurationException,
)

__all__ = [
    'FrameworkException',
    'ConnectivityException',
    'LockTimeoutException',
    'StorageException',
    'PayloadOpacityException',
    'ConfigurationException',
]
