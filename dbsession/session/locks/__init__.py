"""
Session Locks
"""
from pathlib import Path
from typing import Optional, Union
from dbsession.exceptions import ConfigurationException
from dbsession.session.locks.base import SessionLock, LockStrategy, lock_name
from dbsession.session.locks.native import NativeLock
from dbsession.session.locks.table import TableLock
from dbsession.session.locks.file import FileLock


def make_lock(
    strategy: Union[str, LockStrategy],
    connection_name: Optional[str] = None,
    lock_path: Optional[Path] = None,
    poll_interval: Optional[float] = None
) -> SessionLock:
    """
    Create the lock for a configured strategy

    Args:
        strategy: 'native', 'fake-table' or 'file'
        connection_name: Tortoise connection used by the native strategy
        lock_path: Directory used by the file strategy
        poll_interval: Seconds between attempts (fake-table and file strategies)

    Returns:
        SessionLock instance

    Raises:
        ConfigurationException: For an unknown strategy
    """
    try:
        strategy = LockStrategy(strategy)
    except ValueError:
        raise ConfigurationException(f"Unknown session lock strategy: {strategy}")

    if strategy is LockStrategy.NATIVE:
        return NativeLock(connection_name=connection_name)

    if strategy is LockStrategy.TABLE:
        return TableLock(poll_interval=poll_interval)

    return FileLock(lock_path=lock_path, poll_interval=poll_interval)


__all__ = [
    'SessionLock',
    'LockStrategy',
    'NativeLock',
    'TableLock',
    'FileLock',
    'lock_name',
    'make_lock',
]
