"""
Session Lock Interface
Base class for all session lock strategies
"""
from abc import ABC, abstractmethod
from enum import Enum
from dbsession.support import Crypto


class LockStrategy(str, Enum):
    """Available lock back-ends, selected once per deployment"""
    NATIVE = 'native'
    TABLE = 'fake-table'
    FILE = 'file'


def lock_name(session_id: str) -> str:
    """
    Lock name for a session id

    Short and deterministic: MySQL rejects GET_LOCK names over 64 characters.

    Args:
        session_id: Session identifier

    Returns:
        'session_' followed by the SHA1 of the id (48 characters)
    """
    from dbsession.defaults import DEFAULT_LOCK_NAME_PREFIX
    return DEFAULT_LOCK_NAME_PREFIX + Crypto.sha1(session_id)


class SessionLock(ABC):
    """
    Named mutual exclusion between requests for the same session

    Implementations never raise on an ordinary lock failure; they report it
    through the return value and log the cause.
    """

    strategy: LockStrategy

    @abstractmethod
    async def acquire(self, name: str, timeout: int) -> bool:
        """
        Obtain the lock

        Args:
            name: Lock name (see lock_name())
            timeout: Seconds to wait at most; also how long the lock stays valid
                     when the strategy records an expiry

        Returns:
            True if the lock is now held by the caller
        """
        pass

    @abstractmethod
    async def release(self, name: str) -> bool:
        """
        Release the lock

        Args:
            name: Lock name

        Returns:
            True if the lock was released
        """
        pass
