"""
Session Handler Interface
Lifecycle hooks the host runtime calls for every request
"""
from abc import ABC, abstractmethod
from typing import Union


class SessionHandler(ABC):
    """
    Base session handler interface

    Call order for one request:
        open() -> read(id) -> write(id, payload) -> close()
    with destroy() and gc() called by the host when needed.
    """

    @abstractmethod
    async def open(self, save_path: str = '', session_name: str = '') -> bool:
        """
        Prepare the backing store for this request

        Args:
            save_path: Storage location hint from the host
            session_name: Session (cookie) name

        Returns:
            True if the store is usable
        """
        pass

    @abstractmethod
    async def read(self, session_id: str) -> bytes:
        """
        Read session payload

        Args:
            session_id: Session identifier

        Returns:
            Payload, or b'' when there is no valid session
        """
        pass

    @abstractmethod
    async def write(self, session_id: str, payload: Union[bytes, str]) -> bool:
        """
        Write session payload

        Args:
            session_id: Session identifier
            payload: Opaque session payload

        Returns:
            True if successful
        """
        pass

    @abstractmethod
    async def close(self) -> bool:
        """
        Finish the request

        Returns:
            True if every resource held for the request was released
        """
        pass

    @abstractmethod
    async def destroy(self, session_id: str) -> bool:
        """
        Delete session from storage

        Args:
            session_id: Session identifier

        Returns:
            True if a session was deleted
        """
        pass

    @abstractmethod
    async def gc(self, max_lifetime: int) -> int:
        """
        Garbage collection - remove expired sessions

        Args:
            max_lifetime: Maximum session lifetime in seconds

        Returns:
            Number of sessions deleted
        """
        pass
