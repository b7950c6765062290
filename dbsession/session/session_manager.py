"""
Session Manager
Laravel-style session API on top of a session handler
"""
import json
from typing import Any, Dict, List, Optional, Tuple, Union
from dbsession.exceptions import PayloadOpacityException
from dbsession.logging import getLogger
from dbsession.session.flash import FlashBag
from dbsession.session.store import SessionHandler
from dbsession.support import Crypto

logger = getLogger(__name__)


class SessionManager:
    """
    Laravel-style session manager

    Provides dictionary-like interface with additional methods:
    - get(), put(), has(), all(), pull(), forget(), flush()
    - flash(), now(), reflash(), keep()
    - regenerate(), invalidate()
    - increment(), decrement(), push()

    The handler sees an opaque payload: a JSON document holding the session
    variables and the flash counters side by side.
    """

    def __init__(self, handler: SessionHandler, session_id: str):
        """
        Initialize session manager

        Args:
            handler: Session handler
            session_id: Session identifier
        """
        self.handler = handler
        self.session_id = session_id
        self._data: Dict[str, Any] = {}
        self._flash = FlashBag(self._data)
        self._destroy_old_id: Optional[str] = None
        self._loaded = False

    async def start(self):
        """
        Load session data through the handler

        Raises:
            LockTimeoutException: If the session is locked by another request
        """
        if self._loaded:
            return

        payload = await self.handler.read(self.session_id)

        try:
            data, counters = self.decode(payload)
        except PayloadOpacityException as e:
            logger.warning(
                "Discarding unreadable session payload",
                extra={'session_id': self.session_id[:8], 'error': e.message}
            )
            data, counters = {}, {}

        self._data.clear()
        self._data.update(data)
        self._flash.load(counters)
        self._loaded = True

    @staticmethod
    def encode(data: Dict[str, Any], counters: Dict[str, int]) -> bytes:
        """Serialize variables and flash counters into a payload"""
        return json.dumps({'data': data, 'flash': counters}, default=str).encode('utf-8')

    @staticmethod
    def decode(payload: Union[bytes, str]) -> Tuple[Dict[str, Any], Dict[str, int]]:
        """
        Split a payload into variables and flash counters

        Raises:
            PayloadOpacityException: If the payload is not a session document
        """
        if not payload:
            return {}, {}

        try:
            document = json.loads(payload)
        except (ValueError, UnicodeDecodeError) as e:
            raise PayloadOpacityException(f"Session payload is not valid JSON: {e}") from e

        if not isinstance(document, dict):
            raise PayloadOpacityException("Session payload is not an object")

        data = document.get('data', {})
        counters = document.get('flash', {})

        if not isinstance(data, dict) or not isinstance(counters, dict):
            raise PayloadOpacityException("Session payload has an unexpected layout")

        for name, counter in counters.items():
            if isinstance(counter, bool) or not isinstance(counter, int):
                raise PayloadOpacityException(f"Flash counter for '{name}' is not an integer")

        return data, counters

    # === Data Retrieval ===

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get session value

        Args:
            key: Session key
            default: Default value if key doesn't exist

        Returns:
            Session value or default
        """
        return self._data.get(key, default)

    def all(self) -> Dict[str, Any]:
        """Copy of all session data"""
        return dict(self._data)

    def has(self, key: str) -> bool:
        return key in self._data

    def missing(self, key: str) -> bool:
        return not self.has(key)

    # === Data Storage ===

    def put(self, key: str, value: Any) -> None:
        self._data[key] = value

    def push(self, key: str, value: Any) -> None:
        """
        Append value to a list in the session

        Args:
            key: Session key
            value: Value to append
        """
        items = self.get(key, [])
        if not isinstance(items, list):
            items = [items]
        items.append(value)
        self.put(key, items)

    def increment(self, key: str, amount: int = 1) -> int:
        """
        Increment session value

        Args:
            key: Session key
            amount: Amount to increment

        Returns:
            New value
        """
        new_value = int(self.get(key, 0)) + amount
        self.put(key, new_value)
        return new_value

    def decrement(self, key: str, amount: int = 1) -> int:
        return self.increment(key, -amount)

    # === Data Removal ===

    def forget(self, keys: Union[str, List[str]]) -> None:
        """
        Remove key(s) from session

        Args:
            keys: Single key or list of keys to remove
        """
        if isinstance(keys, str):
            keys = [keys]

        for key in keys:
            self._data.pop(key, None)

    def pull(self, key: str, default: Any = None) -> Any:
        """Get and remove value from session"""
        value = self.get(key, default)
        self.forget(key)
        return value

    def flush(self) -> None:
        """Clear all session data, flash values included"""
        self._data.clear()
        self._flash.clear()

    # === Flash Data ===

    def flash(self, key: str, value: Any) -> None:
        """
        Store a value for this request and the next one

        Args:
            key: Flash key
            value: Flash value
        """
        self._flash.set(key, value)

    def now(self, key: str, value: Any) -> None:
        """Flash data for current request only"""
        self._flash.now(key, value)

    def reflash(self) -> None:
        """Keep all flash data for another request"""
        self._flash.reflash()

    def keep(self, keys: Union[str, List[str]] = None) -> None:
        """
        Keep specific flash data for another request

        Args:
            keys: Keys to keep (None to keep all)
        """
        if isinstance(keys, str):
            keys = [keys]
        self._flash.keep(keys)

    # === Session Management ===

    def regenerate(self, destroy_old: bool = False) -> str:
        """
        Regenerate session ID

        The handler moves the session lock to the new id on the next write.

        Args:
            destroy_old: Whether to destroy old session

        Returns:
            New session ID
        """
        from dbsession.defaults import DEFAULT_SESSION_ID_LENGTH
        old_id = self.session_id
        self.session_id = Crypto.generate_token(DEFAULT_SESSION_ID_LENGTH)

        if destroy_old:
            # Destroyed in save()
            self._destroy_old_id = old_id

        return self.session_id

    def invalidate(self) -> str:
        """
        Flush session and regenerate ID

        Returns:
            New session ID
        """
        self.flush()
        return self.regenerate(destroy_old=True)

    def get_id(self) -> str:
        return self.session_id

    # === Persistence ===

    async def save(self) -> bool:
        """
        End the request: age flash data and write the session

        Returns:
            True if successful
        """
        self._flash.on_request_boundary()

        payload = self.encode(self._data, self._flash.dump())
        success = await self.handler.write(self.session_id, payload)

        if success and self._destroy_old_id:
            await self.handler.destroy(self._destroy_old_id)
            self._destroy_old_id = None

        return success

    async def close(self) -> bool:
        """Release the handler's resources"""
        return await self.handler.close()

    # === Dictionary Interface ===

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.put(key, value)

    def __delitem__(self, key: str) -> None:
        self.forget(key)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"<SessionManager id={self.session_id[:8]}... data={len(self._data)} keys>"
