"""
Database Session Handler
Stores sessions in a database table with per-session locking and client fingerprinting
"""
import random
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union
from dbsession.database import DatabaseManager
from dbsession.exceptions import ConnectivityException, ConfigurationException, LockTimeoutException, StorageException
from dbsession.logging import getLogger
from dbsession.session.fingerprint import Fingerprint
from dbsession.session.locks import LockStrategy, SessionLock, lock_name, make_lock
from dbsession.session.models import SessionRecord, LockEntry
from dbsession.session.records import SessionRecordStore
from dbsession.session.store import SessionHandler
from dbsession.support import Config

logger = getLogger(__name__)


class DatabaseSessionHandler(SessionHandler):
    """
    Database-backed session handler

    One instance serves one request. read() locks the session id until close(),
    so concurrent requests on the same session run one after another instead of
    overwriting each other's changes.

    Build instances with the async factory, which verifies the connection:

        handler = await DatabaseSessionHandler.create(db, security_code='s3cret')
        await handler.open()
        payload = await handler.read(session_id)
        ...
        await handler.write(session_id, payload)
        await handler.close()
    """

    # Maps constructor options to Config keys and defaults
    CONFIG_MAPPING = {
        'security_code': ('session.SECURITY_CODE', ''),
        'session_lifetime': ('session.LIFETIME', 'DEFAULT_SESSION_LIFETIME'),
        'lock_to_user_agent': ('session.LOCK_TO_USER_AGENT', False),
        'lock_to_ip': ('session.LOCK_TO_IP', False),
        'gc_probability': ('session.GC_PROBABILITY', 'DEFAULT_GC_PROBABILITY'),
        'gc_divisor': ('session.GC_DIVISOR', 'DEFAULT_GC_DIVISOR'),
        'table_name': ('session.TABLE', 'DEFAULT_SESSION_TABLE'),
        'lock_table_name': ('session.LOCK_TABLE', 'DEFAULT_LOCK_TABLE'),
        'lock_timeout': ('session.LOCK_TIMEOUT', 'DEFAULT_LOCK_TIMEOUT'),
        'lock_strategy': ('session.LOCK_STRATEGY', 'DEFAULT_LOCK_STRATEGY'),
        'lock_path': ('session.LOCK_PATH', None),
        'lock_poll_interval': ('session.LOCK_POLL_INTERVAL', 'DEFAULT_LOCK_POLL_INTERVAL'),
    }

    def __init__(
        self,
        db: DatabaseManager,
        security_code: str = '',
        session_lifetime: int = None,
        lock_to_user_agent: bool = False,
        lock_to_ip: bool = False,
        gc_probability: int = None,
        gc_divisor: int = None,
        table_name: str = None,
        lock_table_name: str = None,
        lock_timeout: int = None,
        lock_strategy: Union[str, LockStrategy] = None,
        lock_path: Optional[Union[str, Path]] = None,
        lock_poll_interval: float = None,
        user_agent: Optional[str] = None,
        remote_addr: Optional[str] = None,
        lock: Optional[SessionLock] = None,
        records: Optional[SessionRecordStore] = None,
        close_database: bool = False
    ):
        """
        Args:
            db: Database manager owning the Tortoise connection
            security_code: Secret mixed into the fingerprint
            session_lifetime: Seconds a session stays valid after its last write
            lock_to_user_agent: Bind sessions to the client's user agent
            lock_to_ip: Bind sessions to the client's address
            gc_probability: Numerator of the garbage collection lottery
            gc_divisor: Denominator of the garbage collection lottery
            table_name: Session table name
            lock_table_name: Lock table name (fake-table strategy)
            lock_timeout: Seconds to wait for a session lock, 0 disables locking
            lock_strategy: 'native', 'fake-table' or 'file'
            lock_path: Lock file directory (file strategy)
            lock_poll_interval: Seconds between lock attempts (fake-table and file strategies)
            user_agent: User agent of the current client
            remote_addr: Address of the current client
            lock: Lock instance to use instead of one built from lock_strategy
            records: Record store to use instead of the default one
            close_database: Close the database connections in close()
        """
        from dbsession.defaults import (
            DEFAULT_SESSION_LIFETIME, DEFAULT_GC_PROBABILITY, DEFAULT_GC_DIVISOR,
            DEFAULT_LOCK_TIMEOUT, DEFAULT_LOCK_STRATEGY
        )

        self.db = db
        self.session_lifetime = int(session_lifetime if session_lifetime is not None else DEFAULT_SESSION_LIFETIME)
        self.gc_probability = int(gc_probability if gc_probability is not None else DEFAULT_GC_PROBABILITY)
        self.gc_divisor = int(gc_divisor if gc_divisor is not None else DEFAULT_GC_DIVISOR)
        self.lock_timeout = int(lock_timeout if lock_timeout is not None else DEFAULT_LOCK_TIMEOUT)
        self.close_database = close_database

        if self.gc_divisor <= 0:
            raise ConfigurationException("session.GC_DIVISOR must be greater than 0")

        if self.session_lifetime <= 0:
            raise ConfigurationException("session.LIFETIME must be greater than 0")

        if self.lock_timeout < 0:
            raise ConfigurationException("session.LOCK_TIMEOUT cannot be negative")

        try:
            self.lock_strategy = LockStrategy(lock.strategy if lock else (lock_strategy or DEFAULT_LOCK_STRATEGY))
        except ValueError:
            raise ConfigurationException(f"Unknown session lock strategy: {lock_strategy}")

        if self.lock_strategy is LockStrategy.NATIVE and self.lock_timeout and self.db.is_sqlite:
            raise ConfigurationException(
                "Native session locks need MySQL or PostgreSQL, use the 'fake-table' or 'file' lock strategy"
            )

        self._apply_table_names(table_name, lock_table_name)

        self.fingerprint = Fingerprint(
            security_code=security_code,
            lock_to_user_agent=lock_to_user_agent,
            lock_to_ip=lock_to_ip,
            user_agent=user_agent,
            remote_addr=remote_addr
        )
        self.lock = lock or make_lock(
            self.lock_strategy,
            connection_name=self.db.connection_name,
            lock_path=Path(lock_path) if lock_path else None,
            poll_interval=lock_poll_interval
        )
        self.records = records or SessionRecordStore()

        # Id passed to the last read(), and whether its lock is held
        self._session_id: Optional[str] = None
        self._locked = False

    @classmethod
    async def create(cls, db: DatabaseManager, **options) -> 'DatabaseSessionHandler':
        """
        Build a handler once the database answers

        Args:
            db: Database manager
            **options: Constructor options

        Returns:
            DatabaseSessionHandler instance

        Raises:
            ConnectivityException: If no connection can be established
            ConfigurationException: For invalid options
        """
        handler = cls(db, **options)

        if not await db.ping() and not await db.reconnect():
            logger.error("Session handler has no database connection", extra={'database': db.safe_url()})
            raise ConnectivityException()

        return handler

    @classmethod
    async def from_config(cls, db: DatabaseManager, **overrides) -> 'DatabaseSessionHandler':
        """
        Build a handler from session.* Config keys

        Args:
            db: Database manager
            **overrides: Options that take precedence over Config

        Returns:
            DatabaseSessionHandler instance
        """
        return await cls.create(db, **{**cls.options_from_config(), **overrides})

    @classmethod
    def options_from_config(cls) -> Dict[str, Any]:
        """Read constructor options from Config"""
        import dbsession.defaults as defaults

        options = {}
        for option, (config_key, default) in cls.CONFIG_MAPPING.items():
            if isinstance(default, str) and default.startswith('DEFAULT_'):
                default = getattr(defaults, default)
            options[option] = Config.get(config_key, default)

        return options

    def _apply_table_names(self, table_name: Optional[str], lock_table_name: Optional[str]):
        """Point the models at the configured tables"""
        current = (SessionRecord._meta.db_table, LockEntry._meta.db_table)
        wanted = (table_name or current[0], lock_table_name or current[1])

        if wanted == current:
            return

        if self.db.is_initialized:
            raise ConfigurationException(
                f"Session tables are already bound to {current[0]}/{current[1]}, "
                f"set table names before the database is initialized"
            )

        self.db.use_tables(*wanted)

    # ------------------------------------------------------------------
    # Handler hooks
    # ------------------------------------------------------------------

    async def open(self, save_path: str = '', session_name: str = '') -> bool:
        if await self.db.ping():
            return True

        logger.warning("Session database connection lost, reconnecting")
        if await self.db.reconnect():
            return True

        logger.error("Session database reconnect failed", extra={'database': self.db.safe_url()})
        return False

    async def read(self, session_id: str) -> bytes:
        """
        Lock the session and read its payload

        Raises:
            LockTimeoutException: If the lock is not obtained within lock_timeout
        """
        self._session_id = session_id

        if not await self._get_lock(session_id):
            logger.error(
                "Session lock timed out",
                extra={'session_id': session_id[:8], 'timeout': self.lock_timeout, 'strategy': self.lock_strategy.value}
            )
            raise LockTimeoutException(session_id=session_id)

        try:
            payload = await self.records.get(session_id, self.fingerprint.value, int(time.time()))
        except StorageException:
            logger.error("Session read failed", extra={'session_id': session_id[:8]}, exc_info=True)
            return b''

        return payload or b''

    async def write(self, session_id: str, payload: Union[bytes, str]) -> bool:
        if self.lock_timeout and session_id == self._session_id and not self._locked:
            logger.error("Session write without its lock refused", extra={'session_id': session_id[:8]})
            return False

        if self._session_id is not None and session_id != self._session_id:
            # Id was regenerated: move the lock to the new id first
            released = await self._release_lock(self._session_id)
            if not released or not await self._get_lock(session_id):
                logger.error(
                    "Session lock swap failed",
                    extra={'old_session_id': self._session_id[:8], 'session_id': session_id[:8]}
                )
                return False
            self._session_id = session_id

        if isinstance(payload, str):
            payload = payload.encode('utf-8')

        expire_at = int(time.time()) + self.session_lifetime

        try:
            await self.records.upsert(session_id, self.fingerprint.value, payload, expire_at)
        except StorageException:
            logger.error("Session write failed", extra={'session_id': session_id[:8]}, exc_info=True)
            return False

        return True

    async def close(self) -> bool:
        released = True

        if self._session_id is not None and self._locked:
            released = await self._release_lock(self._session_id)
            if not released:
                logger.warning(
                    "Session lock not released, it will expire on its own",
                    extra={'session_id': self._session_id[:8]}
                )

        if self.close_database:
            await self.db.close()

        return released

    async def destroy(self, session_id: str) -> bool:
        if self.lock_strategy is LockStrategy.TABLE:
            await self._sweep_locks()

        try:
            deleted = await self.records.delete(session_id)
        except StorageException:
            logger.error("Session destroy failed", extra={'session_id': session_id[:8]}, exc_info=True)
            return False

        if deleted:
            logger.debug("Session destroyed", extra={'session_id': session_id[:8]})

        return deleted

    async def gc(self, max_lifetime: int = 0) -> int:
        """
        Remove expired sessions

        Rows carry their own expiry time, so max_lifetime is not used.

        Returns:
            Number of sessions removed, or -1 on failure
        """
        if self.lock_strategy is LockStrategy.TABLE:
            await self._sweep_locks()

        try:
            return await self.records.sweep(int(time.time()))
        except StorageException:
            logger.error("Session garbage collection failed", exc_info=True)
            return -1

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    async def _get_lock(self, session_id: str) -> bool:
        if not self.lock_timeout:
            self._locked = True
            return True

        self._locked = await self.lock.acquire(lock_name(session_id), self.lock_timeout)
        return self._locked

    async def _release_lock(self, session_id: str) -> bool:
        self._locked = False

        if not self.lock_timeout:
            return True

        return await self.lock.release(lock_name(session_id))

    async def _sweep_locks(self):
        try:
            await self.records.sweep_locks(int(time.time()))
        except StorageException:
            logger.warning("Lock table sweep failed", exc_info=True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def session_id(self) -> Optional[str]:
        """Id of the session read by this handler"""
        return self._session_id

    @property
    def is_locked(self) -> bool:
        return self._locked

    @property
    def lock_path(self) -> Optional[Path]:
        """Lock file directory, for the file strategy"""
        return getattr(self.lock, 'lock_path', None)

    async def get_active_sessions(self) -> int:
        """
        Count live sessions

        Expired sessions are removed first.

        Returns:
            Number of stored sessions, or -1 on failure
        """
        await self.gc(self.session_lifetime)

        try:
            return await self.records.count()
        except StorageException:
            logger.error("Session count failed", exc_info=True)
            return -1

    def get_settings(self) -> Dict[str, Any]:
        """
        Get effective garbage collection settings

        Returns:
            Dict with lifetime, gc probability/divisor and the resulting percentage
        """
        lifetime = self.session_lifetime

        return {
            'gc_maxlifetime': f"{lifetime} seconds ({round(lifetime / 60)} minutes)",
            'gc_probability': self.gc_probability,
            'gc_divisor': self.gc_divisor,
            'probability': f"{self.gc_probability / self.gc_divisor * 100:g}%",
        }

    def get_fingerprint(self) -> str:
        return self.fingerprint.value

    def should_collect_garbage(self) -> bool:
        """Draw the garbage collection lottery"""
        return random.randint(1, self.gc_divisor) <= self.gc_probability

    def set_security_code(self, security_code: str) -> 'DatabaseSessionHandler':
        self.fingerprint.set_security_code(security_code)
        return self

    def set_lock_to_user_agent(self, lock_to_user_agent: bool) -> 'DatabaseSessionHandler':
        self.fingerprint.set_lock_to_user_agent(lock_to_user_agent)
        return self

    def set_lock_to_ip(self, lock_to_ip: bool) -> 'DatabaseSessionHandler':
        self.fingerprint.set_lock_to_ip(lock_to_ip)
        return self

    def set_client(self, user_agent: Optional[str] = None, remote_addr: Optional[str] = None) -> 'DatabaseSessionHandler':
        self.fingerprint.set_client(user_agent, remote_addr)
        return self

    def set_lock_timeout(self, lock_timeout: int) -> 'DatabaseSessionHandler':
        """
        Change the lock wait for later reads

        Raises:
            ConfigurationException: For a negative timeout
        """
        if lock_timeout < 0:
            raise ConfigurationException("session.LOCK_TIMEOUT cannot be negative")

        self.lock_timeout = int(lock_timeout)
        return self

    def __repr__(self) -> str:
        return (
            f"<DatabaseSessionHandler strategy={self.lock_strategy.value} "
            f"timeout={self.lock_timeout} locked={self._locked}>"
        )
