"""
Native Advisory Lock
Uses the database server's named locks (MySQL GET_LOCK, PostgreSQL advisory locks)
"""
from typing import Any, Callable, Dict, Tuple
from tortoise.backends.base.client import BaseDBAsyncClient
from tortoise.exceptions import BaseORMException
from tortoise.transactions import in_transaction
from dbsession.exceptions import ConfigurationException
from dbsession.logging import getLogger
from dbsession.session.locks.base import SessionLock, LockStrategy

logger = getLogger(__name__)

SUPPORTED_DIALECTS = ('mysql', 'postgres')


class NativeLock(SessionLock):
    """
    Database advisory lock

    Server-side named locks belong to the connection that took them, so each
    held lock pins one connection (a Tortoise transaction) until release.
    If the connection dies, the server drops the lock.

    - MySQL/MariaDB: SELECT GET_LOCK(name, timeout) / SELECT RELEASE_LOCK(name)
    - PostgreSQL: pg_advisory_xact_lock(hashtext(name)) bounded by SET LOCAL lock_timeout,
      released when the transaction commits
    """

    strategy = LockStrategy.NATIVE

    def __init__(self, connection_name: str = None, transaction_factory: Callable[..., Any] = in_transaction):
        """
        Args:
            connection_name: Tortoise connection name
            transaction_factory: Callable returning an async context manager that yields a client
        """
        from dbsession.defaults import DEFAULT_CONNECTION_NAME
        self.connection_name = connection_name or DEFAULT_CONNECTION_NAME
        self._transaction_factory = transaction_factory
        self._held: Dict[str, Tuple[Any, BaseDBAsyncClient]] = {}

    async def acquire(self, name: str, timeout: int) -> bool:
        if name in self._held:
            return True

        context = self._transaction_factory(self.connection_name)

        try:
            client = await context.__aenter__()
        except (BaseORMException, OSError) as e:
            logger.error("Could not open lock connection", extra={'lock_name': name, 'error': str(e)})
            return False

        try:
            acquired = await self._lock(client, name, timeout)
        except (BaseORMException, OSError, ConfigurationException) as e:
            await context.__aexit__(type(e), e, e.__traceback__)
            if isinstance(e, ConfigurationException):
                raise
            logger.error("Native lock query failed", extra={'lock_name': name, 'error': str(e)})
            return False

        if not acquired:
            await context.__aexit__(None, None, None)
            logger.warning("Native lock not acquired", extra={'lock_name': name, 'timeout': timeout})
            return False

        self._held[name] = (context, client)
        return True

    async def release(self, name: str) -> bool:
        held = self._held.pop(name, None)
        if held is None:
            logger.warning("Release of a native lock that is not held", extra={'lock_name': name})
            return False

        context, client = held

        try:
            released = await self._unlock(client, name)
        except (BaseORMException, OSError) as e:
            await context.__aexit__(type(e), e, e.__traceback__)
            logger.error("Native lock release failed", extra={'lock_name': name, 'error': str(e)})
            return False

        await context.__aexit__(None, None, None)
        return released

    async def _lock(self, client: BaseDBAsyncClient, name: str, timeout: int) -> bool:
        dialect = self._dialect(client)

        if dialect == 'mysql':
            rows = await client.execute_query_dict(
                "SELECT GET_LOCK(%s, %s) AS result", [name, int(timeout)]
            )
            return bool(rows and rows[0].get('result'))

        # PostgreSQL: SET cannot take bind parameters, timeout is an int
        await client.execute_script(f"SET LOCAL lock_timeout = '{int(timeout) * 1000}ms'")
        try:
            await client.execute_query("SELECT pg_advisory_xact_lock(hashtext($1))", [name])
        except Exception as e:
            # asyncpg raises LockNotAvailableError once lock_timeout expires
            logger.warning("Advisory lock wait ended", extra={'lock_name': name, 'error': str(e)})
            return False
        return True

    async def _unlock(self, client: BaseDBAsyncClient, name: str) -> bool:
        if self._dialect(client) == 'mysql':
            rows = await client.execute_query_dict("SELECT RELEASE_LOCK(%s) AS result", [name])
            return bool(rows and rows[0].get('result'))

        # Transaction-level advisory lock goes away on commit
        return True

    @staticmethod
    def _dialect(client: BaseDBAsyncClient) -> str:
        dialect = client.capabilities.dialect
        if dialect not in SUPPORTED_DIALECTS:
            raise ConfigurationException(
                f"Native session locks are not supported on '{dialect}', "
                f"use the 'fake-table' or 'file' lock strategy"
            )
        return dialect
