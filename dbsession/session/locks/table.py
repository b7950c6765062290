"""
Lock Table
Emulates an advisory lock with rows in a dedicated table
"""
import asyncio
import time
from tortoise.exceptions import BaseORMException, IntegrityError
from dbsession.logging import getLogger
from dbsession.session.locks.base import SessionLock, LockStrategy
from dbsession.session.models import LockEntry

logger = getLogger(__name__)


class TableLock(SessionLock):
    """
    Lock table strategy

    Acquire inserts a row keyed by the lock name with an expiry of now + timeout.
    A row whose expiry has already passed is taken over without waiting, so a
    crashed holder never blocks a session for longer than its timeout. Two
    callers that find the same stale row at the same moment can both pass;
    that race is accepted.

    Works on any database Tortoise supports, including SQLite.
    """

    strategy = LockStrategy.TABLE

    def __init__(self, poll_interval: float = None):
        """
        Args:
            poll_interval: Seconds between attempts while the lock is held elsewhere
        """
        from dbsession.defaults import DEFAULT_LOCK_POLL_INTERVAL
        self.poll_interval = poll_interval if poll_interval is not None else DEFAULT_LOCK_POLL_INTERVAL

    async def acquire(self, name: str, timeout: int) -> bool:
        deadline = time.monotonic() + timeout

        while True:
            now = int(time.time())

            try:
                if await self._try_acquire(name, now, now + int(timeout)):
                    return True
            except (BaseORMException, OSError) as e:
                logger.error("Lock table query failed", extra={'lock_name': name, 'error': str(e)})
                return False

            if time.monotonic() >= deadline:
                logger.warning("Lock table entry still held", extra={'lock_name': name, 'timeout': timeout})
                return False

            await asyncio.sleep(self.poll_interval)

    async def _try_acquire(self, name: str, now: int, lock_time: int) -> bool:
        entry = await LockEntry.filter(lock_hash=name).first()

        if entry is None:
            try:
                await LockEntry.create(lock_hash=name, lock_time=lock_time)
            except IntegrityError:
                # Another request inserted first
                return False
            return True

        if entry.lock_time < now:
            await LockEntry.filter(lock_hash=name).update(lock_time=lock_time)
            logger.info(
                "Stale lock taken over",
                extra={'lock_name': name, 'expired_at': entry.lock_time}
            )
            return True

        return False

    async def release(self, name: str) -> bool:
        try:
            await LockEntry.filter(lock_hash=name).delete()
        except (BaseORMException, OSError) as e:
            logger.error("Lock table release failed", extra={'lock_name': name, 'error': str(e)})
            return False

        return True
