"""
Session Record Store
CRUD with expiry over the session table
"""
from typing import Optional
from tortoise.exceptions import BaseORMException, IntegrityError
from dbsession.exceptions import StorageException
from dbsession.logging import getLogger
from dbsession.session.models import SessionRecord, LockEntry

logger = getLogger(__name__)


class SessionRecordStore:
    """
    Reads and writes session rows

    Concurrent writers for the same id are kept apart by the session lock
    held by the handler, not by this store.

    Every method raises StorageException when the query fails.
    """

    async def get(self, session_id: str, fingerprint: str, now: int) -> Optional[bytes]:
        """
        Fetch a live session payload

        Args:
            session_id: Session identifier
            fingerprint: Fingerprint of the requesting client
            now: Current Unix timestamp

        Returns:
            Payload, or None when no row matches id, fingerprint and expiry
        """
        try:
            record = await SessionRecord.filter(
                session_id=session_id,
                hash=fingerprint,
                session_expire__gt=now
            ).first()
        except (BaseORMException, OSError) as e:
            raise StorageException(f"Failed to read session: {e}") from e

        if record is None:
            return None

        return bytes(record.session_data)

    async def upsert(self, session_id: str, fingerprint: str, payload: bytes, expire_at: int) -> None:
        """
        Update the row for session_id, or insert it

        Args:
            session_id: Session identifier
            fingerprint: Fingerprint of the writing client
            payload: Opaque session payload
            expire_at: Unix timestamp the row expires at
        """
        values = {
            'hash': fingerprint,
            'session_data': payload,
            'session_expire': expire_at,
        }

        try:
            updated = await SessionRecord.filter(session_id=session_id).update(**values)
            if updated:
                return

            try:
                await SessionRecord.create(session_id=session_id, **values)
            except IntegrityError:
                # Row appeared between the update and the insert (or the
                # backend reports unchanged rows as not updated)
                await SessionRecord.filter(session_id=session_id).update(**values)
        except (BaseORMException, OSError) as e:
            raise StorageException(f"Failed to write session: {e}") from e

    async def delete(self, session_id: str) -> bool:
        """
        Delete the row for session_id

        Returns:
            True if a row was removed
        """
        try:
            deleted = await SessionRecord.filter(session_id=session_id).delete()
        except (BaseORMException, OSError) as e:
            raise StorageException(f"Failed to delete session: {e}") from e

        return deleted > 0

    async def sweep(self, now: int) -> int:
        """
        Delete all expired rows

        Args:
            now: Current Unix timestamp

        Returns:
            Number of rows removed
        """
        try:
            removed = await SessionRecord.filter(session_expire__lt=now).delete()
        except (BaseORMException, OSError) as e:
            raise StorageException(f"Failed to sweep sessions: {e}") from e

        if removed:
            logger.debug("Expired sessions removed", extra={'count': removed})

        return removed

    async def sweep_locks(self, now: int) -> int:
        """
        Delete expired rows from the lock table

        Args:
            now: Current Unix timestamp

        Returns:
            Number of lock rows removed
        """
        try:
            return await LockEntry.filter(lock_time__lt=now).delete()
        except (BaseORMException, OSError) as e:
            raise StorageException(f"Failed to sweep locks: {e}") from e

    async def count(self) -> int:
        """Number of stored sessions, expired or not"""
        try:
            return await SessionRecord.all().count()
        except (BaseORMException, OSError) as e:
            raise StorageException(f"Failed to count sessions: {e}") from e
