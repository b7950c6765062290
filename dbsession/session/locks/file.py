"""
File Lock
Session locks as marker files guarded by flock(); single host only
"""
import asyncio
import fcntl
import os
import tempfile
import time
from pathlib import Path
from typing import Optional
from dbsession.logging import getLogger
from dbsession.session.locks.base import SessionLock, LockStrategy
from dbsession.support import Crypto

logger = getLogger(__name__)


class FileLock(SessionLock):
    """
    Lock file strategy

    Each lock is a file in lock_path holding the Unix timestamp it expires at.
    The marker is read under a shared flock() and written under an exclusive
    one. Expired markers are taken over. Release removes the file.

    The lock directory is local to one machine: do not use this strategy when
    several hosts serve the same sessions.
    """

    strategy = LockStrategy.FILE

    def __init__(self, lock_path: Optional[Path] = None, poll_interval: float = None, prefix: str = None):
        """
        Args:
            lock_path: Directory for lock files (default: system temp directory)
            poll_interval: Seconds between attempts while the lock is held elsewhere
            prefix: File name prefix for lock files
        """
        from dbsession.defaults import DEFAULT_LOCK_POLL_INTERVAL, DEFAULT_LOCK_FILE_PREFIX
        self.lock_path = Path(lock_path) if lock_path else Path(tempfile.gettempdir())
        self.lock_path.mkdir(parents=True, exist_ok=True)
        self.poll_interval = poll_interval if poll_interval is not None else DEFAULT_LOCK_POLL_INTERVAL
        self.prefix = prefix if prefix is not None else DEFAULT_LOCK_FILE_PREFIX

    def lock_file(self, name: str) -> Path:
        """Path of the marker file for a lock name"""
        return self.lock_path / f"{self.prefix}{Crypto.sha256(name)}"

    async def acquire(self, name: str, timeout: int) -> bool:
        loop = asyncio.get_running_loop()
        path = self.lock_file(name)
        deadline = time.monotonic() + timeout

        while True:
            try:
                acquired = await loop.run_in_executor(None, self._try_acquire, path, int(timeout))
            except OSError as e:
                logger.error("Lock file access failed", extra={'lock_name': name, 'error': str(e)})
                return False

            if acquired:
                return True

            if time.monotonic() >= deadline:
                logger.warning("Lock file still held", extra={'lock_name': name, 'timeout': timeout})
                return False

            await asyncio.sleep(self.poll_interval)

    def _try_acquire(self, path: Path, timeout: int) -> bool:
        now = int(time.time())

        try:
            marker = self._read_marker(path)
        except BlockingIOError:
            # A writer holds the file right now
            return False

        if marker is not None and marker >= now:
            return False

        fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o600)
        with os.fdopen(fd, 'r+b') as f:
            try:
                fcntl.flock(f, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                return False

            try:
                # Re-check: another process may have written between the two flock() calls
                current = self._parse(f.read())
                if current is not None and current >= now:
                    return False

                f.seek(0)
                f.truncate()
                f.write(str(now + timeout).encode())
                f.flush()
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)

        if marker is not None:
            logger.info("Stale lock file taken over", extra={'path': str(path), 'expired_at': marker})

        return True

    def _read_marker(self, path: Path) -> Optional[int]:
        try:
            f = open(path, 'rb')
        except FileNotFoundError:
            return None

        with f:
            fcntl.flock(f, fcntl.LOCK_SH | fcntl.LOCK_NB)
            try:
                return self._parse(f.read())
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)

    @staticmethod
    def _parse(content: bytes) -> Optional[int]:
        content = content.strip()
        if not content:
            return None

        try:
            return int(content)
        except ValueError:
            # Unreadable marker counts as expired
            return 0

    async def release(self, name: str) -> bool:
        path = self.lock_file(name)

        try:
            path.unlink()
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.error("Lock file removal failed", extra={'lock_name': name, 'error': str(e)})
            return False

        return True
