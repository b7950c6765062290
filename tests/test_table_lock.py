import asyncio
import time

import pytest

from dbsession.session.locks import TableLock, lock_name
from dbsession.session.models import LockEntry


@pytest.fixture
def lock(db):
    return TableLock(poll_interval=0.01)


@pytest.mark.asyncio
async def test_acquire_inserts_lock_row(lock):
    name = lock_name("s1")

    assert await lock.acquire(name, 30) is True

    entry = await LockEntry.get(lock_hash=name)
    assert entry.lock_time >= int(time.time()) + 29


@pytest.mark.asyncio
async def test_held_lock_is_not_acquired_twice(lock):
    name = lock_name("s1")
    await lock.acquire(name, 30)

    assert await lock.acquire(name, 0) is False


@pytest.mark.asyncio
async def test_release_frees_the_lock(lock):
    name = lock_name("s1")
    await lock.acquire(name, 30)

    assert await lock.release(name) is True
    assert not await LockEntry.filter(lock_hash=name).exists()
    assert await lock.acquire(name, 0) is True


@pytest.mark.asyncio
async def test_stale_lock_is_taken_over(lock):
    """Test an expired row counts as free and gets a fresh expiry."""
    name = lock_name("s1")
    now = int(time.time())
    await LockEntry.create(lock_hash=name, lock_time=now - 10)

    assert await lock.acquire(name, 30) is True

    entry = await LockEntry.get(lock_hash=name)
    assert entry.lock_time >= now + 29


@pytest.mark.asyncio
async def test_waiter_gets_the_lock_after_release(lock):
    """Test a waiting acquire succeeds once the holder releases within the timeout."""
    name = lock_name("s1")
    await lock.acquire(name, 30)

    waiter = asyncio.create_task(lock.acquire(name, 2))
    await asyncio.sleep(0.05)
    assert not waiter.done()

    await lock.release(name)

    assert await waiter is True


@pytest.mark.asyncio
async def test_acquire_gives_up_after_timeout(lock):
    name = lock_name("s1")
    await lock.acquire(name, 30)

    started = time.monotonic()
    assert await lock.acquire(name, 1) is False
    assert time.monotonic() - started >= 1
