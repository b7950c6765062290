import time

import pytest
from tortoise.exceptions import OperationalError

from dbsession.exceptions import StorageException
from dbsession.session.models import LockEntry, SessionRecord
from dbsession.session.records import SessionRecordStore


@pytest.fixture
def store(db):
    return SessionRecordStore()


@pytest.mark.asyncio
async def test_upsert_then_get_returns_payload(store):
    now = int(time.time())

    await store.upsert("s1", "fp", b"payload", now + 60)

    assert await store.get("s1", "fp", now) == b"payload"


@pytest.mark.asyncio
async def test_get_requires_matching_fingerprint(store):
    now = int(time.time())
    await store.upsert("s1", "fp", b"payload", now + 60)

    assert await store.get("s1", "other", now) is None


@pytest.mark.asyncio
async def test_get_ignores_expired_rows(store):
    now = int(time.time())
    await store.upsert("s1", "fp", b"payload", now)

    assert await store.get("s1", "fp", now) is None


@pytest.mark.asyncio
async def test_upsert_replaces_existing_row(store):
    """Test a second write for the same id updates the single row."""
    now = int(time.time())
    await store.upsert("s1", "fp", b"first", now + 60)
    await store.upsert("s1", "fp2", b"second", now + 120)

    assert await SessionRecord.all().count() == 1
    record = await SessionRecord.get(session_id="s1")
    assert bytes(record.session_data) == b"second"
    assert record.hash == "fp2"
    assert record.session_expire == now + 120


@pytest.mark.asyncio
async def test_delete_reports_whether_a_row_existed(store):
    now = int(time.time())
    await store.upsert("s1", "fp", b"payload", now + 60)

    assert await store.delete("s1") is True
    assert await store.delete("s1") is False


@pytest.mark.asyncio
async def test_sweep_removes_only_expired_rows(store):
    """Test sweep deletes rows whose expiry lies in the past and returns the count."""
    now = int(time.time())
    await store.upsert("old-1", "fp", b"a", now - 10)
    await store.upsert("old-2", "fp", b"b", now - 1)
    await store.upsert("live", "fp", b"c", now + 60)

    assert await store.sweep(now) == 2
    assert await store.count() == 1
    assert await SessionRecord.filter(session_id="live").exists()


@pytest.mark.asyncio
async def test_sweep_locks_removes_expired_lock_rows(store):
    now = int(time.time())
    await LockEntry.create(lock_hash="session_old", lock_time=now - 5)
    await LockEntry.create(lock_hash="session_live", lock_time=now + 30)

    assert await store.sweep_locks(now) == 1
    assert await LockEntry.filter(lock_hash="session_live").exists()


@pytest.mark.asyncio
async def test_query_failures_raise_storage_exception(store, monkeypatch):
    def broken_filter(*args, **kwargs):
        raise OperationalError("database is locked")

    monkeypatch.setattr(SessionRecord, "filter", broken_filter)

    with pytest.raises(StorageException):
        await store.get("s1", "fp", int(time.time()))

    with pytest.raises(StorageException):
        await store.upsert("s1", "fp", b"payload", int(time.time()) + 60)

    with pytest.raises(StorageException):
        await store.delete("s1")

    with pytest.raises(StorageException):
        await store.sweep(int(time.time()))
