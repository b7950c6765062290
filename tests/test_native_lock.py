from unittest.mock import AsyncMock, MagicMock

import pytest
from tortoise.exceptions import OperationalError

from dbsession.exceptions import ConfigurationException
from dbsession.session.locks import NativeLock, lock_name


class FakeTransaction:
    """Stand-in for tortoise's in_transaction() context manager."""

    def __init__(self, client):
        self.client = client
        self.entered = 0
        self.exits = []

    async def __aenter__(self):
        self.entered += 1
        return self.client

    async def __aexit__(self, exc_type, exc, tb):
        self.exits.append(exc_type)
        return False


def make_client(dialect: str, result: int = 1) -> AsyncMock:
    client = AsyncMock()
    client.capabilities = MagicMock()
    client.capabilities.dialect = dialect
    client.execute_query_dict = AsyncMock(return_value=[{"result": result}])
    client.execute_query = AsyncMock(return_value=(1, []))
    client.execute_script = AsyncMock()
    return client


def make_lock(client):
    transaction = FakeTransaction(client)
    lock = NativeLock(connection_name="default", transaction_factory=lambda name: transaction)
    return lock, transaction


@pytest.mark.asyncio
async def test_mysql_acquire_and_release():
    """Test GET_LOCK/RELEASE_LOCK run on the same pinned connection."""
    client = make_client("mysql")
    lock, transaction = make_lock(client)
    name = lock_name("s1")

    assert await lock.acquire(name, 5) is True
    client.execute_query_dict.assert_awaited_with("SELECT GET_LOCK(%s, %s) AS result", [name, 5])
    assert transaction.exits == []

    assert await lock.release(name) is True
    client.execute_query_dict.assert_awaited_with("SELECT RELEASE_LOCK(%s) AS result", [name])
    assert transaction.exits == [None]


@pytest.mark.asyncio
async def test_mysql_timeout_returns_false_and_frees_connection():
    client = make_client("mysql", result=0)
    lock, transaction = make_lock(client)

    assert await lock.acquire(lock_name("s1"), 5) is False
    assert transaction.exits == [None]


@pytest.mark.asyncio
async def test_postgres_advisory_lock_is_bounded_by_lock_timeout():
    client = make_client("postgres")
    lock, transaction = make_lock(client)
    name = lock_name("s1")

    assert await lock.acquire(name, 5) is True
    client.execute_script.assert_awaited_once_with("SET LOCAL lock_timeout = '5000ms'")
    client.execute_query.assert_awaited_once_with("SELECT pg_advisory_xact_lock(hashtext($1))", [name])

    # Released by committing the transaction
    assert await lock.release(name) is True
    assert transaction.exits == [None]


@pytest.mark.asyncio
async def test_postgres_lock_wait_timeout_returns_false():
    client = make_client("postgres")
    client.execute_query = AsyncMock(side_effect=OperationalError("canceling statement due to lock timeout"))
    lock, transaction = make_lock(client)

    assert await lock.acquire(lock_name("s1"), 1) is False
    assert len(transaction.exits) == 1


@pytest.mark.asyncio
async def test_query_error_exits_transaction_with_error():
    client = make_client("mysql")
    client.execute_query_dict = AsyncMock(side_effect=OperationalError("server has gone away"))
    lock, transaction = make_lock(client)

    assert await lock.acquire(lock_name("s1"), 5) is False
    assert transaction.exits == [OperationalError]


@pytest.mark.asyncio
async def test_unsupported_dialect_raises_configuration_exception():
    client = make_client("sqlite")
    lock, transaction = make_lock(client)

    with pytest.raises(ConfigurationException):
        await lock.acquire(lock_name("s1"), 5)

    assert transaction.exits == [ConfigurationException]


@pytest.mark.asyncio
async def test_release_without_acquire_returns_false():
    lock, _ = make_lock(make_client("mysql"))

    assert await lock.release(lock_name("s1")) is False
