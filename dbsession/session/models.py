"""
Session Models

Database rows behind the session handler: one row per session id, plus the
lock table used by the fake-table lock strategy. Timestamps are Unix epoch seconds.
"""
from tortoise import fields
from tortoise.models import Model
from dbsession.defaults import DEFAULT_SESSION_TABLE, DEFAULT_LOCK_TABLE


class SessionRecord(Model):
    """
    Stored session

    At most one row per session id. The payload is opaque to the handler;
    the hash column binds the row to the client fingerprint it was written with.
    """

    session_id = fields.CharField(max_length=128, primary_key=True,
                                  description="Opaque session identifier")
    hash = fields.CharField(max_length=64,
                            description="Fingerprint of the client that wrote the row")
    session_data = fields.BinaryField(description="Opaque session payload")
    session_expire = fields.IntField(db_index=True,
                                     description="Unix timestamp - Row is invalid from this time on")

    class Meta:
        table = DEFAULT_SESSION_TABLE

    def __str__(self):
        return f"Session {self.session_id[:8]}... expires {self.session_expire}"


class LockEntry(Model):
    """
    Emulated advisory lock

    A row means the lock is held until lock_time; expired rows are treated as free.
    """

    lock_hash = fields.CharField(max_length=64, primary_key=True,
                                 description="Lock name derived from the session id")
    lock_time = fields.IntField(db_index=True,
                                description="Unix timestamp - Lock expires at this time")

    class Meta:
        table = DEFAULT_LOCK_TABLE

    def __str__(self):
        return f"Lock {self.lock_hash} until {self.lock_time}"


def use_tables(table_name: str = None, lock_table_name: str = None) -> None:
    """
    Point the models at custom table names

    Must run before Tortoise is initialised; the table name is baked into
    each model's base query at init time.

    Args:
        table_name: Session table name
        lock_table_name: Lock table name
    """
    if table_name:
        SessionRecord._meta.db_table = table_name
    if lock_table_name:
        LockEntry._meta.db_table = lock_table_name
