"""
Session Package
Database-backed session handler, locks, fingerprints and flash variables
"""
from dbsession.session.store import SessionHandler
from dbsession.session.handler import DatabaseSessionHandler
from dbsession.session.session_manager import SessionManager
from dbsession.session.fingerprint import Fingerprint
from dbsession.session.flash import FlashBag
from dbsession.session.records import SessionRecordStore
from dbsession.session.locks import LockStrategy, SessionLock, make_lock

__all__ = [
    'SessionHandler',
    'DatabaseSessionHandler',
    'SessionManager',
    'Fingerprint',
    'FlashBag',
    'SessionRecordStore',
    'LockStrategy',
    'SessionLock',
    'make_lock',
]
