"""
dbsession
Database-backed session handler with per-session locking for Sanic
Export commonly used classes for easy import
"""
from dbsession.helpers import session
from dbsession.database import DatabaseManager
from dbsession.session import (
    DatabaseSessionHandler,
    SessionManager,
    LockStrategy,
)
from dbsession.middleware import SessionMiddleware

__version__ = '1.0.0'

__all__ = [
    'session',
    'DatabaseManager',
    'DatabaseSessionHandler',
    'SessionManager',
    'LockStrategy',
    'SessionMiddleware',
]
