"""
Middleware Package
"""
from dbsession.middleware.base_middleware import Middleware
from dbsession.middleware.session_middleware import SessionMiddleware, current_session

__all__ = ['Middleware', 'SessionMiddleware', 'current_session']
