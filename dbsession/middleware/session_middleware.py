"""
Session Middleware
Starts and saves database sessions automatically
"""
import re
from contextvars import ContextVar
from typing import Any, Dict, Optional
from sanic import Request, Sanic, response as sanic_response
from dbsession.database import DatabaseManager
from dbsession.exceptions import ConnectivityException, LockTimeoutException
from dbsession.logging import getLogger, setup_logging
from dbsession.middleware.base_middleware import Middleware
from dbsession.session.handler import DatabaseSessionHandler
from dbsession.session.session_manager import SessionManager
from dbsession.support import Config, Crypto

logger = getLogger(__name__)

# Session of the request being handled
current_session: ContextVar[Optional[SessionManager]] = ContextVar('current_session', default=None)

SESSION_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]{1,128}$')


class SessionMiddleware(Middleware):
    """
    Session management middleware

    Per request: builds a DatabaseSessionHandler, locks and loads the session
    before the route runs, then saves it, releases the lock and sets the
    session cookie once the response is ready.
    """

    @staticmethod
    def _get_config_defaults():
        from dbsession.defaults import DEFAULT_SESSION_COOKIE_NAME
        return {
            'cookie_name': ('session.COOKIE_NAME', DEFAULT_SESSION_COOKIE_NAME),
            'cookie_path': ('session.COOKIE_PATH', '/'),
            'cookie_domain': ('session.COOKIE_DOMAIN', None),
            'cookie_secure': ('session.COOKIE_SECURE', False),
            'cookie_http_only': ('session.COOKIE_HTTP_ONLY', True),
            'cookie_same_site': ('session.COOKIE_SAME_SITE', 'Lax'),
        }

    CONFIG_MAPPING = _get_config_defaults.__func__()
    ENABLED_CONFIG_KEY = 'session.ENABLED'

    def __init__(self, db: DatabaseManager = None, handler_options: Dict[str, Any] = None,
                 cookie_name=None, cookie_path='/', cookie_domain=None, cookie_secure=False,
                 cookie_http_only=True, cookie_same_site='Lax'):
        """
        Args:
            db: Database manager (default: one built from config)
            handler_options: DatabaseSessionHandler options (default: read from session.* config)
        """
        from dbsession.defaults import DEFAULT_SESSION_COOKIE_NAME
        self.db = db or DatabaseManager()
        self.handler_options = (
            handler_options if handler_options is not None
            else DatabaseSessionHandler.options_from_config()
        )
        self.config = {
            'cookie_name': cookie_name or DEFAULT_SESSION_COOKIE_NAME,
            'cookie_path': cookie_path,
            'cookie_domain': cookie_domain,
            'cookie_secure': cookie_secure,
            'cookie_http_only': cookie_http_only,
            'cookie_same_site': cookie_same_site,
        }

    def register(self, app: Sanic) -> 'SessionMiddleware':
        """Attach the hooks and the database listeners to a Sanic app"""
        if Config.get('session.SETUP_LOGGING', True):
            setup_logging()

        super().register(app)
        app.register_listener(self._init_database, "before_server_start")
        app.register_listener(self._close_database, "after_server_stop")
        return self

    async def _init_database(self, app, loop=None):
        await self.db.init()

    async def _close_database(self, app, loop=None):
        await self.db.close()

    def _get_session_id(self, request: Request) -> str:
        """Get session ID from cookie or generate new one"""
        from dbsession.defaults import DEFAULT_SESSION_ID_LENGTH
        session_id = request.cookies.get(self.config['cookie_name'])

        if session_id and SESSION_ID_PATTERN.match(session_id):
            return session_id

        return Crypto.generate_token(DEFAULT_SESSION_ID_LENGTH)

    async def before_request(self, request: Request):
        """Lock and load the session before the route runs"""
        try:
            handler = await DatabaseSessionHandler.create(
                self.db,
                user_agent=request.headers.get('user-agent'),
                remote_addr=request.remote_addr or request.ip,
                **self.handler_options
            )
        except ConnectivityException as e:
            return sanic_response.json({'error': e.message}, status=e.status_code)

        if not await handler.open('', self.config['cookie_name']):
            return sanic_response.json({'error': ConnectivityException.message}, status=ConnectivityException.status_code)

        session = SessionManager(handler, self._get_session_id(request))

        try:
            await session.start()
        except LockTimeoutException as e:
            await handler.close()
            return sanic_response.json({'error': e.message}, status=e.status_code)
        except Exception:
            # The lock may already be held
            await handler.close()
            raise

        request.ctx.session = session
        current_session.set(session)
        return None

    async def after_response(self, request: Request, response):
        """Save the session, release its lock and send the cookie"""
        session = getattr(request.ctx, 'session', None)
        if session is None:
            return response

        handler = session.handler

        try:
            if not await session.save():
                logger.warning("Session not saved", extra={'session_id': session.session_id[:8]})

            if handler.should_collect_garbage():
                removed = await handler.gc(handler.session_lifetime)
                logger.debug("Session garbage collection ran", extra={'removed': removed})
        finally:
            await session.close()
            request.ctx.session = None
            current_session.set(None)

        self._set_session_cookie(response, session, handler.session_lifetime)
        return response

    def _set_session_cookie(self, response, session: SessionManager, lifetime: int):
        """Set session cookie on response"""
        response.add_cookie(
            self.config['cookie_name'],
            session.get_id(),
            path=self.config['cookie_path'],
            domain=self.config['cookie_domain'],
            secure=self.config['cookie_secure'],
            httponly=self.config['cookie_http_only'],
            samesite=self.config['cookie_same_site'],
            max_age=lifetime
        )
