"""
Helper Functions
"""
from typing import Any
from sanic import Request


def session(key: str = None, default: Any = None, request: Request = None) -> Any:
    """
    Get session value or session manager

    Args:
        key: Session key (optional)
        default: Default value if key not found
        request: Request to read the session from (default: the request being handled)

    Returns:
        Session value or session manager

    Example:
        session('user_id')
        session('cart', [])
        session()
    """
    from dbsession.middleware.session_middleware import current_session

    if request is not None:
        sess = getattr(request.ctx, 'session', None)
    else:
        sess = current_session.get()

    if sess is None:
        raise RuntimeError("Session not available. Make sure SessionMiddleware is registered.")

    if key is None:
        return sess

    return sess.get(key, default)
