"""
Base Middleware Class
Abstract base class for Sanic middlewares
"""
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
from sanic import Request, Sanic


class Middleware(ABC):
    """
    Base middleware class

    Middlewares can:
    - Inspect/modify requests before they reach routes
    - Inspect/modify responses before they're sent
    - Short-circuit requests (return response early)

    Configuration:
    Subclasses can set these class variables for automatic configuration:
    - ENABLED_CONFIG_KEY: Config key to check if middleware is enabled
    - CONFIG_MAPPING: Dict mapping constructor params to config keys
    - DEFAULT_ENABLED: Default enabled state if config key not found
    """

    ENABLED_CONFIG_KEY: str = None
    CONFIG_MAPPING: Dict[str, tuple] = {}
    DEFAULT_ENABLED: bool = True

    @classmethod
    def _is_enabled(cls) -> bool:
        """
        Hook for custom enabled check logic

        Returns:
            True if middleware should be enabled
        """
        from dbsession.support import Config

        if cls.ENABLED_CONFIG_KEY:
            return Config.get(cls.ENABLED_CONFIG_KEY, cls.DEFAULT_ENABLED)

        return cls.DEFAULT_ENABLED

    @classmethod
    def from_config(cls, **params) -> Optional['Middleware']:
        """
        Create middleware instance from configuration

        Args:
            **params: Parameters that take precedence over Config

        Returns:
            Middleware instance if enabled, None otherwise
        """
        from dbsession.support import Config

        if not cls._is_enabled():
            return None

        config_params = {
            param_name: Config.get(config_key, default_value)
            for param_name, (config_key, default_value) in cls.CONFIG_MAPPING.items()
        }

        return cls(**{**config_params, **params})

    def register(self, app: Sanic) -> 'Middleware':
        """Attach the hooks to a Sanic app"""
        app.register_middleware(self.before_request, "request")
        app.register_middleware(self.after_response, "response")
        return self

    @abstractmethod
    async def before_request(self, request: Request):
        """
        Called before the request reaches the route handler

        Args:
            request: The Sanic request object

        Returns:
            None: Continue to next middleware/route
            HTTPResponse: Short-circuit and return response immediately
        """
        pass

    async def after_response(self, request: Request, response):
        """
        Called after the route handler, before sending response

        Args:
            request: The Sanic request object
            response: The response object

        Returns:
            response: Modified or original response
        """
        return response
