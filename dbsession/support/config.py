"""
Config Manager - dot notation access to application configuration
Session options are looked up under the 'session' file, database options under 'database'
"""

import importlib
import threading
from typing import Any, Optional, Dict


class Config:
    """
    Configuration manager with dot notation access

    Usage:
        # Get config value
        lifetime = Config.get('session.LIFETIME', 3600)
        strategy = Config.get('session.lock_strategy')

        # Set runtime value
        Config.set('session.LOCK_TIMEOUT', 0)

        # Check existence
        if Config.has('session.SECURITY_CODE'):
            ...

    Config files are plain Python modules in the config/ package of the host application:
        config/
        ├── app.py
        ├── database.py
        └── session.py
    """

    _lock = threading.Lock()
    _package: str = 'config'
    _loaded: Dict[str, Any] = {}
    _runtime_overrides: Dict[str, Any] = {}

    @classmethod
    def use_package(cls, package: str):
        """
        Load config modules from a different package

        Args:
            package: Dotted package name (e.g. 'myapp.config')
        """
        with cls._lock:
            cls._package = package
            cls._loaded.clear()

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation (case-insensitive)

        Args:
            key: Config key in dot notation (e.g., 'session.lifetime')
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            lifetime = Config.get('session.LIFETIME', 3600)
            lifetime = Config.get('SESSION.lifetime', 3600)  # Same result
        """
        key_lower = key.lower()

        # Runtime overrides win over config files
        if key_lower in cls._runtime_overrides:
            return cls._runtime_overrides[key_lower]

        parts = key_lower.split('.')
        file_name = parts[0]
        path = parts[1:]

        if file_name not in cls._loaded:
            cls._load_config_file(file_name)

        value = cls._loaded.get(file_name)

        if value is None:
            return default

        for part in path:
            value = cls._lookup(value, part)
            if value is _MISSING:
                return default

        return value

    @staticmethod
    def _lookup(value: Any, part: str) -> Any:
        """Case-insensitive attribute or key lookup"""
        if isinstance(value, dict):
            for dict_key in value.keys():
                if dict_key.lower() == part:
                    return value[dict_key]
            return _MISSING

        if hasattr(value, '__dict__'):
            for attr_name in dir(value):
                if attr_name.lower() == part:
                    return getattr(value, attr_name)

        return _MISSING

    @classmethod
    def _load_config_file(cls, file_name: str):
        """
        Load a config file from the config package

        Args:
            file_name: Config file name (without .py extension)
        """
        with cls._lock:
            if file_name in cls._loaded:
                return

            try:
                module = importlib.import_module(f'{cls._package}.{file_name}')
                cls._loaded[file_name] = module
            except ImportError:
                # Config file doesn't exist
                cls._loaded[file_name] = None

    @classmethod
    def set(cls, key: str, value: Any):
        """
        Set configuration value at runtime (does not persist to file)

        Args:
            key: Config key in dot notation (case-insensitive)
            value: Value to set

        Example:
            Config.set('session.lock_strategy', 'file')
        """
        cls._runtime_overrides[key.lower()] = value

    @classmethod
    def has(cls, key: str) -> bool:
        """Check if configuration key exists"""
        return cls.get(key) is not None

    @classmethod
    def all(cls, file_name: str) -> Optional[Any]:
        """
        Get all configuration from a file

        Args:
            file_name: Config file name

        Returns:
            Config module or None
        """
        if file_name not in cls._loaded:
            cls._load_config_file(file_name)

        return cls._loaded.get(file_name)

    @classmethod
    def reload(cls, file_name: Optional[str] = None):
        """
        Reload configuration file(s)

        Args:
            file_name: Specific file to reload, or None to reload all
        """
        with cls._lock:
            if file_name:
                cls._loaded.pop(file_name, None)
            else:
                cls._loaded.clear()

    @classmethod
    def clear_runtime_overrides(cls):
        """Clear all runtime configuration overrides"""
        cls._runtime_overrides.clear()


class _Missing:
    """Sentinel for lookups that found nothing"""

    def __repr__(self):
        return '<missing>'


_MISSING = _Missing()
