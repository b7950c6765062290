"""
EnvHelper - Read .env files
Environment variable access used as the last fallback for database and session settings
"""

import os
import threading
from pathlib import Path
from typing import Optional, Any
from dotenv import load_dotenv


class EnvHelper:
    """
    Environment variable reader with .env file support

    Usage:
        # Read
        url = EnvHelper.get('DATABASE_URL', 'sqlite://:memory:')

        # Typed reads
        timeout = EnvHelper.get_int('SESSION_LOCK_TIMEOUT', 60)
        lock_ip = EnvHelper.get_bool('SESSION_LOCK_TO_IP', False)

        # Load a specific file
        EnvHelper.load(Path('/srv/app/.env'))
    """

    _lock = threading.Lock()
    _env_path: Optional[Path] = None
    _loaded: bool = False

    @classmethod
    def load(cls, env_path: Optional[Path] = None, override: bool = False) -> bool:
        """
        Load .env file into environment

        Args:
            env_path: Path to .env file (defaults to .env in the working directory)
            override: Whether to override existing environment variables

        Returns:
            bool: True if a file was loaded
        """
        with cls._lock:
            if env_path is not None:
                cls._env_path = Path(env_path)

            if cls._env_path is None:
                cls._env_path = Path.cwd() / '.env'

            cls._loaded = True

            if not cls._env_path.exists():
                return False

            return load_dotenv(cls._env_path, override=override)

    @classmethod
    def get(cls, key: str, default: Any = None) -> Optional[str]:
        """
        Get environment variable value

        Args:
            key: Environment variable name
            default: Default value if not found

        Returns:
            Variable value or default
        """
        if not cls._loaded:
            cls.load()

        return os.getenv(key, default)

    @classmethod
    def get_bool(cls, key: str, default: bool = False) -> bool:
        """Get boolean environment variable"""
        value = cls.get(key)
        if value is None:
            return default

        return value.lower() in ('true', '1', 'yes', 'on')

    @classmethod
    def get_int(cls, key: str, default: int = 0) -> int:
        """Get integer environment variable"""
        value = cls.get(key)
        if value is None:
            return default

        try:
            return int(value)
        except ValueError:
            return default

    @classmethod
    def has(cls, key: str) -> bool:
        """Check if environment variable exists"""
        if not cls._loaded:
            cls.load()

        return key in os.environ
