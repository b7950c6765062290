"""
Database Manager
Handles Tortoise ORM initialization and connection management for the session tables
"""
from pathlib import Path
from typing import Dict, Any, List, Optional
from tortoise import Tortoise, connections
from tortoise.backends.base.client import BaseDBAsyncClient
from dbsession.exceptions import ConnectivityException
from dbsession.logging import getLogger
from dbsession.support import Config, EnvHelper

logger = getLogger(__name__)


class DatabaseManager:
    """Manages database connections and Tortoise ORM"""

    def __init__(
        self,
        database_url: Optional[str] = None,
        models: Optional[List[str]] = None,
        connection_name: Optional[str] = None
    ):
        """
        Initialize database manager

        Args:
            database_url: Tortoise database URL (default: database.DATABASE_URL, then $DATABASE_URL)
            models: Extra model modules to register next to the session models
            connection_name: Tortoise connection name
        """
        from dbsession.defaults import DEFAULT_DATABASE_URL, DEFAULT_CONNECTION_NAME, DEFAULT_MODELS_MODULE

        self.database_url = (
            database_url
            or Config.get('database.DATABASE_URL')
            or EnvHelper.get('DATABASE_URL', DEFAULT_DATABASE_URL)
        )
        self.models = list(models if models is not None else Config.get('database.MODELS', []))
        if DEFAULT_MODELS_MODULE not in self.models:
            self.models.append(DEFAULT_MODELS_MODULE)
        self.connection_name = connection_name or DEFAULT_CONNECTION_NAME
        self.app_label = 'models'
        self._initialized = False

    @property
    def is_sqlite(self) -> bool:
        """Check if using SQLite"""
        return self.database_url.startswith("sqlite")

    @property
    def is_postgres(self) -> bool:
        """Check if using PostgreSQL"""
        return self.database_url.startswith(("postgres", "asyncpg", "psycopg"))

    @property
    def is_mysql(self) -> bool:
        """Check if using MySQL or MariaDB"""
        return self.database_url.startswith("mysql")

    @property
    def is_initialized(self) -> bool:
        """Check if Tortoise has been initialized by this manager"""
        return self._initialized

    @property
    def connection(self) -> BaseDBAsyncClient:
        """Tortoise client for the configured connection"""
        return connections.get(self.connection_name)

    def get_tortoise_config(self) -> Dict[str, Any]:
        """
        Get Tortoise configuration

        Returns:
            Tortoise configuration dict
        """
        return {
            "connections": {self.connection_name: self.database_url},
            "apps": {
                self.app_label: {
                    "models": self.models,
                    "default_connection": self.connection_name,
                }
            },
        }

    def use_tables(self, table_name: Optional[str] = None, lock_table_name: Optional[str] = None):
        """
        Use custom session/lock table names

        Args:
            table_name: Session table name
            lock_table_name: Lock table name

        Raises:
            RuntimeError: If Tortoise is already initialized
        """
        if self._initialized:
            raise RuntimeError("Table names must be set before the database is initialized")

        from dbsession.session.models import use_tables
        use_tables(table_name, lock_table_name)

    async def init(self):
        """
        Initialize Tortoise ORM

        Raises:
            ConnectivityException: If the database cannot be reached
        """
        if self._initialized:
            return

        self._ensure_sqlite_directory()

        try:
            await Tortoise.init(self.get_tortoise_config())
            await self.connection.execute_query("SELECT 1")
        except Exception as e:
            logger.error(
                "Database connection test failed",
                extra={'database': self.safe_url(), 'error': str(e)}
            )
            await Tortoise.close_connections()
            raise ConnectivityException(f"Session: No DB-Connection! ({e})") from e

        if self.is_sqlite:
            await self._setup_sqlite_pragmas()

        self._initialized = True
        logger.debug("Database initialized", extra={'database': self.safe_url()})

    async def _setup_sqlite_pragmas(self):
        """Setup SQLite settings for concurrent session access"""
        if ':memory:' in self.database_url:
            return

        # WAL lets readers proceed while a writer holds the database
        await self.connection.execute_query("PRAGMA journal_mode=WAL")
        await self.connection.execute_query("PRAGMA synchronous=NORMAL")

    def _ensure_sqlite_directory(self):
        """Create the directory of a file-backed SQLite database"""
        if not self.is_sqlite or ':memory:' in self.database_url:
            return

        db_path = self.database_url.split('://', 1)[1].split('?', 1)[0]
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    def safe_url(self) -> str:
        """Database URL without credentials, for logging"""
        if '@' not in self.database_url:
            return self.database_url

        scheme, rest = self.database_url.split('://', 1)
        return f"{scheme}://***@{rest.rsplit('@', 1)[1]}"

    async def ping(self) -> bool:
        """
        Check that the connection answers a trivial query

        Returns:
            True if the database is reachable
        """
        if not self._initialized:
            return False

        try:
            await self.connection.execute_query("SELECT 1")
            return True
        except Exception as e:
            logger.warning("Database ping failed", extra={'error': str(e)})
            return False

    async def reconnect(self) -> bool:
        """
        Drop and re-create the connections

        Returns:
            True if the database is reachable afterwards
        """
        await self.close()

        try:
            await self.init()
        except ConnectivityException:
            return False

        return await self.ping()

    async def close(self):
        """Close database connections"""
        if self._initialized:
            await Tortoise.close_connections()
            self._initialized = False

    async def generate_schemas(self, safe: bool = True):
        """
        Create the session and lock tables

        Args:
            safe: If True, don't fail on existing tables
        """
        await Tortoise.generate_schemas(safe=safe)
