"""
Package Default Values
All hardcoded values should be defined here and accessed via Config.get()
This file contains sensible defaults that can be overridden in .env or other config files
"""

# ============================================================================
# DATABASE DEFAULTS
# ============================================================================

DEFAULT_DATABASE_URL = 'sqlite://storage/database/sessions.sqlite3'
DEFAULT_CONNECTION_NAME = 'default'
DEFAULT_MODELS_MODULE = 'dbsession.session.models'

# ============================================================================
# SESSION DEFAULTS
# ============================================================================

DEFAULT_SESSION_LIFETIME = 3600  # seconds (1 hour)
DEFAULT_SESSION_TABLE = 'session_data'
DEFAULT_SESSION_COOKIE_NAME = 'dbsession'
DEFAULT_SESSION_ID_LENGTH = 40

# Fallback secret used when no security code is configured
DEFAULT_SECURITY_CODE = 'sEcUrmenadwork_))'
PLACEHOLDER_SECURITY_CODE = '###set_the_security_key###'

# Garbage collection lottery: probability = GC_PROBABILITY / GC_DIVISOR
DEFAULT_GC_PROBABILITY = 1
DEFAULT_GC_DIVISOR = 1000

# ============================================================================
# LOCK DEFAULTS
# ============================================================================

DEFAULT_LOCK_STRATEGY = 'native'
DEFAULT_LOCK_TABLE = 'lock_data'
DEFAULT_LOCK_TIMEOUT = 60  # seconds, 0 disables locking
DEFAULT_LOCK_POLL_INTERVAL = 0.1  # seconds between attempts (table/file strategies)
DEFAULT_LOCK_NAME_PREFIX = 'session_'
DEFAULT_LOCK_FILE_PREFIX = 'dbsession.lock.'

# ============================================================================
# LOGGING DEFAULTS
# ============================================================================

DEFAULT_LOG_PATH = 'storage/logs'
DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_LOG_BACKUP_COUNT = 5
