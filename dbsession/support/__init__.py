"""
Package Support Classes
"""

from dbsession.support.env_helper import EnvHelper
from dbsession.support.config import Config
from dbsession.support.crypto import Crypto

__all__ = [
    'EnvHelper',
    'Config',
    'Crypto',
]
