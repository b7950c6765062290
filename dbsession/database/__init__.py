"""
Database Package
Tortoise ORM connection management for the session tables
"""
from dbsession.database.database_manager import DatabaseManager

__all__ = ['DatabaseManager']
