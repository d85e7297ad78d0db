"""
Database init - Exports for routes
"""

from .base import Base, TimestampMixin, utcnow
from bloomrent.database import engine, SessionLocal, get_db

__all__ = ["Base", "TimestampMixin", "utcnow", "engine", "SessionLocal", "get_db"]
