"""Storage layer - PostgreSQL connection pool."""

from news_mirror.storage.database import Database

__all__ = ["Database"]
