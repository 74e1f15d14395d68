"""Sources: database-backed remote publication management."""

from news_mirror.sources.repository import SourcesRepository
from news_mirror.sources.schemas import Source

__all__ = [
    "Source",
    "SourcesRepository",
]
