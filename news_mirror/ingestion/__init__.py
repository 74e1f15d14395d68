"""Remote fetching - HTTP client, adapters and the canonical article schema."""

from news_mirror.ingestion.schemas import ApiType, Author, RemoteArticle

__all__ = [
    "ApiType",
    "Author",
    "RemoteArticle",
]
