"""Article storage, change detection and the per-article ingestion pipeline."""

from news_mirror.articles.fingerprint import content_fingerprint
from news_mirror.articles.ingestor import ArticleIngestor
from news_mirror.articles.repository import (
    ArticleRepository,
    JournalistRepository,
    TaxonomyRepository,
)
from news_mirror.articles.schemas import Article, ArticleVersion, Category, Journalist, Tag
from news_mirror.articles.versioning import IngestOutcome, IngestResult, VersioningEngine

__all__ = [
    "Article",
    "ArticleIngestor",
    "ArticleRepository",
    "ArticleVersion",
    "Category",
    "IngestOutcome",
    "IngestResult",
    "Journalist",
    "JournalistRepository",
    "Tag",
    "TaxonomyRepository",
    "VersioningEngine",
    "content_fingerprint",
]
