"""
Ingestion pipeline for a single normalized article.

Resolves the journalist and taxonomy, runs change detection, then links
the stored article to its tags and categories. Nothing here retries;
storage errors propagate to the sync runner, which isolates them per
article.
"""

import asyncio

from news_mirror.articles.fingerprint import content_fingerprint
from news_mirror.articles.repository import (
    ArticleRepository,
    JournalistRepository,
    TaxonomyRepository,
)
from news_mirror.articles.versioning import IngestResult, VersioningEngine
from news_mirror.ingestion.schemas import RemoteArticle
from news_mirror.sources.schemas import Source


class ArticleIngestor:
    """Persists one RemoteArticle for one source."""

    def __init__(
        self,
        articles: ArticleRepository,
        journalists: JournalistRepository,
        taxonomy: TaxonomyRepository,
        engine: VersioningEngine | None = None,
    ):
        self._articles = articles
        self._journalists = journalists
        self._taxonomy = taxonomy
        self._engine = engine or VersioningEngine(articles)

    async def ingest(self, remote: RemoteArticle, source: Source) -> IngestResult:
        """
        Ingest one article.

        Safe to repeat with identical input: every write is an upsert on a
        natural key, and an unchanged body never produces a new version.
        """
        fingerprint = content_fingerprint(remote.body)
        existing = await self._articles.find_by_external_id(source.id, remote.external_id)

        journalist = await self._journalists.ensure(
            name=remote.author_name,
            profile_image_url=remote.author_profile_image_url,
            source_name=source.name,
            author_id=remote.author_id,
            source_id=source.id,
        )

        tags, categories = await asyncio.gather(
            self._taxonomy.ensure_tags(remote.tags, source.id),
            self._taxonomy.ensure_categories(remote.categories, source.id),
        )

        result = await self._engine.apply(
            source_id=source.id,
            remote=remote,
            fingerprint=fingerprint,
            existing=existing,
            journalist_id=journalist.id,
        )

        article_id = result.article.id
        await asyncio.gather(
            self._articles.link_tags(article_id, [t.id for t in tags]),
            self._articles.link_categories(article_id, [c.id for c in categories]),
        )

        return result
