"""
Change detection and version history.

Each ingest compares the incoming article against the stored row and picks
exactly one outcome:

    existing?  body changed?  metadata changed?  outcome
    no         -              -                  CREATED (article + version)
    yes        no             no                 UNCHANGED (no writes)
    yes        no             yes                METADATA_UPDATED (no version)
    yes        yes            -                  UPDATED (article + version)

The outcome travels back to the sync runner, which counts only UNCHANGED
toward its consecutive-skip threshold.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from news_mirror.articles.repository import ArticleRepository
from news_mirror.articles.schemas import Article
from news_mirror.ingestion.schemas import RemoteArticle

logger = logging.getLogger(__name__)


class IngestOutcome(str, Enum):
    """What an ingest did to the stored article."""

    CREATED = "created"
    UPDATED = "updated"
    METADATA_UPDATED = "metadata_updated"
    UNCHANGED = "unchanged"

    @property
    def is_new_content(self) -> bool:
        return self is not IngestOutcome.UNCHANGED


@dataclass
class IngestResult:
    """Resulting article row plus the outcome that produced it."""

    article: Article
    outcome: IngestOutcome


def metadata_differs(existing: Article, remote: RemoteArticle) -> bool:
    """Compare the fields that may change without a new version."""
    return (
        existing.title != remote.title
        or existing.summary != remote.summary
        or existing.thumbnail_url != remote.thumbnail_url
        or existing.cover_image_url != remote.cover_image_url
    )


def decide(
    existing: Article | None,
    remote: RemoteArticle,
    fingerprint: str,
) -> IngestOutcome:
    """Pick the outcome for an incoming article. Performs no I/O."""
    if existing is None:
        return IngestOutcome.CREATED
    if existing.body_hash != fingerprint:
        return IngestOutcome.UPDATED
    if metadata_differs(existing, remote):
        return IngestOutcome.METADATA_UPDATED
    return IngestOutcome.UNCHANGED


class VersioningEngine:
    """Applies the outcome chosen by decide() to the article repository."""

    def __init__(self, articles: ArticleRepository):
        self._articles = articles

    async def apply(
        self,
        source_id: str,
        remote: RemoteArticle,
        fingerprint: str,
        existing: Article | None,
        journalist_id: str | None,
    ) -> IngestResult:
        outcome = decide(existing, remote, fingerprint)

        if outcome is IngestOutcome.CREATED:
            article = await self._articles.create(
                source_id=source_id,
                external_id=remote.external_id,
                canonical_url=remote.canonical_url,
                title=remote.title,
                summary=remote.summary,
                thumbnail_url=remote.thumbnail_url,
                cover_image_url=remote.cover_image_url,
                body_hash=fingerprint,
                published_at=remote.published_at,
                journalist_id=journalist_id,
            )
            await self._snapshot(article, remote)
            logger.debug(f"Created article {remote.external_id}")
            return IngestResult(article=article, outcome=outcome)

        if outcome is IngestOutcome.UPDATED:
            article = await self._articles.update(
                article_id=existing.id,
                title=remote.title,
                summary=remote.summary,
                thumbnail_url=remote.thumbnail_url,
                cover_image_url=remote.cover_image_url,
                journalist_id=journalist_id,
                body_hash=fingerprint,
            )
            await self._snapshot(article, remote)
            logger.debug(f"Body changed for article {remote.external_id}, new version stored")
            return IngestResult(article=article, outcome=outcome)

        if outcome is IngestOutcome.METADATA_UPDATED:
            article = await self._articles.update(
                article_id=existing.id,
                title=remote.title,
                summary=remote.summary,
                thumbnail_url=remote.thumbnail_url,
                cover_image_url=remote.cover_image_url,
                journalist_id=journalist_id,
            )
            return IngestResult(article=article, outcome=outcome)

        return IngestResult(article=existing, outcome=outcome)

    async def _snapshot(self, article: Article, remote: RemoteArticle) -> None:
        await self._articles.create_version(
            article_id=article.id,
            title=remote.title,
            summary=remote.summary,
            body=remote.body,
        )
