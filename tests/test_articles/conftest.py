"""Shared fixtures for article tests: in-memory repositories."""

import itertools
from datetime import datetime, timezone

import pytest

from news_mirror.articles.schemas import (
    Article,
    ArticleVersion,
    Category,
    Journalist,
    Tag,
)


class InMemoryArticleStore:
    """
    Implements the ArticleRepository, JournalistRepository and
    TaxonomyRepository methods over dicts, with the same natural-key
    upsert semantics as the SQL.
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self.articles: dict[str, Article] = {}
        self.versions: list[ArticleVersion] = []
        self.journalists: dict[str, Journalist] = {}
        self.journalist_sources: set[tuple[str, str]] = set()
        self.tags: dict[tuple[str, str], Tag] = {}
        self.categories: dict[tuple[str, str], Category] = {}
        self.article_tags: set[tuple[str, str]] = set()
        self.article_categories: set[tuple[str, str]] = set()
        self.update_calls = 0

    def _next_id(self) -> str:
        return f"id-{next(self._ids)}"

    # ArticleRepository

    async def find_by_external_id(self, source_id, external_id):
        for article in self.articles.values():
            if article.source_id == source_id and article.external_id == external_id:
                return article
        return None

    async def create(self, source_id, external_id, canonical_url, title, summary,
                     thumbnail_url, cover_image_url, body_hash, published_at, journalist_id):
        if await self.find_by_external_id(source_id, external_id):
            raise ValueError("duplicate key value violates unique constraint")
        now = datetime.now(timezone.utc)
        article = Article(
            id=self._next_id(),
            source_id=source_id,
            external_id=external_id,
            canonical_url=canonical_url,
            title=title,
            summary=summary,
            thumbnail_url=thumbnail_url,
            cover_image_url=cover_image_url,
            body_hash=body_hash,
            published_at=published_at,
            journalist_id=journalist_id,
            created_at=now,
            updated_at=now,
        )
        self.articles[article.id] = article
        return article

    async def update(self, article_id, title, summary, thumbnail_url, cover_image_url,
                     journalist_id, body_hash=None):
        self.update_calls += 1
        article = self.articles[article_id]
        article.title = title
        article.summary = summary
        article.thumbnail_url = thumbnail_url
        article.cover_image_url = cover_image_url
        article.journalist_id = journalist_id
        if body_hash is not None:
            article.body_hash = body_hash
        article.updated_at = datetime.now(timezone.utc)
        return article

    async def create_version(self, article_id, title, summary, body):
        version = ArticleVersion(
            id=self._next_id(),
            article_id=article_id,
            title=title,
            summary=summary,
            body=body,
        )
        self.versions.append(version)
        return version

    async def list_versions(self, article_id):
        return [v for v in self.versions if v.article_id == article_id]

    async def link_tags(self, article_id, tag_ids):
        self.article_tags.update((article_id, t) for t in tag_ids)

    async def link_categories(self, article_id, category_ids):
        self.article_categories.update((article_id, c) for c in category_ids)

    # JournalistRepository

    async def ensure(self, name, profile_image_url, source_name, author_id, source_id):
        key = f"{source_name}_{author_id}"
        if key not in self.journalists:
            self.journalists[key] = Journalist(
                id=self._next_id(),
                name=name,
                source_unique_id=key,
                profile_image_url=profile_image_url,
            )
        journalist = self.journalists[key]
        self.journalist_sources.add((journalist.id, source_id))
        return journalist

    # TaxonomyRepository

    async def ensure_tags(self, names, source_id):
        return [self._term(self.tags, Tag, name, source_id) for name in names]

    async def ensure_categories(self, names, source_id):
        return [self._term(self.categories, Category, name, source_id) for name in names]

    def _term(self, table, cls, name, source_id):
        key = (source_id, name)
        if key not in table:
            table[key] = cls(id=self._next_id(), source_id=source_id, name=name)
        return table[key]


@pytest.fixture
def store() -> InMemoryArticleStore:
    return InMemoryArticleStore()
