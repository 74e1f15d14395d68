"""
Repositories for articles, versions, journalists and source-scoped taxonomy.

Every keyed write is an upsert on the natural key, so repeating a call
with the same inputs returns the existing row instead of duplicating it.
The no-op `DO UPDATE SET col = EXCLUDED.col` form is used where the
caller needs the row back, since `DO NOTHING` returns nothing on conflict.
"""

import logging

from news_mirror.articles.schemas import (
    Article,
    ArticleVersion,
    Category,
    Journalist,
    Tag,
)
from news_mirror.storage.database import Database

logger = logging.getLogger(__name__)

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS journalists (
    id                 UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    name               TEXT NOT NULL,
    profile_image_url  TEXT,
    source_unique_id   TEXT NOT NULL UNIQUE,
    created_at         TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS journalist_sources (
    journalist_id  UUID NOT NULL REFERENCES journalists(id),
    source_id      UUID NOT NULL REFERENCES sources(id),
    PRIMARY KEY (journalist_id, source_id)
);

CREATE TABLE IF NOT EXISTS articles (
    id               UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    source_id        UUID NOT NULL REFERENCES sources(id),
    external_id      TEXT NOT NULL,
    canonical_url    TEXT NOT NULL,
    title            TEXT NOT NULL,
    summary          TEXT,
    thumbnail_url    TEXT,
    cover_image_url  TEXT,
    body_hash        TEXT NOT NULL,
    published_at     TIMESTAMPTZ NOT NULL,
    journalist_id    UUID REFERENCES journalists(id),
    created_at       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at       TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    UNIQUE (source_id, external_id)
);

CREATE INDEX IF NOT EXISTS idx_articles_published
    ON articles(source_id, published_at DESC);

CREATE TABLE IF NOT EXISTS article_versions (
    id          UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    article_id  UUID NOT NULL REFERENCES articles(id),
    title       TEXT NOT NULL,
    summary     TEXT,
    body        TEXT NOT NULL,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_article_versions_article
    ON article_versions(article_id, created_at);

CREATE TABLE IF NOT EXISTS tags (
    id         UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    source_id  UUID NOT NULL REFERENCES sources(id),
    name       TEXT NOT NULL,
    UNIQUE (source_id, name)
);

CREATE TABLE IF NOT EXISTS categories (
    id         UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    source_id  UUID NOT NULL REFERENCES sources(id),
    name       TEXT NOT NULL,
    UNIQUE (source_id, name)
);

CREATE TABLE IF NOT EXISTS article_tags (
    article_id  UUID NOT NULL REFERENCES articles(id),
    tag_id      UUID NOT NULL REFERENCES tags(id),
    PRIMARY KEY (article_id, tag_id)
);

CREATE TABLE IF NOT EXISTS article_categories (
    article_id   UUID NOT NULL REFERENCES articles(id),
    category_id  UUID NOT NULL REFERENCES categories(id),
    PRIMARY KEY (article_id, category_id)
);
"""

_INSERT_ARTICLE_SQL = """
INSERT INTO articles (
    source_id, external_id, canonical_url, title, summary,
    thumbnail_url, cover_image_url, body_hash, published_at, journalist_id
)
VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
RETURNING *
"""

_UPDATE_ARTICLE_SQL = """
UPDATE articles SET
    title = $2,
    summary = $3,
    thumbnail_url = $4,
    cover_image_url = $5,
    journalist_id = $6,
    body_hash = COALESCE($7, body_hash),
    updated_at = NOW()
WHERE id = $1
RETURNING *
"""

_INSERT_VERSION_SQL = """
INSERT INTO article_versions (article_id, title, summary, body)
VALUES ($1, $2, $3, $4)
RETURNING *
"""

_UPSERT_JOURNALIST_SQL = """
INSERT INTO journalists (name, profile_image_url, source_unique_id)
VALUES ($1, $2, $3)
ON CONFLICT (source_unique_id) DO UPDATE SET
    source_unique_id = EXCLUDED.source_unique_id
RETURNING *
"""

_LINK_JOURNALIST_SQL = """
INSERT INTO journalist_sources (journalist_id, source_id)
VALUES ($1, $2)
ON CONFLICT (journalist_id, source_id) DO NOTHING
"""

# {table} is one of the two taxonomy tables, never user input.
_UPSERT_TERMS_SQL = """
INSERT INTO {table} (source_id, name)
SELECT $1, name FROM unnest($2::text[]) AS name
ON CONFLICT (source_id, name) DO UPDATE SET name = EXCLUDED.name
RETURNING *
"""

_LINK_TAGS_SQL = """
INSERT INTO article_tags (article_id, tag_id)
SELECT $1, tag_id FROM unnest($2::uuid[]) AS tag_id
ON CONFLICT (article_id, tag_id) DO NOTHING
"""

_LINK_CATEGORIES_SQL = """
INSERT INTO article_categories (article_id, category_id)
SELECT $1, category_id FROM unnest($2::uuid[]) AS category_id
ON CONFLICT (article_id, category_id) DO NOTHING
"""


def _record_to_article(record) -> Article:
    """Convert an asyncpg Record to an Article dataclass."""
    journalist_id = record["journalist_id"]
    return Article(
        id=str(record["id"]),
        source_id=str(record["source_id"]),
        external_id=record["external_id"],
        canonical_url=record["canonical_url"],
        title=record["title"],
        summary=record["summary"],
        thumbnail_url=record["thumbnail_url"],
        cover_image_url=record["cover_image_url"],
        body_hash=record["body_hash"],
        published_at=record["published_at"],
        journalist_id=str(journalist_id) if journalist_id else None,
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


def _record_to_version(record) -> ArticleVersion:
    return ArticleVersion(
        id=str(record["id"]),
        article_id=str(record["article_id"]),
        title=record["title"],
        summary=record["summary"],
        body=record["body"],
        created_at=record["created_at"],
    )


class ArticleRepository:
    """Articles, their version history and their taxonomy links."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_tables(self) -> None:
        """Create article, journalist and taxonomy tables (idempotent).

        Requires the sources table to exist.
        """
        await self._db.execute(_CREATE_TABLES_SQL)
        logger.info("Article tables ensured")

    async def find_by_external_id(self, source_id: str, external_id: str) -> Article | None:
        """Look an article up by its source-scoped natural key."""
        row = await self._db.fetchrow(
            "SELECT * FROM articles WHERE source_id = $1 AND external_id = $2",
            source_id,
            external_id,
        )
        return _record_to_article(row) if row else None

    async def create(
        self,
        source_id: str,
        external_id: str,
        canonical_url: str,
        title: str,
        summary: str | None,
        thumbnail_url: str | None,
        cover_image_url: str | None,
        body_hash: str,
        published_at,
        journalist_id: str | None,
    ) -> Article:
        """Insert a new article. The (source_id, external_id) constraint rejects duplicates."""
        row = await self._db.fetchrow(
            _INSERT_ARTICLE_SQL,
            source_id,
            external_id,
            canonical_url,
            title,
            summary,
            thumbnail_url,
            cover_image_url,
            body_hash,
            published_at,
            journalist_id,
        )
        return _record_to_article(row)

    async def update(
        self,
        article_id: str,
        title: str,
        summary: str | None,
        thumbnail_url: str | None,
        cover_image_url: str | None,
        journalist_id: str | None,
        body_hash: str | None = None,
    ) -> Article:
        """Update mutable fields. body_hash is left untouched when None."""
        row = await self._db.fetchrow(
            _UPDATE_ARTICLE_SQL,
            article_id,
            title,
            summary,
            thumbnail_url,
            cover_image_url,
            journalist_id,
            body_hash,
        )
        return _record_to_article(row)

    async def create_version(
        self,
        article_id: str,
        title: str,
        summary: str | None,
        body: str,
    ) -> ArticleVersion:
        """Append a content snapshot."""
        row = await self._db.fetchrow(_INSERT_VERSION_SQL, article_id, title, summary, body)
        return _record_to_version(row)

    async def list_versions(self, article_id: str) -> list[ArticleVersion]:
        """Version history, oldest first."""
        rows = await self._db.fetch(
            "SELECT * FROM article_versions WHERE article_id = $1 ORDER BY created_at",
            article_id,
        )
        return [_record_to_version(r) for r in rows]

    async def link_tags(self, article_id: str, tag_ids: list[str]) -> None:
        if tag_ids:
            await self._db.execute(_LINK_TAGS_SQL, article_id, tag_ids)

    async def link_categories(self, article_id: str, category_ids: list[str]) -> None:
        if category_ids:
            await self._db.execute(_LINK_CATEGORIES_SQL, article_id, category_ids)


class JournalistRepository:
    """Journalists shared across sources, plus the sources they appear in."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def ensure(
        self,
        name: str,
        profile_image_url: str | None,
        source_name: str,
        author_id: str,
        source_id: str,
    ) -> Journalist:
        """
        Upsert a journalist by "{source_name}_{author_id}" and link it to the source.

        An existing journalist keeps its stored name and avatar.
        """
        source_unique_id = f"{source_name}_{author_id}"
        row = await self._db.fetchrow(
            _UPSERT_JOURNALIST_SQL,
            name,
            profile_image_url,
            source_unique_id,
        )
        await self._db.execute(_LINK_JOURNALIST_SQL, row["id"], source_id)

        return Journalist(
            id=str(row["id"]),
            name=row["name"],
            source_unique_id=row["source_unique_id"],
            profile_image_url=row["profile_image_url"],
        )


class TaxonomyRepository:
    """Source-scoped tags and categories. Names are never merged across sources."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def ensure_tags(self, names: list[str], source_id: str) -> list[Tag]:
        rows = await self._upsert_terms("tags", names, source_id)
        return [Tag(id=str(r["id"]), source_id=str(r["source_id"]), name=r["name"]) for r in rows]

    async def ensure_categories(self, names: list[str], source_id: str) -> list[Category]:
        rows = await self._upsert_terms("categories", names, source_id)
        return [
            Category(id=str(r["id"]), source_id=str(r["source_id"]), name=r["name"])
            for r in rows
        ]

    async def _upsert_terms(self, table: str, names: list[str], source_id: str) -> list:
        # A repeated name in one statement would hit the same row twice.
        unique_names = list(dict.fromkeys(names))
        if not unique_names:
            return []
        return await self._db.fetch(
            _UPSERT_TERMS_SQL.format(table=table),
            source_id,
            unique_names,
        )
