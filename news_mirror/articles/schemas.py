"""Data models for stored articles, versions, journalists and taxonomy."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Article:
    """A mirrored article, unique per (source_id, external_id).

    body_hash always reflects the most recently stored body; the body
    itself lives only in ArticleVersion rows.
    """

    id: str
    source_id: str
    external_id: str
    canonical_url: str
    title: str
    body_hash: str
    published_at: datetime
    summary: str | None = None
    thumbnail_url: str | None = None
    cover_image_url: str | None = None
    journalist_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class ArticleVersion:
    """Immutable snapshot taken on first ingestion and on every body change."""

    id: str
    article_id: str
    title: str
    body: str
    summary: str | None = None
    created_at: datetime | None = None


@dataclass
class Journalist:
    """An author, keyed by "{source name}_{platform author id}"."""

    id: str
    name: str
    source_unique_id: str
    profile_image_url: str | None = None


@dataclass
class Tag:
    """A tag name scoped to one source."""

    id: str
    source_id: str
    name: str


@dataclass
class Category:
    """A category name scoped to one source."""

    id: str
    source_id: str
    name: str
