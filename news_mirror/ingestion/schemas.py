"""
Canonical article schema produced by every source adapter.

All platform adapters MUST output RemoteArticle. The ingestion pipeline
(fingerprinting, versioning, taxonomy resolution) depends on these field
names and on published_at being timezone-aware.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class ApiType(str, Enum):
    """Supported remote publishing APIs. Adapters are registered per value."""

    WORDPRESS = "wordpress"


class Author(BaseModel):
    """Author as reported by a platform's secondary user lookup."""

    id: str
    name: str
    profile_image_url: str | None = None

    @classmethod
    def unknown(cls) -> "Author":
        """Placeholder used when the platform cannot name the author."""
        return cls(id="0", name="Unknown")


class RemoteArticle(BaseModel):
    """
    CANONICAL ARTICLE SCHEMA

    One normalized item from a remote listing, before persistence.
    (source_id, external_id) identifies the stored article.
    """

    # Identity
    external_id: str = Field(..., min_length=1, description="Platform-native article id")
    canonical_url: str = Field(..., description="Public URL of the article")

    # Content
    title: str
    summary: str | None = None
    body: str = Field(..., description="Article body as served by the platform")
    published_at: datetime = Field(..., description="Publish time on the platform")

    # Media
    thumbnail_url: str | None = None
    cover_image_url: str | None = None

    # Author
    author_name: str = "Unknown"
    author_id: str = "0"
    author_profile_image_url: str | None = None

    # Taxonomy (names, source-scoped)
    tags: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)

    @field_validator("published_at")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC so cursor comparisons never mix kinds."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("tags", "categories")
    @classmethod
    def normalize_names(cls, v: list[str]) -> list[str]:
        """Drop blanks and duplicates, keeping first-seen order."""
        normalized: list[str] = []
        for name in v:
            name = name.strip()
            if name and name not in normalized:
                normalized.append(name)
        return normalized
