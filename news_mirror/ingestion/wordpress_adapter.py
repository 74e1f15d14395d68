"""
WordPress REST API adapter.

Reads /wp-json/wp/v2/posts newest-first with `_embed` so that featured
media, authors and terms usually arrive inline. Field resolution order:

- cover image: embedded featured media (full) -> Yoast og:image
- thumbnail: embedded featured media (thumbnail, then medium) -> Yoast og:image
- tags / categories: Yoast JSON-LD Article node -> embedded wp:term ->
  /tags/{id} and /categories/{id}
- author: embedded author -> Yoast author name -> /users/{id}

The per-id endpoints are only hit when nothing embedded is usable, which
keeps a page to a single request on sites running Yoast SEO.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlparse

from pydantic import ValidationError

from news_mirror.ingestion.base_adapter import AdapterError, SourceAdapter
from news_mirror.ingestion.http_client import FetchError
from news_mirror.ingestion.schemas import ApiType, Author, RemoteArticle

logger = logging.getLogger(__name__)

API_PREFIX = "/wp-json/wp/v2"
AVATAR_SIZE = "96"

# WordPress answers 400 rest_post_invalid_page_number past the last page.
_PAST_LAST_PAGE_STATUS = 400


def _parse_wp_timestamp(post: dict[str, Any]) -> datetime:
    """Parse date_gmt (UTC), falling back to the site-local date."""
    if post.get("date_gmt"):
        return datetime.fromisoformat(post["date_gmt"]).replace(tzinfo=timezone.utc)
    value = datetime.fromisoformat(post["date"])
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _rendered(field: Any) -> str | None:
    """Extract the `rendered` member WordPress wraps text fields in."""
    if isinstance(field, dict):
        return field.get("rendered")
    return field


def _dicts(value: Any) -> list[dict[str, Any]]:
    """Dict entries of a list; WordPress embeds error objects where a link failed."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _as_name_list(value: Any) -> list[str]:
    """Yoast emits keywords/articleSection as a list or a comma-joined string."""
    if not value:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",")]
    return [str(part) for part in value]


class WordPressAdapter(SourceAdapter):
    """
    WordPress adapter.

    Works against any WordPress site with the REST API enabled; no
    authentication is used, only published posts are visible.
    """

    @property
    def api_type(self) -> ApiType:
        return ApiType.WORDPRESS

    def _url(self, path: str) -> str:
        return f"{self.source.base_url.rstrip('/')}{API_PREFIX}{path}"

    async def fetch_page(self, page: int) -> list[RemoteArticle]:
        """Fetch one page of posts, newest first."""
        response = await self._http.fetch(
            self._url("/posts"),
            params={
                "_embed": "1",
                "per_page": self.page_size,
                "page": page,
                "orderby": "date",
                "order": "desc",
            },
        )

        if response.status_code == _PAST_LAST_PAGE_STATUS:
            logger.debug(f"{self.name}: page {page} is past the last page")
            return []
        if response.status_code >= 400:
            raise AdapterError(
                f"{self.name}: posts listing returned status {response.status_code}"
            )

        posts = response.json()
        if not isinstance(posts, list):
            raise AdapterError(f"{self.name}: posts listing is not a JSON array")

        articles = await asyncio.gather(*(self._normalize(post) for post in posts))
        return [a for a in articles if a is not None]

    async def fetch_by_url(self, url: str) -> RemoteArticle | None:
        """Look a post up by the slug at the end of its public URL."""
        slug = next(
            (segment for segment in reversed(urlparse(url).path.split("/")) if segment),
            None,
        )
        if slug is None:
            return None

        posts = await self._http.get_json(
            self._url("/posts"),
            params={"slug": slug, "_embed": "1"},
        )
        if not posts:
            return None
        return await self._normalize(posts[0])

    async def fetch_tag_by_id(self, tag_ids: list[int]) -> list[str]:
        return await self._fetch_term_names("/tags", tag_ids)

    async def fetch_category_by_id(self, category_ids: list[int]) -> list[str]:
        return await self._fetch_term_names("/categories", category_ids)

    async def fetch_author_by_id(self, author_id: int) -> Author:
        try:
            user = await self._http.get_json(self._url(f"/users/{author_id}"))
        except FetchError as e:
            logger.warning(f"{self.name}: author {author_id} lookup failed: {e}")
            return Author.unknown()

        if not user:
            return Author.unknown()

        return Author(
            id=str(user["id"]),
            name=user.get("name") or "Unknown",
            profile_image_url=(user.get("avatar_urls") or {}).get(AVATAR_SIZE),
        )

    async def _fetch_term_names(self, path: str, term_ids: list[int]) -> list[str]:
        """Resolve term ids one by one; a missing id contributes nothing."""
        names: list[str] = []
        for term_id in term_ids:
            try:
                term = await self._http.get_json(self._url(f"{path}/{term_id}"))
            except FetchError as e:
                logger.warning(f"{self.name}: {path}/{term_id} lookup failed: {e}")
                continue
            if term and term.get("name"):
                names.append(term["name"])
        return names

    async def _normalize(self, post: dict[str, Any]) -> RemoteArticle | None:
        """Transform a WordPress post into a RemoteArticle, or None if malformed."""
        try:
            embedded = post.get("_embedded") or {}
            yoast = post.get("yoast_head_json")
            if not isinstance(yoast, dict):
                yoast = None

            cover_image_url, thumbnail_url = self._extract_images(embedded, yoast)
            tags, categories = await self._resolve_taxonomy(post, embedded, yoast)
            author = await self._resolve_author(post, embedded, yoast)

            return RemoteArticle(
                external_id=str(post["id"]),
                canonical_url=post["link"],
                title=_rendered(post.get("title")) or "",
                summary=_rendered(post.get("excerpt")),
                body=_rendered(post.get("content")) or "",
                published_at=_parse_wp_timestamp(post),
                thumbnail_url=thumbnail_url,
                cover_image_url=cover_image_url,
                author_name=author.name,
                author_id=author.id,
                author_profile_image_url=author.profile_image_url,
                tags=tags,
                categories=categories,
            )
        except (AttributeError, KeyError, TypeError, ValueError, ValidationError) as e:
            logger.error(
                f"{self.name}: skipping malformed post {post.get('id')!r}: {e}"
            )
            return None

    def _extract_images(
        self,
        embedded: dict[str, Any],
        yoast: dict[str, Any] | None,
    ) -> tuple[str | None, str | None]:
        media = next(iter(_dicts(embedded.get("wp:featuredmedia"))), {})
        sizes = (media.get("media_details") or {}).get("sizes") or {}

        og_images = _dicts((yoast or {}).get("og_image"))
        og_image = og_images[0].get("url") if og_images else None

        def size_url(name: str) -> str | None:
            return (sizes.get(name) or {}).get("source_url")

        cover = size_url("full") or og_image
        thumbnail = size_url("thumbnail") or size_url("medium") or og_image
        return cover, thumbnail

    async def _resolve_taxonomy(
        self,
        post: dict[str, Any],
        embedded: dict[str, Any],
        yoast: dict[str, Any] | None,
    ) -> tuple[list[str], list[str]]:
        tags: list[str] = []
        categories: list[str] = []

        if yoast is not None:
            schema = yoast.get("schema")
            graph = schema.get("@graph") if isinstance(schema, dict) else None
            for node in _dicts(graph):
                node_type = node.get("@type")
                types = node_type if isinstance(node_type, list) else [node_type]
                if "Article" in types:
                    tags = _as_name_list(node.get("keywords"))
                    categories = _as_name_list(node.get("articleSection"))
                    break

        if not tags or not categories:
            embedded_tags, embedded_categories = [], []
            for group in embedded.get("wp:term") or []:
                for term in _dicts(group):
                    if term.get("taxonomy") == "post_tag":
                        embedded_tags.append(term["name"])
                    elif term.get("taxonomy") == "category":
                        embedded_categories.append(term["name"])
            tags = tags or embedded_tags
            categories = categories or embedded_categories

        if not tags and post.get("tags"):
            tags = await self.fetch_tag_by_id(post["tags"])
        if not categories and post.get("categories"):
            categories = await self.fetch_category_by_id(post["categories"])

        return tags, categories

    async def _resolve_author(
        self,
        post: dict[str, Any],
        embedded: dict[str, Any],
        yoast: dict[str, Any] | None,
    ) -> Author:
        author_id = post.get("author")

        embedded_author = next(iter(_dicts(embedded.get("author"))), {})
        if embedded_author.get("name") and embedded_author.get("id") is not None:
            return Author(
                id=str(embedded_author["id"]),
                name=embedded_author["name"],
                profile_image_url=(embedded_author.get("avatar_urls") or {}).get(AVATAR_SIZE),
            )

        if yoast is not None and yoast.get("author"):
            return Author(id=str(author_id or 0), name=yoast["author"])

        if author_id:
            return await self.fetch_author_by_id(author_id)

        return Author.unknown()
