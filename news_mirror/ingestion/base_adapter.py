"""
Base adapter interface for remote publishing platforms.

Each platform adapter translates the platform's paginated listing into
RemoteArticle instances. Pages are expected newest-first; the sync runner
relies on that ordering for its watermark stop.

Normalization prefers data embedded in the listing response and only
falls back to the per-id resolvers (fetch_tag_by_id and friends) when the
embedded data is absent.
"""

from abc import ABC, abstractmethod

from news_mirror.ingestion.http_client import HTTPClient
from news_mirror.ingestion.schemas import ApiType, Author, RemoteArticle
from news_mirror.sources.schemas import Source


class AdapterError(Exception):
    """The platform answered in a way the adapter cannot read (run-level failure)."""


class SourceAdapter(ABC):
    """
    Abstract base class for platform adapters.

    Subclasses must implement:
        - api_type: ApiType enum value
        - fetch_page(): one page of normalized articles, newest first
        - fetch_tag_by_id() / fetch_category_by_id() / fetch_author_by_id():
          secondary resolvers for listings without embedded metadata

    Optional:
        - has_more(): pagination predicate (default: last page non-empty)
        - fetch_by_url(): single-article lookup (default: unsupported)
    """

    def __init__(self, source: Source, http_client: HTTPClient, page_size: int = 10):
        """
        Initialize adapter.

        Args:
            source: Source being mirrored (provides base_url)
            http_client: Shared retrying HTTP client
            page_size: Articles requested per listing page
        """
        self.source = source
        self._http = http_client
        self.page_size = page_size

    @property
    @abstractmethod
    def api_type(self) -> ApiType:
        """Return the API this adapter speaks."""
        ...

    @property
    def name(self) -> str:
        """Human-readable adapter name."""
        return f"{self.api_type.value}_adapter[{self.source.name}]"

    @abstractmethod
    async def fetch_page(self, page: int) -> list[RemoteArticle]:
        """
        Fetch one listing page (1-indexed), newest first.

        An empty list means there is nothing more to read.
        """
        ...

    @abstractmethod
    async def fetch_tag_by_id(self, tag_ids: list[int]) -> list[str]:
        """Resolve tag ids to names. Unresolvable ids are dropped."""
        ...

    @abstractmethod
    async def fetch_category_by_id(self, category_ids: list[int]) -> list[str]:
        """Resolve category ids to names. Unresolvable ids are dropped."""
        ...

    @abstractmethod
    async def fetch_author_by_id(self, author_id: int) -> Author:
        """Resolve an author id. Returns Author.unknown() when unavailable."""
        ...

    def has_more(self, page: int, last_batch_size: int) -> bool:
        """Whether another page may exist after `page`."""
        return last_batch_size > 0

    async def fetch_by_url(self, url: str) -> RemoteArticle | None:
        """Fetch a single article by its public URL, if the platform allows it."""
        return None
