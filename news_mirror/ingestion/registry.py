"""
Adapter registry: the closed set of supported platform APIs.

Adding a platform means adding an ApiType member and registering its
adapter class here. Anything else fails at construction time.
"""

from news_mirror.ingestion.base_adapter import SourceAdapter
from news_mirror.ingestion.http_client import HTTPClient
from news_mirror.ingestion.schemas import ApiType
from news_mirror.ingestion.wordpress_adapter import WordPressAdapter
from news_mirror.sources.schemas import Source

ADAPTER_REGISTRY: dict[ApiType, type[SourceAdapter]] = {
    ApiType.WORDPRESS: WordPressAdapter,
}


class UnsupportedApiTypeError(ValueError):
    """Raised when a source names an API type with no registered adapter."""

    def __init__(self, api_type: str):
        super().__init__(f"Unsupported API type: {api_type}")
        self.api_type = api_type


def create_adapter(
    source: Source,
    http_client: HTTPClient,
    page_size: int = 10,
) -> SourceAdapter:
    """
    Build the adapter for a source.

    Raises:
        UnsupportedApiTypeError: If source.api_type is unknown or unregistered
    """
    try:
        api_type = ApiType(source.api_type)
    except ValueError:
        raise UnsupportedApiTypeError(source.api_type) from None

    adapter_cls = ADAPTER_REGISTRY.get(api_type)
    if adapter_cls is None:
        raise UnsupportedApiTypeError(source.api_type)

    return adapter_cls(source, http_client, page_size=page_size)
