"""
Flotiq SDK - High-level client with nice ergonomics.

This layer provides a clean, typed interface for content operations.
Built on top of the core APIClient.
"""

import builtins
import logging
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import quote

from flotiq_cli.core.client import (
    CONTENT_TYPE_URL,
    CONTENT_URL,
    MEDIA_URL,
    MULTIPART_CONTENT_TYPE,
    APIClient,
    HTTPTransport,
)
from flotiq_cli.core.credentials import CredentialProvider, StaticCredentialProvider
from flotiq_cli.core.errors import NoDataError, ValidationError
from flotiq_cli.core.types import ContentObject, ContentType, Page, SearchQuery

logger = logging.getLogger(__name__)

CONTENT_TYPES_LIMIT = 200
SEARCH_LIMIT = 100


def content_path(content_type_name: str, object_id: str | None = None) -> str:
    """Build a content API path with each segment escaped, "/" included."""
    path = f"{CONTENT_URL}/{quote(content_type_name, safe='')}"
    if object_id is not None:
        path += f"/{quote(object_id, safe='')}"
    return path


class FlotiqClient:
    """
    High-level Flotiq API client with typed methods.

    Example:
        async with FlotiqClient() as client:
            types = await client.content_types.list()
            page = await client.objects.list("blogpost", page=2)
            hits = await client.search("blogpost", "hello")

    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        credentials: CredentialProvider | None = None,
        transport: HTTPTransport | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize the Flotiq client.

        Args:
            api_key: Flotiq API key (or FLOTIQ_API_KEY env var / .env file)
            base_url: API base URL (or FLOTIQ_API_URL)
            credentials: Custom credential provider; overrides api_key/base_url
            transport: Custom HTTP transport
            timeout: Request timeout in seconds; None disables it

        """
        if credentials is None and api_key:
            credentials = StaticCredentialProvider(api_key, base_url)
        self._client = APIClient(credentials=credentials, transport=transport, timeout=timeout)

        # Sub-clients for different domains
        self.content_types = ContentTypeOperations(self._client)
        self.objects = ContentObjectOperations(self._client)
        self.media = MediaOperations(self._client)

    async def __aenter__(self) -> "FlotiqClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def search(self, content_type_name: str, text: str) -> builtins.list[ContentObject]:
        """Search content objects of a type. See ContentObjectOperations.search."""
        return await self.objects.search(content_type_name, text)


# =============================================================================
# Content Type Operations
# =============================================================================


class ContentTypeOperations:
    """Operations for reading content type definitions."""

    def __init__(self, client: APIClient):
        self._client = client

    async def list(self) -> builtins.list[ContentType]:
        """
        List content type definitions (a single page of up to 200).

        Raises:
            NoDataError: If the backend returned no content types

        """
        result = await self._client.get(CONTENT_TYPE_URL, {"limit": CONTENT_TYPES_LIMIT})
        if not result or not result.get("data"):
            raise NoDataError("Missing data!")
        return [ContentType.from_dict(item) for item in result["data"]]

    async def get(self, name: str) -> ContentType:
        """Get a content type definition by name."""
        for content_type in await self.list():
            if content_type.name == name:
                return content_type
        raise NoDataError(f"Content type '{name}' not found")


# =============================================================================
# Content Object Operations
# =============================================================================


class ContentObjectOperations:
    """Operations for managing content objects."""

    def __init__(self, client: APIClient):
        self._client = client

    async def list(self, content_type_name: str, page: int = 1) -> Page[ContentObject]:
        """
        List one page of content objects.

        Args:
            content_type_name: The content type name
            page: Page number, starting at 1

        Returns:
            Page with next_page set when more pages follow

        Raises:
            NoDataError: If the response or its data is absent

        """
        if page < 1:
            raise ValidationError(f"Page number must be 1 or greater, got {page}")

        result = await self._client.get(content_path(content_type_name), {"page": page})
        if not result or result.get("data") is None:
            raise NoDataError(f"Missing data for {content_type_name}!")

        total_pages = result.get("total_pages") or 0
        data = [ContentObject.from_dict(item) for item in result["data"]]
        return Page(
            data=data,
            total_pages=total_pages,
            current_page=page,
            total_count=result.get("total_count", len(data)),
            next_page=Page.next_page_for(page, total_pages),
        )

    async def iterate(self, content_type_name: str) -> AsyncIterator[ContentObject]:
        """
        Iterate through all content objects of a type.

        Yields:
            ContentObject instances, page by page

        """
        page_number: int | None = 1
        while page_number is not None:
            page = await self.list(content_type_name, page=page_number)
            for item in page.data:
                yield item
            page_number = page.next_page

    async def list_all(self, content_type_name: str) -> builtins.list[ContentObject]:
        """List all content objects of a type across every page."""
        return [item async for item in self.iterate(content_type_name)]

    async def get(self, content_type_name: str, object_id: str) -> ContentObject:
        """
        Get a content object with related objects hydrated one level.

        Raises:
            NoDataError: If the object does not exist

        """
        result = await self._client.get(
            content_path(content_type_name, object_id),
            {"hydrate": 1},
        )
        if not result:
            raise NoDataError(f"Missing data for {object_id}!")
        return ContentObject.from_dict(result)

    async def search(self, content_type_name: str, text: str) -> builtins.list[ContentObject]:
        """
        Search content objects containing the text in any field.

        Args:
            content_type_name: The content type name
            text: Search text; surrounding whitespace is ignored

        Returns:
            Up to 100 matches; an empty list when nothing matched

        """
        query = SearchQuery(content_type_name, text)
        result = await self._client.get(
            content_path(content_type_name),
            {"filters": query.filter_expression, "limit": SEARCH_LIMIT},
        )
        if not result or not result.get("data"):
            logger.debug("No results for %r in %s", query.text, content_type_name)
            return []
        return [ContentObject.from_dict(item) for item in result["data"]]

    async def create(self, content_type_name: str, body: dict[str, Any]) -> bool:
        """
        Create a content object.

        Args:
            content_type_name: The content type name
            body: Field values (including the id, when the type requires one)

        Returns:
            True on success

        Raises:
            ValidationError: If the type name or body is empty; nothing is sent

        """
        if not content_type_name or not body:
            raise ValidationError("Missing data!")
        return await self._client.post(content_path(content_type_name), body)

    async def update(self, content_type_name: str, object_id: str, body: dict[str, Any]) -> bool:
        """
        Update a content object.

        Returns:
            True on success

        """
        return await self._client.put(content_path(content_type_name, object_id), body)

    async def delete(self, content_type_name: str, object_id: str) -> bool:
        """
        Delete a content object.

        Returns:
            True on success

        """
        return await self._client.delete(content_path(content_type_name, object_id))


# =============================================================================
# Media Operations
# =============================================================================


class MediaOperations:
    """Operations for uploading media files."""

    def __init__(self, client: APIClient):
        self._client = client

    async def upload(self, payload: bytes, content_type: str = MULTIPART_CONTENT_TYPE) -> bool:
        """
        Upload a media file.

        Args:
            payload: Pre-encoded multipart body
            content_type: Content-Type of the payload, including its boundary

        Returns:
            True on success

        """
        if not payload:
            raise ValidationError("Missing data!")
        return await self._client.make_api_call(MEDIA_URL, "POST", payload, content_type)
