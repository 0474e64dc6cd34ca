"""
Core types for Flotiq API payloads.

These dataclasses provide type safety and IDE support for API responses.
Content object fields are defined per content type on the backend, so they
are kept as a plain mapping rather than fixed attributes.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

# Field values of a content object: scalars, lists and nested objects
FieldValue = str | int | float | bool | None | list["FieldValue"] | dict[str, "FieldValue"]

# =============================================================================
# Credentials
# =============================================================================


@dataclass(frozen=True)
class Credentials:
    """API token and the base URL it belongs to."""

    token: str
    base_url: str

    def __repr__(self) -> str:
        return f"Credentials(token='***', base_url={self.base_url!r})"


# =============================================================================
# Pagination
# =============================================================================


T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of a paginated listing. Pages are 1-indexed."""

    data: list[T]
    total_pages: int = 1
    current_page: int = 1
    total_count: int = 0
    next_page: int | None = None

    @property
    def has_more(self) -> bool:
        """Check if there are more results."""
        return self.next_page is not None

    @staticmethod
    def next_page_for(current_page: int, total_pages: int) -> int | None:
        """The following page number, or None when current_page is the last one."""
        return current_page + 1 if total_pages >= current_page + 1 else None


# =============================================================================
# Content Types
# =============================================================================


@dataclass
class ContentType:
    """A content type definition (the schema of a class of content objects)."""

    id: str
    name: str
    label: str = ""
    internal: bool = False
    schema_definition: dict[str, Any] = field(default_factory=dict)
    meta_definition: dict[str, Any] = field(default_factory=dict)
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def properties(self) -> list[str]:
        """Names of the fields this content type defines."""
        props = (self.schema_definition.get("allOf") or [{}, {}])[-1].get("properties")
        if isinstance(props, dict):
            return list(props)
        return list(self.meta_definition.get("propertiesConfig") or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContentType":
        """Create from API response dict."""
        return cls(
            id=data.get("id") or data.get("name") or "",
            name=data.get("name") or "",
            label=data.get("label") or "",
            internal=bool(data.get("internal", False)),
            schema_definition=data.get("schemaDefinition") or {},
            meta_definition=data.get("metaDefinition") or {},
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )


# =============================================================================
# Content Objects
# =============================================================================


@dataclass
class ContentObject:
    """An instance of a content type."""

    id: str
    fields: dict[str, FieldValue] = field(default_factory=dict)
    internal: dict[str, Any] = field(default_factory=dict)

    @property
    def content_type(self) -> str | None:
        """Name of the content type, from the backend's internal metadata."""
        return self.internal.get("contentType")

    def get(self, name: str, default: FieldValue = None) -> FieldValue:
        """Get a field value by name."""
        return self.fields.get(name, default)

    def title(self, candidates: tuple[str, ...] = ("title", "name", "slug")) -> str:
        """Best-effort display title."""
        for name in candidates:
            value = self.fields.get(name)
            if isinstance(value, str) and value:
                return value
        return self.id

    def to_dict(self) -> dict[str, Any]:
        """Convert to the request body shape (id plus fields)."""
        return {"id": self.id, **self.fields}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContentObject":
        """Create from API response dict."""
        fields = {k: v for k, v in data.items() if k not in ("id", "internal")}
        return cls(
            id=str(data.get("id", "")),
            fields=fields,
            internal=data.get("internal") or {},
        )


# =============================================================================
# Search
# =============================================================================


@dataclass(frozen=True)
class SearchQuery:
    """A single wildcard "contains" search over all fields of a content type."""

    content_type_name: str
    raw_text: str

    @property
    def text(self) -> str:
        """The search text as sent: trimmed, case kept."""
        return self.raw_text.strip()

    @property
    def filter_expression(self) -> str:
        """The backend filter, JSON-encoded."""
        return json.dumps({"*": {"type": "contains", "filter": self.text}}, separators=(",", ":"))

    @property
    def cache_key(self) -> tuple[str, str]:
        return (self.content_type_name, self.text)
