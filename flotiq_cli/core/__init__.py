"""
Core layer - Raw types and HTTP client.

This layer provides:
- Typed dataclasses for Flotiq payloads
- Credential providers
- Low-level HTTP client with auth and error classification
"""

from flotiq_cli.core.client import APIClient, HTTPTransport, TransportResponse
from flotiq_cli.core.credentials import (
    CredentialProvider,
    DotenvCredentialProvider,
    StaticCredentialProvider,
)
from flotiq_cli.core.errors import (
    APIError,
    CLIError,
    InvalidTokenError,
    MissingCredentialsError,
    NoDataError,
    TransportError,
    ValidationError,
)
from flotiq_cli.core.types import (
    ContentObject,
    ContentType,
    Credentials,
    FieldValue,
    Page,
    SearchQuery,
)

__all__ = [
    "APIClient",
    "APIError",
    "CLIError",
    "ContentObject",
    "ContentType",
    "CredentialProvider",
    "Credentials",
    "DotenvCredentialProvider",
    "FieldValue",
    "HTTPTransport",
    "InvalidTokenError",
    "MissingCredentialsError",
    "NoDataError",
    "Page",
    "SearchQuery",
    "StaticCredentialProvider",
    "TransportError",
    "TransportResponse",
    "ValidationError",
]
