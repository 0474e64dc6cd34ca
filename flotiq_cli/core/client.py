"""
Core HTTP client for the Flotiq API.

Handles authentication, request/response, error classification.
"""

import json
import logging
import urllib.parse
from dataclasses import dataclass
from typing import Any

import httpx

from flotiq_cli.core.credentials import CredentialProvider, DotenvCredentialProvider
from flotiq_cli.core.errors import APIError, InvalidTokenError, TransportError
from flotiq_cli.core.messages import is_token_valid, parse_response_message

logger = logging.getLogger(__name__)

# Configuration
API_PREFIX = "/v1/"
CONTENT_TYPE_URL = f"{API_PREFIX}internal/contenttype"
CONTENT_URL = f"{API_PREFIX}content"
MEDIA_URL = "/media"
AUTH_HEADER = "X-AUTH-TOKEN"
DEFAULT_CONTENT_TYPE = "application/json"
MULTIPART_CONTENT_TYPE = "multipart/form-data"


# =============================================================================
# Transport
# =============================================================================


@dataclass
class TransportResponse:
    """Raw outcome of a single HTTP exchange."""

    status: int
    content: bytes = b""

    @property
    def ok(self) -> bool:
        return 0 < self.status < 400

    def json(self) -> Any:
        """Parse the body as JSON. An empty body parses to None."""
        if not self.content.strip():
            return None
        try:
            return json.loads(self.content)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TransportError(f"Invalid JSON response: {e}") from e


class HTTPTransport:
    """
    Performs single HTTP requests over an httpx.AsyncClient.

    Status codes are not interpreted here.
    """

    def __init__(self, http: httpx.AsyncClient | None = None, timeout: float | None = None):
        self._http = http
        self._owns_http = http is None
        self.timeout = timeout

    @property
    def http(self) -> httpx.AsyncClient:
        """Get or create the underlying HTTP session."""
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
            self._owns_http = True
        return self._http

    async def send(
        self,
        url: str,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        body: bytes | str | None = None,
    ) -> TransportResponse:
        """
        Send one request and return its status and raw body.

        Raises:
            TransportError: When the exchange cannot be completed

        """
        try:
            response = await self.http.request(method, url, headers=headers, content=body)
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as e:
            raise TransportError(f"Connection error: {str(e) or type(e).__name__}") from e
        return TransportResponse(status=response.status_code, content=response.content)

    async def aclose(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()


# =============================================================================
# API Client
# =============================================================================


class APIClient:
    """
    Low-level HTTP client for the Flotiq API.

    Handles:
    - Authentication via X-AUTH-TOKEN, read from the credential provider on every call
    - Read path (fetch_data): 404 becomes None
    - Write path (make_api_call): success is a plain True
    - Error classification into InvalidTokenError / APIError
    """

    def __init__(
        self,
        credentials: CredentialProvider | None = None,
        transport: HTTPTransport | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize the API client.

        Args:
            credentials: Credential provider (defaults to env vars + .env file)
            transport: HTTP transport (defaults to a fresh httpx-backed one)
            timeout: Request timeout in seconds; None disables it

        """
        self.credentials = credentials or DotenvCredentialProvider()
        self.transport = transport or HTTPTransport(timeout=timeout)

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.transport.aclose()

    @staticmethod
    def _build_url(base_url: str, path: str, params: dict[str, Any] | None = None) -> str:
        """Build full URL from base URL, path and query parameters."""
        url = path if path.startswith("http") else f"{base_url.rstrip('/')}{path}"
        if params:
            # Filter out None values and percent-encode (spaces as %20)
            filtered_params = {k: v for k, v in params.items() if v is not None}
            if filtered_params:
                query_string = urllib.parse.urlencode(filtered_params, safe="", quote_via=urllib.parse.quote)
                separator = "&" if "?" in url else "?"
                url = f"{url}{separator}{query_string}"
        return url

    def _classify(self, status: int, data: Any) -> APIError:
        """Turn an error response body into the matching exception."""
        message = parse_response_message(data)
        if not is_token_valid(message):
            logger.warning("API token rejected (status %s): %s", status, message)
            return InvalidTokenError("Invalid API token", status=status, details={"message": message})
        logger.debug("API error (status %s): %s", status, message)
        return APIError(message, status=status, details=data if isinstance(data, dict) else None)

    async def fetch_data(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """
        Make a GET request to the API.

        Args:
            path: API path (e.g., /v1/content/blogpost)
            params: Query parameters

        Returns:
            Parsed JSON response, or None when the backend answered 404

        Raises:
            InvalidTokenError: When the error message points at the token
            APIError: On any other error status or an empty body
            TransportError: On network failures or a malformed success body

        """
        creds = self.credentials.get()
        url = self._build_url(creds.base_url, path, params)
        logger.debug("GET %s", url)

        response = await self.transport.send(url, "GET", headers={AUTH_HEADER: creds.token})
        try:
            data = response.json()
        except TransportError:
            if response.ok:
                raise
            data = None

        if response.ok and data is not None:
            return data

        error = self._classify(response.status, data)
        if response.status == 404 and not isinstance(error, InvalidTokenError):
            return None
        raise error

    async def make_api_call(
        self,
        path: str,
        method: str,
        body: bytes | str | None = None,
        content_type: str | None = None,
    ) -> bool:
        """
        Make a write request (POST, PUT, DELETE) to the API.

        Args:
            path: API path
            method: HTTP method
            body: Pre-encoded request body
            content_type: Content-Type header override (JSON by default)

        Returns:
            True on any status below 400; the body is not read

        Raises:
            InvalidTokenError: When the error message points at the token
            APIError: On any other failure, including transport failures

        """
        creds = self.credentials.get()
        url = self._build_url(creds.base_url, path)
        headers = {
            AUTH_HEADER: creds.token,
            "Content-Type": content_type or DEFAULT_CONTENT_TYPE,
        }
        logger.debug("%s %s", method, url)

        try:
            response = await self.transport.send(url, method, headers=headers, body=body)
            if response.ok:
                return True
            data = response.json()
        except TransportError as e:
            raise APIError(e.message) from e

        raise self._classify(response.status, data)

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Make a GET request."""
        return await self.fetch_data(path, params)

    async def post(self, path: str, data: Any = None) -> bool:
        """Make a POST request with a JSON body."""
        return await self.make_api_call(path, "POST", _encode_json(data))

    async def put(self, path: str, data: Any = None) -> bool:
        """Make a PUT request with a JSON body."""
        return await self.make_api_call(path, "PUT", _encode_json(data))

    async def delete(self, path: str) -> bool:
        """Make a DELETE request."""
        return await self.make_api_call(path, "DELETE")


def _encode_json(data: Any) -> bytes | None:
    return json.dumps(data).encode("utf-8") if data is not None else None
