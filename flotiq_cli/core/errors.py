"""
Error taxonomy for the Flotiq client.

Every failure is raised to the immediate caller; only the CLI catches them.
"""

from typing import Any


class CLIError(Exception):
    """Base error class for CLI errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result: dict[str, Any] = {"error": self.message}
        if self.details:
            result["details"] = self.details
        return result


class APIError(CLIError):
    """API error with status code and message."""

    def __init__(self, message: str, status: int = 0, details: dict | None = None):
        super().__init__(message, details)
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result = super().to_dict()
        if self.status:
            result["status"] = self.status
        return result


class InvalidTokenError(APIError):
    """The backend rejected the API token."""


class NoDataError(APIError):
    """A valid response that carried no usable data."""


class ValidationError(CLIError):
    """Validation error for local input/data issues (not API errors)."""


class MissingCredentialsError(CLIError):
    """No API token is available."""


class TransportError(CLIError):
    """The HTTP exchange could not be completed or its body could not be parsed."""
