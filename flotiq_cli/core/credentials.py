"""
Credential providers.

The API token and base URL live in an external key-value store. They are read
on every request and never cached by the client.
"""

import logging
import os
from pathlib import Path
from typing import Protocol

from dotenv import dotenv_values, set_key, unset_key

from flotiq_cli.core.errors import MissingCredentialsError
from flotiq_cli.core.types import Credentials

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.flotiq.com/api"

# Fixed keys in the key-value store
API_KEY_ENV = "FLOTIQ_API_KEY"
API_URL_ENV = "FLOTIQ_API_URL"
ENV_FILE_ENV = "FLOTIQ_ENV_FILE"


class CredentialProvider(Protocol):
    def get(self) -> Credentials: ...


def default_env_file() -> Path:
    """Location of the dotenv credential store."""
    return Path(os.environ.get(ENV_FILE_ENV) or Path.cwd() / ".env")


class StaticCredentialProvider:
    """Credentials passed in explicitly."""

    def __init__(self, token: str | None, base_url: str | None = None):
        self.token = token
        self.base_url = base_url

    def get(self) -> Credentials:
        if not self.token:
            raise MissingCredentialsError("Missing API token")
        return Credentials(token=self.token, base_url=self.base_url or DEFAULT_BASE_URL)


class DotenvCredentialProvider:
    """
    Credentials from the environment, falling back to a dotenv file.

    The file is re-read on every get(), so a token saved by another process
    is picked up without restarting.
    """

    def __init__(self, env_file: str | Path | None = None):
        self.env_file = Path(env_file) if env_file else default_env_file()

    def _stored(self) -> dict[str, str | None]:
        if not self.env_file.is_file():
            return {}
        return dotenv_values(self.env_file)

    def get(self) -> Credentials:
        stored = self._stored()
        token = os.environ.get(API_KEY_ENV) or stored.get(API_KEY_ENV)
        if not token:
            raise MissingCredentialsError(
                f"Missing API token. Set {API_KEY_ENV} or run 'flotiq configure --token <key>'",
                details={"env_file": str(self.env_file)},
            )
        base_url = os.environ.get(API_URL_ENV) or stored.get(API_URL_ENV) or DEFAULT_BASE_URL
        return Credentials(token=token, base_url=base_url)

    def save(self, token: str, base_url: str | None = None) -> None:
        """Persist the token (and optionally the base URL) to the dotenv file."""
        self.env_file.parent.mkdir(parents=True, exist_ok=True)
        self.env_file.touch(exist_ok=True)
        set_key(self.env_file, API_KEY_ENV, token)
        if base_url:
            set_key(self.env_file, API_URL_ENV, base_url.rstrip("/"))
        logger.info("Saved credentials to %s", self.env_file)

    def clear(self) -> None:
        """Remove stored credentials from the dotenv file."""
        stored = self._stored()
        for key in (API_KEY_ENV, API_URL_ENV):
            if key in stored:
                unset_key(self.env_file, key)
        logger.info("Cleared credentials from %s", self.env_file)
