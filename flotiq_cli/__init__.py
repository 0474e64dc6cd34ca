"""
Flotiq CLI - Three-layer architecture for the Flotiq headless CMS API.

Layers:
- core: Types, credentials and the HTTP client
- sdk: High-level FlotiqClient with nice ergonomics
- cli: Opinionated command-line interface

The search module drives queries from keystroke-style input.
"""

from flotiq_cli.sdk import FlotiqClient
from flotiq_cli.search import SearchSession

__version__ = "0.1.0"
__all__ = ["FlotiqClient", "SearchSession"]
