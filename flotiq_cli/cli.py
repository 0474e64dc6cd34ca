"""
Flotiq CLI - Command-line interface for Flotiq content.

This layer provides the user-facing CLI commands, using the SDK layer
for all operations. It handles:
- Argument parsing
- TTY detection for human vs machine output
- Pretty formatting for human output
- JSON output for piping/automation
- Multipart encoding of media files before upload
"""

import argparse
import asyncio
import json
import logging
import mimetypes
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import httpx

from flotiq_cli.core.credentials import DotenvCredentialProvider
from flotiq_cli.core.errors import CLIError, ValidationError
from flotiq_cli.core.types import ContentObject
from flotiq_cli.sdk import FlotiqClient
from flotiq_cli.search import MAX_QUERY_LENGTH, MIN_QUERY_LENGTH, SearchSession

# =============================================================================
# Output Helpers
# =============================================================================


HUMAN_LIMIT = 20  # Default limit for human-readable output


def is_tty() -> bool:
    """Check if stdout is a TTY (human) or pipe (LLM/machine)."""
    return sys.stdout.isatty()


def json_output(data: Any, pretty: bool = False) -> None:
    """Print JSON output."""
    indent = 2 if pretty or is_tty() else None
    print(json.dumps(data, indent=indent, default=str))


def error_output(error: CLIError) -> None:
    """Print error and exit."""
    json_output(error.to_dict())
    sys.exit(1)


def success_output(data: Any) -> None:
    """Print success output."""
    json_output(data)


def table_output(
    headers: list[str],
    rows: list[list[str]],
    widths: list[int],
) -> None:
    """Print a formatted table for human output."""
    # Header
    header_line = "  ".join(h.ljust(w) for h, w in zip(headers, widths))
    print(header_line)
    print("-" * len(header_line))

    # Rows
    for row in rows:
        print("  ".join(str(v)[:w].ljust(w) for v, w in zip(row, widths)))


def objects_table(objects: list[ContentObject], limit: int | None = HUMAN_LIMIT) -> None:
    """Print content objects as an ID / title table."""
    shown = objects[:limit] if limit else objects
    table_output(
        ["ID", "Title"],
        [[o.id, o.title()] for o in shown],
        [40, 50],
    )
    if len(shown) < len(objects):
        print(f"\nShowing {len(shown)} of {len(objects)} objects")


def read_json_argument(value: str) -> dict[str, Any]:
    """Parse a JSON object given inline or as '-' for stdin."""
    try:
        data = json.load(sys.stdin) if value == "-" else json.loads(value)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in --data: {e}")
    if not isinstance(data, dict):
        raise ValidationError("--data must be a JSON object")
    return data


def encode_media_form(path: Path, media_type: str = "image") -> tuple[bytes, str]:
    """
    Encode a file as a multipart/form-data body for the media endpoint.

    Returns:
        The encoded body and its Content-Type header (with boundary)

    """
    mime = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    request = httpx.Request(
        "POST",
        "http://localhost/media",
        files={"file": (path.name, path.read_bytes(), mime)},
        data={"type": media_type},
    )
    return request.read(), request.headers["Content-Type"]


# =============================================================================
# CLI Commands
# =============================================================================


async def cmd_configure(_client: FlotiqClient, args: argparse.Namespace) -> None:
    """Store the API token (and base URL) in the credential file."""
    provider = DotenvCredentialProvider(args.env_file)
    provider.save(args.token, args.url)
    success_output({"success": True, "message": f"Credentials saved to {provider.env_file}"})


async def cmd_logout(_client: FlotiqClient, args: argparse.Namespace) -> None:
    """Remove the stored API token."""
    provider = DotenvCredentialProvider(args.env_file)
    provider.clear()
    success_output({"success": True, "message": f"Credentials removed from {provider.env_file}"})


async def cmd_types_list(client: FlotiqClient, _args: argparse.Namespace) -> None:
    """List content types."""
    try:
        content_types = await client.content_types.list()

        if is_tty():
            table_output(
                ["Name", "Label", "Internal"],
                [[ct.name, ct.label, "yes" if ct.internal else ""] for ct in content_types],
                [30, 40, 8],
            )
        else:
            success_output(
                {
                    "data": [{"id": ct.id, "name": ct.name, "label": ct.label} for ct in content_types],
                    "total_count": len(content_types),
                }
            )
    except CLIError as e:
        error_output(e)


async def cmd_types_get(client: FlotiqClient, args: argparse.Namespace) -> None:
    """Get a content type definition."""
    try:
        ct = await client.content_types.get(args.name)
        success_output(
            {
                "id": ct.id,
                "name": ct.name,
                "label": ct.label,
                "internal": ct.internal,
                "properties": ct.properties,
                "created_at": ct.created_at,
                "updated_at": ct.updated_at,
            }
        )
    except CLIError as e:
        error_output(e)


async def cmd_objects_list(client: FlotiqClient, args: argparse.Namespace) -> None:
    """List content objects of a type."""
    try:
        if is_tty() or args.page is not None:
            page = await client.objects.list(args.content_type, page=args.page or 1)
            if is_tty():
                if not page.data:
                    print("No objects found.")
                    return
                objects_table(page.data, limit=None)
                print(f"\nPage {page.current_page} of {page.total_pages}")
                if page.has_more:
                    print(f"Next: --page {page.next_page}")
            else:
                success_output(
                    {
                        "data": [o.to_dict() for o in page.data],
                        "total_count": page.total_count,
                        "total_pages": page.total_pages,
                        "next_page": page.next_page,
                    }
                )
        else:
            objects = await client.objects.list_all(args.content_type)
            success_output({"data": [o.to_dict() for o in objects], "total_count": len(objects)})
    except CLIError as e:
        error_output(e)


async def cmd_objects_get(client: FlotiqClient, args: argparse.Namespace) -> None:
    """Get a content object by ID."""
    try:
        obj = await client.objects.get(args.content_type, args.object_id)

        if args.field:
            if args.field not in obj.fields:
                raise ValidationError(
                    f"Field '{args.field}' not found",
                    details={"available_fields": list(obj.fields)},
                )
            value = obj.get(args.field)
            if isinstance(value, (dict, list)):
                json_output(value)
            else:
                print(value if value is not None else "")
        else:
            success_output({**obj.to_dict(), "internal": obj.internal})
    except CLIError as e:
        error_output(e)


async def cmd_objects_create(client: FlotiqClient, args: argparse.Namespace) -> None:
    """Create a content object."""
    try:
        body = read_json_argument(args.data)
        await client.objects.create(args.content_type, body)
        success_output({"success": True, "message": f"Object created in {args.content_type}"})
    except CLIError as e:
        error_output(e)


async def cmd_objects_update(client: FlotiqClient, args: argparse.Namespace) -> None:
    """Update a content object."""
    try:
        body = read_json_argument(args.data)
        await client.objects.update(args.content_type, args.object_id, body)
        success_output({"success": True, "message": f"Object {args.object_id} updated"})
    except CLIError as e:
        error_output(e)


async def cmd_objects_delete(client: FlotiqClient, args: argparse.Namespace) -> None:
    """Delete a content object."""
    try:
        await client.objects.delete(args.content_type, args.object_id)
        success_output({"success": True, "message": f"Object {args.object_id} deleted"})
    except CLIError as e:
        error_output(e)


async def cmd_media_upload(client: FlotiqClient, args: argparse.Namespace) -> None:
    """Upload a media file."""
    try:
        path = Path(args.file)
        if not path.is_file():
            raise ValidationError(f"File not found: {args.file}")
        payload, content_type = encode_media_form(path, args.type)
        await client.media.upload(payload, content_type)
        success_output({"success": True, "message": f"Uploaded {path.name}"})
    except CLIError as e:
        error_output(e)


def print_search_status(session: SearchSession) -> None:
    """Print the result counter and length warning for interactive search."""
    if session.results is not None:
        print(f"found {session.result_count} results")
    if session.limit_reached:
        print(f"Max {MAX_QUERY_LENGTH} characters allowed.")


async def cmd_search(client: FlotiqClient, args: argparse.Namespace) -> None:
    """Search content objects of a type."""
    try:
        if args.interactive:
            await run_interactive_search(client, args.content_type)
            return

        if not args.content_type or args.text is None:
            raise ValidationError("Usage: flotiq search <content_type> <text> (or --interactive)")

        session = SearchSession(client.search, content_type=args.content_type)
        results = await session.update(args.text)
        if results is None:
            raise ValidationError(f"Search text must be longer than {MIN_QUERY_LENGTH} characters")

        if is_tty():
            if session.limit_reached:
                print(f"Search text cut to {MAX_QUERY_LENGTH} characters.")
            if not results:
                print("No results found.")
                return
            objects_table(results)
        else:
            success_output({"data": [o.to_dict() for o in results], "total_count": len(results)})
    except CLIError as e:
        error_output(e)


async def run_interactive_search(client: FlotiqClient, content_type: str | None) -> None:
    """
    Read search input line by line from stdin.

    A text line updates the search, an empty line confirms it, ':type NAME'
    switches the content type, ':show' prints the results and ':quit' exits.
    """
    content_types = [] if content_type else await client.content_types.list()
    session = SearchSession(client.search, content_types, content_type=content_type)
    print(f"Searching '{session.content_type}' (min {MIN_QUERY_LENGTH + 1} chars) ...")

    for raw_line in sys.stdin:
        line = raw_line.rstrip("\n")
        if line == ":quit":
            break
        if line == ":show":
            if session.can_show_results:
                objects_table(session.results or [])
            continue
        if line.startswith(":type "):
            await session.select_content_type(line[len(":type ") :].strip())
        elif line == "":
            await session.confirm()
        else:
            await session.update(line)
        print_search_status(session)


# =============================================================================
# Main CLI
# =============================================================================


def create_parser() -> argparse.ArgumentParser:  # noqa: PLR0915
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="Flotiq CLI - Command-line interface for Flotiq content",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Output Modes:
  TTY (human):  Pretty tables, one page at a time
  Pipe (LLM):   Full JSON, auto-paginates all results

Examples:
  flotiq configure --token <read-write API key>
  flotiq types list
  flotiq objects list blogpost --page 2
  flotiq objects create blogpost --data '{"id": "post-1", "title": "Hello"}'
  flotiq search blogpost "hello world" | jq '.data[].id'
""",
    )
    parser.add_argument("--env-file", help="Credential file (overrides FLOTIQ_ENV_FILE, default ./.env)")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds (default: none)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log requests to stderr")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # ========== Credentials ==========
    configure = subparsers.add_parser("configure", help="Store API credentials")
    configure.add_argument("--token", "-t", required=True, help="Flotiq API key")
    configure.add_argument("--url", "-u", help="API base URL (default: https://api.flotiq.com/api)")
    configure.set_defaults(func=cmd_configure)

    logout = subparsers.add_parser("logout", help="Remove stored API credentials")
    logout.set_defaults(func=cmd_logout)

    # ========== Content Types ==========
    types = subparsers.add_parser("types", help="Inspect content types")
    types.set_defaults(func=lambda _c, _a: _print_help(types))
    types_sub = types.add_subparsers(dest="subcommand")

    t_list = types_sub.add_parser("list", help="List content types")
    t_list.set_defaults(func=cmd_types_list)

    t_get = types_sub.add_parser("get", help="Get content type details")
    t_get.add_argument("name", help="Content type name")
    t_get.set_defaults(func=cmd_types_get)

    # ========== Content Objects ==========
    objects = subparsers.add_parser("objects", help="Manage content objects")
    objects.set_defaults(func=lambda _c, _a: _print_help(objects))
    objects_sub = objects.add_subparsers(dest="subcommand")

    o_list = objects_sub.add_parser("list", help="List content objects")
    o_list.add_argument("content_type", help="Content type name")
    o_list.add_argument("--page", "-p", type=int, help="Page number, starting at 1")
    o_list.set_defaults(func=cmd_objects_list)

    o_get = objects_sub.add_parser("get", help="Get a content object (hydrated)")
    o_get.add_argument("content_type", help="Content type name")
    o_get.add_argument("object_id", help="Object ID")
    o_get.add_argument("--field", "-f", help="Extract a specific field value")
    o_get.set_defaults(func=cmd_objects_get)

    o_create = objects_sub.add_parser("create", help="Create a content object")
    o_create.add_argument("content_type", help="Content type name")
    o_create.add_argument("--data", "-d", required=True, help="JSON object with field values (or - for stdin)")
    o_create.set_defaults(func=cmd_objects_create)

    o_update = objects_sub.add_parser("update", help="Update a content object")
    o_update.add_argument("content_type", help="Content type name")
    o_update.add_argument("object_id", help="Object ID")
    o_update.add_argument("--data", "-d", required=True, help="JSON object with field values (or - for stdin)")
    o_update.set_defaults(func=cmd_objects_update)

    o_delete = objects_sub.add_parser("delete", help="Delete a content object")
    o_delete.add_argument("content_type", help="Content type name")
    o_delete.add_argument("object_id", help="Object ID")
    o_delete.set_defaults(func=cmd_objects_delete)

    # ========== Media ==========
    media = subparsers.add_parser("media", help="Upload media files")
    media.set_defaults(func=lambda _c, _a: _print_help(media))
    media_sub = media.add_subparsers(dest="subcommand")

    m_upload = media_sub.add_parser("upload", help="Upload a file")
    m_upload.add_argument("file", help="Path to the file")
    m_upload.add_argument("--type", default="image", choices=["image", "file"], help="Media type")
    m_upload.set_defaults(func=cmd_media_upload)

    # ========== Search ==========
    search = subparsers.add_parser("search", help="Search content objects")
    search.add_argument("content_type", nargs="?", help="Content type name")
    search.add_argument("text", nargs="?", help=f"Search text (more than {MIN_QUERY_LENGTH} characters)")
    search.add_argument("--interactive", "-i", action="store_true", help="Read search input from stdin")
    search.set_defaults(func=cmd_search)

    return parser


async def _print_help(parser: argparse.ArgumentParser) -> None:
    parser.print_help()


async def run(args: argparse.Namespace, func: Callable[[FlotiqClient, argparse.Namespace], Awaitable[None]]) -> None:
    """Run one command with a client that is closed afterwards."""
    credentials = DotenvCredentialProvider(args.env_file)
    async with FlotiqClient(credentials=credentials, timeout=args.timeout) as client:
        await func(client, args)


def main() -> None:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    # Run command (all subparsers have default funcs that print help)
    asyncio.run(run(args, args.func))


if __name__ == "__main__":
    main()
