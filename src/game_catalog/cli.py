"""
Command-line interface for the game catalog importer.

Provides commands to check IGDB connectivity and run imports manually.
"""

import asyncio
import json
import sys
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel

from game_catalog.config import get_settings, resolve_page_size
from game_catalog.logger import get_logger, setup_logging

logger = get_logger(__name__, component="cli")


class CLIOutput(BaseModel):
    """Structured output for CLI commands."""

    success: bool
    command: str
    timestamp: datetime = datetime.now(timezone.utc)
    data: dict[str, Any] | list[Any] | None = None
    error: str | None = None


def print_json(output: CLIOutput) -> None:
    """Print output as formatted JSON."""
    print(json.dumps(output.model_dump(), indent=2, default=str))


def _mask(value: str, visible: int) -> str:
    if not value:
        return "<not set>"
    return value[:visible] + "..."


def _option(args: list[str], name: str, default: int) -> int:
    """Read an integer ``--name value`` option."""
    if name not in args:
        return default
    idx = args.index(name)
    if idx + 1 >= len(args):
        raise ValueError(f"Option {name} requires a value")
    try:
        return int(args[idx + 1])
    except ValueError as e:
        raise ValueError(f"Option {name} expects an integer, got {args[idx + 1]!r}") from e


def _positional(args: list[str]) -> str | None:
    """First argument that is neither an option nor an option's value."""
    remaining = iter(args)
    for arg in remaining:
        if arg.startswith("--"):
            next(remaining, None)
            continue
        return arg
    return None


async def cmd_import(count: int, skip: int, min_rating: int, batch_size: int) -> int:
    """
    Run the import pipeline.

    Returns:
        int: Process exit code (1 only if authentication failed)
    """
    from game_catalog.catalog import CatalogStore
    from game_catalog.ingestion.client import AuthError, CredentialError, IGDBClient
    from game_catalog.ingestion.orchestrator import ImportOrchestrator, ImportProgress

    batch_size = resolve_page_size(batch_size)

    print("IGDB Game Import")
    print("================")
    print(f"Importing up to {count} games with rating >= {min_rating}")
    print(f"Starting offset: {skip}, Batch size: {batch_size}")
    print()

    def on_progress(progress: ImportProgress) -> None:
        bar_length = 30
        filled = int(bar_length * progress.percentage / 100)
        bar = "█" * filled + "░" * (bar_length - filled)
        print(
            f"\r  [{bar}] {progress.processed}/{progress.target} "
            f"| {progress.state.value} "
            f"| batch {progress.batches_attempted}/{progress.total_batches}     ",
            end="",
            flush=True,
        )

    store = CatalogStore()
    try:
        await store.create_schema()
        async with IGDBClient() as client:
            orchestrator = ImportOrchestrator(client=client, store=store)
            try:
                result = await orchestrator.run(
                    count=count,
                    offset=skip,
                    min_rating=min_rating,
                    batch_size=batch_size,
                    on_progress=on_progress,
                )
            except (CredentialError, AuthError) as e:
                print(f"\nAuthentication failed: {e}")
                return 1
    finally:
        await store.dispose()

    print("\n")
    print("Import Complete!")
    print(f"{'='*50}")
    for metric, value in result.summary_rows():
        print(f"  {metric:<28} {value:>8}")
    print(f"  {'Batches Failed':<28} {result.batches_failed:>8}")
    print(f"  Duration: {result.duration_seconds:.2f}s")

    if result.errors:
        print(f"\nErrors ({len(result.errors)}):")
        for err in result.errors[:5]:
            where = f"igdb_id={err['igdb_id']}" if err["stage"] == "record" else f"batch={err['batch']}"
            print(f"    - {where}: {err['error'][:80]}")

    return 0


async def cmd_test_connection() -> int:
    """Step through credentials, token, and sample queries."""
    from game_catalog.ingestion.client import CatalogImportError, IGDBClient

    settings = get_settings()

    print("IGDB API Connection Test")
    print("========================")
    print()

    print("Step 1: Checking credentials...")
    if not settings.igdb.has_credentials:
        print("IGDB credentials not configured!")
        print("Please set IGDB_CLIENT_ID and IGDB_CLIENT_SECRET in your .env file")
        print("Credentials come from https://dev.twitch.tv/console/apps")
        return 1
    print(f"  Client ID: {_mask(settings.igdb.client_id, 10)}")
    print()

    async with IGDBClient() as client:
        print("Step 2: Obtaining OAuth token...")
        try:
            token = await client.authenticate()
        except CatalogImportError as e:
            print(f"Failed to obtain OAuth token: {e}")
            return 1
        print(f"  Token obtained: {_mask(token, 20)}")
        print()

        print("Step 3: Testing simple query (fields name;limit 5;)...")
        try:
            results = await client.test_connection()
        except CatalogImportError as e:
            print(f"Simple query failed: {e}")
            return 1
        print(f"  Results received: {len(results)} games")
        for game in results:
            print(f"    - {game.get('name', 'Unknown')}")
        print()

        print("Step 4: Testing full query with covers...")
        try:
            results = await client.fetch_candidates(limit=5)
        except CatalogImportError as e:
            print(f"Full query failed: {e}")
            return 1
        print(f"  Results received: {len(results)} games")
        if not results:
            print("  No games returned! This might indicate a query issue.")
        for game in results:
            rating = game.get("total_rating")
            rating_text = f"{rating:.1f}" if isinstance(rating, (int, float)) else "N/A"
            has_cover = "Yes" if (game.get("cover") or {}).get("image_id") else "No"
            print(f"    - {game.get('name', 'Unknown')} (Rating: {rating_text}, Cover: {has_cover})")
        print()

        print('Step 5: Testing search (query: "zelda")...')
        try:
            results = await client.search_games("zelda", limit=3)
            print(f"  Search results: {len(results)} games")
            for game in results:
                print(f"    - {game.get('name', 'Unknown')}")
        except CatalogImportError as e:
            print(f"  Search query failed: {e}")
        print()

    print("All tests completed successfully!")
    print("You can now run: game-catalog import")
    return 0


async def cmd_search(term: str, limit: int) -> int:
    """Search IGDB and print raw records."""
    from game_catalog.ingestion.client import IGDBClient

    async with IGDBClient() as client:
        results = await client.search_games(term, limit=limit)

    print_json(CLIOutput(success=True, command="search", data=results))
    return 0


async def cmd_fetch(igdb_id: int) -> int:
    """Fetch one IGDB game and print it."""
    from game_catalog.ingestion.client import IGDBClient

    async with IGDBClient() as client:
        game = await client.fetch_game_by_id(igdb_id)

    output = CLIOutput(
        success=game is not None,
        command="fetch",
        data=game,
        error=None if game is not None else f"IGDB game {igdb_id} not found",
    )
    print_json(output)
    return 0 if game is not None else 1


async def cmd_test_config() -> int:
    """Test configuration loading."""
    settings = get_settings()

    output = CLIOutput(
        success=True,
        command="test-config",
        data={
            "environment": settings.environment,
            "igdb_base_url": settings.igdb.base_url,
            "igdb_token_url": settings.igdb.token_url,
            "igdb_requests_per_second": settings.igdb.requests_per_second,
            "igdb_client_id": _mask(settings.igdb.client_id, 4),
            "credentials_configured": settings.igdb.has_credentials,
            "database_url": settings.database.url,
            "import_defaults": settings.importer.model_dump(),
        },
    )
    print_json(output)
    return 0


def print_usage() -> None:
    """Print CLI usage information."""
    usage = """
Game Catalog Importer CLI
=========================

Usage: game-catalog <command> [arguments]

Commands:
  import                      Import games from IGDB into the catalog
  test-connection             Test IGDB credentials and query format
  search <term> [--limit <n>] Search IGDB by name
  fetch <igdb_id>             Fetch a single IGDB game
  test-config                 Show effective configuration

Import options:
  --count <n>                 Number of games to import (default 100)
  --skip <n>                  Starting offset (default 0)
  --min-rating <n>            Minimum rating threshold (default 60)
  --batch-size <n>            Games per API request, max 500 (default 50)

Examples:
  game-catalog import --count 200 --min-rating 70
"""
    print(usage)


def main() -> None:
    """Main CLI entry point."""
    if len(sys.argv) < 2:
        print_usage()
        sys.exit(1)

    setup_logging()
    command = sys.argv[1]
    args = sys.argv[2:]
    defaults = get_settings().importer

    try:
        if command == "import":
            exit_code = asyncio.run(
                cmd_import(
                    count=_option(args, "--count", defaults.count),
                    skip=_option(args, "--skip", defaults.offset),
                    min_rating=_option(args, "--min-rating", defaults.min_rating),
                    batch_size=_option(args, "--batch-size", defaults.batch_size),
                )
            )

        elif command == "test-connection":
            exit_code = asyncio.run(cmd_test_connection())

        elif command == "search":
            term = _positional(args)
            if term is None:
                print("Error: search term required")
                sys.exit(1)
            exit_code = asyncio.run(cmd_search(term, _option(args, "--limit", 20)))

        elif command == "fetch":
            if not args:
                print("Error: igdb_id required")
                sys.exit(1)
            exit_code = asyncio.run(cmd_fetch(int(args[0])))

        elif command == "test-config":
            exit_code = asyncio.run(cmd_test_config())

        elif command in ("help", "--help", "-h"):
            print_usage()
            exit_code = 0

        else:
            print(f"Unknown command: {command}")
            print_usage()
            exit_code = 1

    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.exception("CLI error", error=str(e))
        print_json(CLIOutput(success=False, command=command, error=str(e)))
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
