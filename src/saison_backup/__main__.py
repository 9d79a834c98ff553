"""Entry point for saison-backup MCP server."""

import argparse
import asyncio
import logging

from saison_backup import __version__
from saison_backup.config import get_settings
from saison_backup.server import create_server, initialize_services, shutdown_services


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="saison-backup",
        description="saison-backup - Export, backup and restore of Saison planner data via MCP",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args()


async def main() -> None:
    """Main entry point for the MCP server."""
    settings = get_settings()

    # stdout carries the MCP protocol, so logs go to stderr
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    await initialize_services(settings)

    mcp = create_server()

    try:
        # Run the server (stdio transport)
        await mcp.run_stdio_async()
    finally:
        await shutdown_services()


def cli() -> None:
    """CLI entry point."""
    # Parse args first (handles --help and --version)
    parse_args()

    asyncio.run(main())


if __name__ == "__main__":
    cli()
