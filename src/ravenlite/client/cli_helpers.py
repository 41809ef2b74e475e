"""Helper functions for CLI commands."""

import logging
import os

import click

from ravenlite.config import RavenConfig
from ravenlite.database import count_documents
from ravenlite.exceptions import RavenException


def configure_logging() -> None:
    """Configure root logging from LOG_LEVEL (default: WARNING)."""
    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "WARNING").upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def get_database_info(database: str | None = None) -> tuple[str, str, int | None]:
    """Get connection info and document count.

    Returns:
        Tuple of (url, database_name, document_count or None if unavailable)
    """
    url = RavenConfig.get_urls()[0]
    db_name = database or RavenConfig.get_database_name()

    doc_count = None
    try:
        doc_count = count_documents(database=db_name)
    except RavenException as e:
        logging.getLogger(__name__).debug(f"Could not count documents: {e}")

    return url, db_name, doc_count


def format_collections(collections: dict[str, int]) -> str:
    """Format per-collection counts for display, largest first."""
    if not collections:
        return "  (no collections)"
    width = max(len(name) for name in collections)
    ordered = sorted(collections.items(), key=lambda item: (-item[1], item[0]))
    return "\n".join(f"  {name.ljust(width)}  {count}" for name, count in ordered)


def fail(message: str) -> None:
    """Print an error and abort the command."""
    click.echo(f"✗ {message}", err=True)
    raise click.Abort()
