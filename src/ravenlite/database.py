"""Convenience helpers for database management from configuration."""

import logging

from ravenlite.auth import AuthOptions
from ravenlite.config import RavenConfig
from ravenlite.documents.operations import (
    CollectionStatistics,
    CreateDatabaseOperation,
    DatabaseStatistics,
    DeleteDatabaseOperation,
    GetCollectionStatisticsOperation,
    GetDatabaseNamesOperation,
    GetStatisticsOperation,
)
from ravenlite.documents.store import DocumentStore
from ravenlite.exceptions import DatabaseDoesNotExistException

logger = logging.getLogger(__name__)


def create_document_store(urls: str | list[str] | None = None, database: str | None = None) -> DocumentStore:
    """Create and initialize a DocumentStore instance.

    Args:
        urls: Server URL(s) (defaults to RavenConfig.get_urls())
        database: Database name (defaults to RavenConfig.get_database_name())

    Returns:
        DocumentStore: Initialized DocumentStore instance
    """
    if urls is None:
        urls = RavenConfig.get_urls()
    if database is None:
        database = RavenConfig.get_database_name()

    store = DocumentStore(urls, database, auth_options=AuthOptions.from_env())
    store.initialize()
    return store


def list_databases(urls: str | list[str] | None = None) -> list[str]:
    """Get the names of all databases on the server."""
    with create_document_store(urls) as store:
        return store.maintenance.server.send(GetDatabaseNamesOperation(0, 1024))


def database_exists(urls: str | list[str] | None = None, database: str | None = None) -> bool:
    """Check if a database exists on the server.

    Args:
        urls: Server URL(s) (defaults to RavenConfig.get_urls())
        database: Database name (defaults to RavenConfig.get_database_name())

    Returns:
        bool: True if database exists, False otherwise
    """
    if database is None:
        database = RavenConfig.get_database_name()
    return database in list_databases(urls)


def create_database(urls: str | list[str] | None = None, database: str | None = None) -> None:
    """Create a new database on the server."""
    if database is None:
        database = RavenConfig.get_database_name()
    with create_document_store(urls, database) as store:
        store.maintenance.server.send(CreateDatabaseOperation(database))
    logger.info(f"✅ Created database '{database}'")


def delete_database(urls: str | list[str] | None = None, database: str | None = None) -> None:
    """Delete a database from the server.

    WARNING: This operation is irreversible and will delete all data in the database.
    """
    if database is None:
        database = RavenConfig.get_database_name()
    with create_document_store(urls, database) as store:
        store.maintenance.server.send(DeleteDatabaseOperation(database, hard_delete=True))
    logger.info(f"🗑️ Deleted database '{database}'")


def get_statistics(
    urls: str | list[str] | None = None,
    database: str | None = None,
) -> tuple[DatabaseStatistics, CollectionStatistics]:
    """Get database and per-collection statistics.

    Raises:
        DatabaseDoesNotExistException: If the database is missing
    """
    with create_document_store(urls, database) as store:
        stats = store.maintenance.send(GetStatisticsOperation())
        collections = store.maintenance.send(GetCollectionStatisticsOperation())
        return stats, collections


def count_documents(urls: str | list[str] | None = None, database: str | None = None) -> int | None:
    """Count the documents in the database, or None when it does not exist."""
    try:
        stats, _ = get_statistics(urls, database)
    except DatabaseDoesNotExistException:
        return None
    return stats.count_of_documents
