"""Command-line interface for ravenlite using Click."""

import click
from dotenv import load_dotenv

from ravenlite.client.cli_helpers import configure_logging, fail, format_collections, get_database_info
from ravenlite.config import RavenConfig
from ravenlite.database import (
    create_database,
    database_exists,
    delete_database,
    get_statistics,
    list_databases,
)
from ravenlite.exceptions import DatabaseDoesNotExistException, RavenException
from ravenlite.test_driver import EnvServerLocator, RavenServerRunner, wait_for_server_url

# Load environment variables
load_dotenv()


@click.command()
@click.option("--timeout", type=float, default=None, help="Seconds to wait for the server to start")
def run_server(timeout: float | None) -> None:
    """Start a throwaway in-memory RavenDB server and wait until Ctrl+C.

    The server binary is taken from RAVENDB_TEST_SERVER_PATH.

    Example:
        ravenlite-run-server
    """
    configure_logging()
    try:
        process = RavenServerRunner.run(EnvServerLocator())
    except (RavenException, OSError) as e:
        fail(f"Could not start the server: {e}")

    try:
        url = wait_for_server_url(process, timeout) if timeout else wait_for_server_url(process)
        click.echo(f"✅ RavenDB server available on {url}")
        click.echo("Press Ctrl+C to stop.")
        process.wait()
    except KeyboardInterrupt:
        click.echo("\nStopping server...")
    except RavenException as e:
        fail(str(e))
    finally:
        if process.poll() is None:
            process.terminate()
            process.wait()


@click.command()
@click.argument("name", type=str)
def create_db(name: str) -> None:
    """Create the database NAME on the configured server.

    Example:
        ravenlite-create-db Northwind
    """
    configure_logging()
    try:
        if database_exists(database=name):
            click.echo(f"✓ Database '{name}' already exists")
            return
        create_database(database=name)
    except RavenException as e:
        fail(f"Failed to create database: {e}")
    click.echo(f"✓ Database '{name}' created successfully!")


@click.command()
@click.argument("name", type=str)
@click.option("--yes", "-y", is_flag=True, default=False, help="Skip confirmation prompt")
def delete_db(name: str, yes: bool) -> None:
    """Delete the database NAME and all its contents.

    WARNING: This is irreversible and deletes all documents and indexes.

    Example:
        ravenlite-delete-db Northwind          # Will prompt for confirmation
        ravenlite-delete-db Northwind --yes    # Skip confirmation
    """
    configure_logging()
    url, db_name, doc_count = get_database_info(name)

    if not database_exists(database=db_name):
        click.echo(f"✓ Database '{db_name}' does not exist at {url}")
        return

    if not yes:
        click.echo(f"⚠️  WARNING: You are about to delete the database '{db_name}'")
        click.echo(f"   Location: {url}\n")
        if doc_count is not None:
            click.echo(f"📊 Current database contains: {doc_count} document(s)\n")

        if not click.confirm("Are you sure you want to proceed?", default=False):
            click.echo("Deletion cancelled.")
            return

    click.echo(f"🗑️  Deleting database '{db_name}'...")
    try:
        delete_database(database=db_name)
    except RavenException as e:
        fail(f"Error deleting database: {e}")
    click.echo(f"✓ Database '{db_name}' successfully deleted!")


@click.command()
def list_dbs() -> None:
    """List the databases on the configured server.

    Example:
        ravenlite-list-dbs
    """
    configure_logging()
    try:
        names = list_databases()
    except RavenException as e:
        fail(f"Could not list databases: {e}")

    if not names:
        click.echo("No databases found.")
        return
    for name in names:
        click.echo(name)


@click.command()
@click.option("--database", type=str, default=None, help="Database name (default: RAVENDB_DATABASE)")
def stats(database: str | None) -> None:
    """Show document and index counts for a database.

    Example:
        ravenlite-stats
        ravenlite-stats --database Northwind
    """
    configure_logging()
    db_name = database or RavenConfig.get_database_name()
    try:
        db_stats, collection_stats = get_statistics(database=db_name)
    except DatabaseDoesNotExistException:
        fail(f"Database '{db_name}' does not exist!")
    except RavenException as e:
        fail(f"Error reading statistics: {e}")

    click.echo(f"📊 Database '{db_name}'")
    click.echo(f"   Documents: {db_stats.count_of_documents}")
    click.echo(f"   Indexes:   {db_stats.count_of_indexes}")
    click.echo("   Collections:")
    click.echo(format_collections(collection_stats.collections))


if __name__ == "__main__":
    stats()
