"""Tests for the CLI module."""

from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from ravenlite.client.cli import create_db, delete_db, list_dbs, run_server, stats
from ravenlite.documents.operations import CollectionStatistics, DatabaseStatistics
from ravenlite.exceptions import DatabaseDoesNotExistException, RavenServerError, ServerStartupError


class TestCreateDbCLI:
    """Tests for the create-db command."""

    def setup_method(self):
        """Set up test fixtures."""
        self.runner = CliRunner()

    @patch("ravenlite.client.cli.create_database")
    @patch("ravenlite.client.cli.database_exists")
    def test_creates_missing_database(self, mock_exists, mock_create):
        mock_exists.return_value = False

        result = self.runner.invoke(create_db, ["Northwind"])

        assert result.exit_code == 0
        assert "created successfully" in result.output
        mock_create.assert_called_once_with(database="Northwind")

    @patch("ravenlite.client.cli.create_database")
    @patch("ravenlite.client.cli.database_exists")
    def test_existing_database_left_alone(self, mock_exists, mock_create):
        mock_exists.return_value = True

        result = self.runner.invoke(create_db, ["Northwind"])

        assert result.exit_code == 0
        assert "already exists" in result.output
        mock_create.assert_not_called()

    @patch("ravenlite.client.cli.database_exists")
    def test_server_error_aborts(self, mock_exists):
        mock_exists.side_effect = RavenServerError("refused", status_code=500)

        result = self.runner.invoke(create_db, ["Northwind"])

        assert result.exit_code != 0
        assert "Failed to create database" in result.output


class TestDeleteDbCLI:
    """Tests for the delete-db command."""

    def setup_method(self):
        """Set up test fixtures."""
        self.runner = CliRunner()

    @patch("ravenlite.client.cli.delete_database")
    @patch("ravenlite.client.cli.database_exists")
    @patch("ravenlite.client.cli.get_database_info")
    def test_delete_with_yes_flag(self, mock_info, mock_exists, mock_delete):
        mock_info.return_value = ("http://localhost:8080", "Northwind", 10)
        mock_exists.return_value = True

        result = self.runner.invoke(delete_db, ["Northwind", "--yes"])

        assert result.exit_code == 0
        assert "successfully deleted" in result.output
        mock_delete.assert_called_once_with(database="Northwind")

    @patch("ravenlite.client.cli.delete_database")
    @patch("ravenlite.client.cli.database_exists")
    @patch("ravenlite.client.cli.get_database_info")
    def test_delete_cancelled(self, mock_info, mock_exists, mock_delete):
        mock_info.return_value = ("http://localhost:8080", "Northwind", 10)
        mock_exists.return_value = True

        result = self.runner.invoke(delete_db, ["Northwind"], input="n\n")

        assert result.exit_code == 0
        assert "10 document(s)" in result.output
        assert "Deletion cancelled" in result.output
        mock_delete.assert_not_called()

    @patch("ravenlite.client.cli.delete_database")
    @patch("ravenlite.client.cli.database_exists")
    @patch("ravenlite.client.cli.get_database_info")
    def test_delete_missing_database(self, mock_info, mock_exists, mock_delete):
        mock_info.return_value = ("http://localhost:8080", "Ghost", None)
        mock_exists.return_value = False

        result = self.runner.invoke(delete_db, ["Ghost"])

        assert result.exit_code == 0
        assert "does not exist" in result.output
        mock_delete.assert_not_called()


class TestListDbsCLI:
    """Tests for the list-dbs command."""

    @patch("ravenlite.client.cli.list_databases")
    def test_lists_names(self, mock_list):
        mock_list.return_value = ["a", "b"]
        result = CliRunner().invoke(list_dbs)
        assert result.exit_code == 0
        assert result.output.splitlines() == ["a", "b"]

    @patch("ravenlite.client.cli.list_databases")
    def test_no_databases(self, mock_list):
        mock_list.return_value = []
        result = CliRunner().invoke(list_dbs)
        assert "No databases found." in result.output


class TestStatsCLI:
    """Tests for the stats command."""

    @patch("ravenlite.client.cli.get_statistics")
    def test_prints_counts(self, mock_stats):
        mock_stats.return_value = (
            DatabaseStatistics(count_of_documents=7, count_of_indexes=2),
            CollectionStatistics(count_of_documents=7, collections={"Users": 5, "Orders": 2}),
        )

        result = CliRunner().invoke(stats, ["--database", "Northwind"])

        assert result.exit_code == 0
        assert "Documents: 7" in result.output
        assert "Indexes:   2" in result.output
        assert result.output.index("Users") < result.output.index("Orders")
        mock_stats.assert_called_once_with(database="Northwind")

    @patch("ravenlite.client.cli.get_statistics")
    def test_missing_database(self, mock_stats):
        mock_stats.side_effect = DatabaseDoesNotExistException("missing", status_code=503)
        result = CliRunner().invoke(stats, ["--database", "Ghost"])
        assert result.exit_code != 0
        assert "does not exist" in result.output


class TestRunServerCLI:
    """Tests for the run-server command."""

    @patch("ravenlite.client.cli.wait_for_server_url")
    @patch("ravenlite.client.cli.RavenServerRunner.run")
    @patch("ravenlite.client.cli.EnvServerLocator")
    def test_prints_url_and_stops_on_interrupt(self, mock_locator, mock_run, mock_wait):
        process = MagicMock()
        process.wait.side_effect = [KeyboardInterrupt(), 0]
        process.poll.return_value = None
        mock_run.return_value = process
        mock_wait.return_value = "http://127.0.0.1:5555"

        result = CliRunner().invoke(run_server)

        assert result.exit_code == 0
        assert "http://127.0.0.1:5555" in result.output
        assert "Stopping server" in result.output
        process.terminate.assert_called_once()

    @patch("ravenlite.client.cli.wait_for_server_url")
    @patch("ravenlite.client.cli.RavenServerRunner.run")
    @patch("ravenlite.client.cli.EnvServerLocator")
    def test_startup_error_aborts(self, mock_locator, mock_run, mock_wait):
        process = MagicMock()
        process.poll.return_value = 1
        mock_run.return_value = process
        mock_wait.side_effect = ServerStartupError("exited")

        result = CliRunner().invoke(run_server)

        assert result.exit_code != 0
        assert "exited" in result.output
        process.terminate.assert_not_called()
