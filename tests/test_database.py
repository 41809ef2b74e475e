"""Tests for the database helper module."""

import os
from unittest.mock import MagicMock, patch

import pytest

from conftest import User
from ravenlite.database import (
    count_documents,
    create_database,
    create_document_store,
    database_exists,
    delete_database,
    get_statistics,
)
from ravenlite.documents.operations import DatabaseStatistics
from ravenlite.exceptions import DatabaseDoesNotExistException


def _mock_store(mock_document_store_class):
    mock_store = MagicMock()
    mock_store.__enter__.return_value = mock_store
    mock_document_store_class.return_value = mock_store
    return mock_store


class TestCreateDocumentStore:
    """Tests for create_document_store function."""

    @patch("ravenlite.database.DocumentStore")
    def test_creates_document_store_with_defaults(self, mock_document_store_class):
        """Test that create_document_store uses the environment configuration."""
        mock_store = _mock_store(mock_document_store_class)

        with patch.dict(
            os.environ,
            {"RAVENDB_URLS": "http://a:8080, http://b:8080", "RAVENDB_DATABASE": "testdb", "RAVENDB_CERTIFICATE": ""},
        ):
            result = create_document_store()

        args, kwargs = mock_document_store_class.call_args
        assert args == (["http://a:8080", "http://b:8080"], "testdb")
        assert kwargs["auth_options"] is None
        mock_store.initialize.assert_called_once()
        assert result is mock_store

    @patch("ravenlite.database.DocumentStore")
    def test_creates_document_store_with_certificate(self, mock_document_store_class):
        _mock_store(mock_document_store_class)

        with patch.dict(os.environ, {"RAVENDB_CERTIFICATE": "/certs/client.pem", "RAVENDB_CA": "/certs/ca.pem"}):
            create_document_store("https://secure:443", "db")

        auth_options = mock_document_store_class.call_args[1]["auth_options"]
        assert auth_options.requests_cert == "/certs/client.pem"
        assert auth_options.requests_verify == "/certs/ca.pem"


class TestDatabaseManagement:
    """Tests for create/delete/exists helpers."""

    @patch("ravenlite.database.DocumentStore")
    def test_database_exists(self, mock_document_store_class):
        mock_store = _mock_store(mock_document_store_class)
        mock_store.maintenance.server.send.return_value = ["db1", "db2"]

        assert database_exists(database="db2")
        assert not database_exists(database="db3")

    @patch("ravenlite.database.DocumentStore")
    def test_create_database_sends_operation(self, mock_document_store_class):
        mock_store = _mock_store(mock_document_store_class)

        create_database(database="fresh")

        operation = mock_store.maintenance.server.send.call_args[0][0]
        assert type(operation).__name__ == "CreateDatabaseOperation"
        mock_store.__exit__.assert_called_once()

    @patch("ravenlite.database.DocumentStore")
    def test_delete_database_sends_operation(self, mock_document_store_class):
        mock_store = _mock_store(mock_document_store_class)

        delete_database(database="old")

        operation = mock_store.maintenance.server.send.call_args[0][0]
        assert type(operation).__name__ == "DeleteDatabaseOperation"


class TestStatisticsHelpers:
    """Tests for statistics helpers."""

    @patch("ravenlite.database.DocumentStore")
    def test_count_documents(self, mock_document_store_class):
        mock_store = _mock_store(mock_document_store_class)
        mock_store.maintenance.send.return_value = DatabaseStatistics(count_of_documents=4)

        assert count_documents(database="db1") == 4

    @patch("ravenlite.database.DocumentStore")
    def test_count_documents_missing_database(self, mock_document_store_class):
        mock_store = _mock_store(mock_document_store_class)
        mock_store.maintenance.send.side_effect = DatabaseDoesNotExistException("missing", status_code=503)

        assert count_documents(database="ghost") is None

    @patch("ravenlite.database.DocumentStore")
    def test_get_statistics_returns_both(self, mock_document_store_class):
        mock_store = _mock_store(mock_document_store_class)
        mock_store.maintenance.send.side_effect = ["stats", "collections"]

        assert get_statistics(database="db1") == ("stats", "collections")


class TestRavenDBIntegration:
    """Integration tests against a real RavenDB server."""

    @pytest.mark.integration
    @pytest.mark.requires_ravendb
    def test_store_load_query_delete(self, ravendb_store):
        """Round trip a document through a real server."""
        with ravendb_store.open_session() as session:
            user = User(name="Arek", age=30)
            session.store(user)
            session.save_changes()
            user_id = user.Id

        assert user_id.startswith("Users/")

        with ravendb_store.open_session() as session:
            loaded = session.load(user_id, User)
            assert loaded.name == "Arek"
            results = session.query(User).where_equals("name", "Arek").wait_for_non_stale_results().all()
            assert [result.Id for result in results] == [user_id]
            session.delete(loaded)
            session.save_changes()

        with ravendb_store.open_session() as session:
            assert session.load(user_id, User) is None

    @pytest.mark.integration
    @pytest.mark.requires_ravendb
    def test_statistics_real(self, ravendb_store):
        with ravendb_store.open_session() as session:
            for i in range(3):
                session.store({"n": i, "@metadata": {"@collection": "Counters"}}, f"counters/{i}")
            session.save_changes()

        stats, collections = get_statistics(database=ravendb_store.database)
        assert stats.count_of_documents >= 3
        assert collections.collections["Counters"] == 3
