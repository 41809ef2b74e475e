"""Tests for the RavenTestDriver."""

import io
import queue
import threading
import time
from unittest.mock import MagicMock, patch

import pytest

from ravenlite.exceptions import ServerStartupError
from ravenlite.test_driver import RavenTestDriver, wait_for_server_url
from ravenlite.test_driver.driver import _pump_output


class _SlowStream:
    """Server output that never reports a URL."""

    def __init__(self, lines: int = 3) -> None:
        self.remaining = lines

    def readline(self) -> str:
        time.sleep(0.5)
        if self.remaining == 0:
            return ""
        self.remaining -= 1
        return "still starting\n"


def _locator(https=False, certificate=None):
    locator = MagicMock()
    locator.with_https.return_value = https
    locator.get_server_certificate_path.return_value = certificate
    return locator


def _process(output: str, exit_code=None):
    process = MagicMock()
    process.stdout = io.StringIO(output)
    process.poll.return_value = exit_code
    return process


class TestWaitForServerUrl:
    """Tests for reading the server URL from its output."""

    def test_finds_url(self):
        process = _process("Starting\nServer available on: http://127.0.0.1:54321/\nTcp listening\n")
        assert wait_for_server_url(process, timeout=5) == "http://127.0.0.1:54321"

    def test_process_exits_first(self):
        process = _process("Unhandled exception\n", exit_code=1)
        with pytest.raises(ServerStartupError, match="exited with code 1"):
            wait_for_server_url(process, timeout=5)

    def test_timeout(self):
        process = MagicMock()
        process.stdout = _SlowStream()
        with pytest.raises(ServerStartupError, match="within 0.2 seconds"):
            wait_for_server_url(process, timeout=0.2)

    def test_output_after_ready_is_dropped(self):
        stream = io.StringIO("one\ntwo\nthree\n")
        lines = queue.Queue()
        ready = threading.Event()
        ready.set()

        _pump_output(stream, lines, ready)

        assert lines.get_nowait() is None
        assert lines.empty()
        assert stream.read() == ""


class TestRavenTestDriver:
    """Tests for the driver lifecycle."""

    @patch("ravenlite.test_driver.driver.DocumentStore")
    @patch("ravenlite.test_driver.driver.RavenServerRunner.run")
    def test_get_document_store_creates_database(self, mock_run, mock_store_class):
        process = _process("Server available on: http://127.0.0.1:1234\n")
        mock_run.return_value = process
        server_store = MagicMock()
        db_store = MagicMock()
        mock_store_class.side_effect = [MagicMock(initialize=MagicMock(return_value=server_store)), db_store]

        driver = RavenTestDriver(locator=_locator())
        store = driver.get_document_store("orders")

        assert store is db_store
        assert driver.server_url == "http://127.0.0.1:1234"
        url, database_name = mock_store_class.call_args_list[1][0]
        assert url == "http://127.0.0.1:1234"
        assert database_name.startswith("orders_")
        operation = server_store.maintenance.server.send.call_args[0][0]
        assert type(operation).__name__ == "CreateDatabaseOperation"

        driver.close()

        delete_operation = server_store.maintenance.server.send.call_args[0][0]
        assert type(delete_operation).__name__ == "DeleteDatabaseOperation"
        db_store.close.assert_called_once()
        server_store.close.assert_called_once()
        process.kill.assert_called_once()
        assert driver.server_url is None

    @patch("ravenlite.test_driver.driver.RavenServerRunner.run")
    def test_startup_failure_cleans_up(self, mock_run):
        process = _process("boom\n", exit_code=3)
        mock_run.return_value = process
        driver = RavenTestDriver(locator=_locator())

        with pytest.raises(ServerStartupError):
            driver.start()

        process.kill.assert_not_called()
        assert driver.process is None
        assert driver.server_url is None

    @patch("ravenlite.test_driver.driver.RavenServerRunner.run")
    def test_start_is_reused(self, mock_run):
        mock_run.return_value = _process("Server available on: http://127.0.0.1:1\n")
        with patch("ravenlite.test_driver.driver.DocumentStore"):
            driver = RavenTestDriver(locator=_locator())
            assert driver.start() == driver.start()
        mock_run.assert_called_once()

    @patch("ravenlite.test_driver.driver.DocumentStore")
    @patch("ravenlite.test_driver.driver.RavenServerRunner.run")
    def test_https_stores_use_server_certificate(self, mock_run, mock_store_class):
        mock_run.return_value = _process("Server available on: https://127.0.0.1:8085\n")
        server_store = MagicMock()
        mock_store_class.side_effect = [MagicMock(initialize=MagicMock(return_value=server_store)), MagicMock()]

        driver = RavenTestDriver(locator=_locator(https=True, certificate="/certs/server.pem"))
        driver.get_document_store()

        for call in mock_store_class.call_args_list:
            assert call.kwargs["auth_options"].certificate == "/certs/server.pem"

    @patch("ravenlite.test_driver.driver.DocumentStore")
    @patch("ravenlite.test_driver.driver.RavenServerRunner.run")
    def test_http_stores_have_no_auth(self, mock_run, mock_store_class):
        mock_run.return_value = _process("Server available on: http://127.0.0.1:1\n")
        driver = RavenTestDriver(locator=_locator())
        driver.start()
        assert mock_store_class.call_args.kwargs["auth_options"] is None
