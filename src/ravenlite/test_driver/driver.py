"""A test driver that owns a throwaway server and hands out document stores."""

import logging
import queue
import subprocess
import threading
import time
import uuid

from ravenlite.auth import AuthOptions
from ravenlite.constants import DEFAULT_SERVER_START_TIMEOUT, SERVER_AVAILABLE_PREFIX
from ravenlite.documents.operations.databases import CreateDatabaseOperation, DeleteDatabaseOperation
from ravenlite.documents.store import DocumentStore
from ravenlite.exceptions import RavenException, ServerStartupError
from ravenlite.test_driver.locator import EnvServerLocator, RavenServerLocator
from ravenlite.test_driver.runner import RavenServerRunner

logger = logging.getLogger(__name__)


def _pump_output(stream, lines: "queue.Queue[str | None]", ready: threading.Event) -> None:
    try:
        for line in iter(stream.readline, ""):
            # Keep draining so the server never blocks on a full pipe
            if not ready.is_set():
                lines.put(line)
    except (ValueError, OSError):
        # Stream closed by the driver while the server was still writing
        pass
    lines.put(None)


def wait_for_server_url(process: subprocess.Popen, timeout: float = DEFAULT_SERVER_START_TIMEOUT) -> str:
    """Read the server output until it reports the URL it listens on.

    Raises:
        ServerStartupError: If the process exits or the URL is not seen in time
    """
    lines: "queue.Queue[str | None]" = queue.Queue()
    ready = threading.Event()
    reader = threading.Thread(target=_pump_output, args=(process.stdout, lines, ready), daemon=True)
    reader.start()

    output: list[str] = []
    deadline = time.monotonic() + timeout
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise ServerStartupError(
                f"Unable to start the RavenDB server within {timeout} seconds. Output:\n{''.join(output)}"
            )
        try:
            line = lines.get(timeout=remaining)
        except queue.Empty:
            continue
        if line is None:
            raise ServerStartupError(
                f"RavenDB server exited with code {process.poll()} before it was ready. Output:\n{''.join(output)}"
            )
        output.append(line)
        stripped = line.strip()
        if stripped.startswith(SERVER_AVAILABLE_PREFIX):
            ready.set()
            return stripped[len(SERVER_AVAILABLE_PREFIX):].strip().rstrip("/")


class RavenTestDriver:
    """Starts a server once and creates a fresh database per document store.

    Example:
        with RavenTestDriver() as driver:
            store = driver.get_document_store()
            with store.open_session() as session:
                ...
    """

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        locator: RavenServerLocator | None = None,
        start_timeout: float = DEFAULT_SERVER_START_TIMEOUT,
    ) -> None:
        self.locator = locator or EnvServerLocator()
        self.start_timeout = start_timeout
        self.process: subprocess.Popen | None = None
        self.server_url: str | None = None
        self._server_store: DocumentStore | None = None
        self._stores: list[tuple[DocumentStore, str]] = []

    def __enter__(self) -> "RavenTestDriver":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def start(self) -> str:
        """Start the server if needed and return its URL."""
        if self.server_url is not None:
            return self.server_url

        self.process = RavenServerRunner.run(self.locator)
        try:
            self.server_url = wait_for_server_url(self.process, self.start_timeout)
        except ServerStartupError:
            self._kill()
            raise
        logger.info(f"✅ RavenDB test server available on {self.server_url}")
        self._server_store = DocumentStore(self.server_url, auth_options=self._auth_options()).initialize()
        return self.server_url

    def get_document_store(self, database: str | None = None) -> DocumentStore:
        """Create a database on the test server and return a store bound to it.

        Args:
            database: Database name prefix (default: "test")
        """
        self.start()
        name = f"{database or 'test'}_{uuid.uuid4().hex[:12]}"
        self._server_store.maintenance.server.send(CreateDatabaseOperation(name))
        store = DocumentStore(self.server_url, name, auth_options=self._auth_options())
        store.initialize()
        self._stores.append((store, name))
        logger.debug(f"Created test database '{name}'")
        return store

    def _auth_options(self) -> AuthOptions | None:
        if not self.locator.with_https():
            return None
        return AuthOptions(certificate=self.locator.get_server_certificate_path())

    def close(self) -> None:
        """Delete created databases, close stores and stop the server."""
        for store, name in self._stores:
            try:
                self._server_store.maintenance.server.send(DeleteDatabaseOperation(name))
            except RavenException as e:
                logger.warning(f"⚠️ Could not delete test database '{name}': {e}")
            store.close()
        self._stores.clear()

        if self._server_store is not None:
            self._server_store.close()
            self._server_store = None
        self._kill()
        self.server_url = None

    def _kill(self) -> None:
        if self.process is None:
            return
        if self.process.poll() is None:
            self.process.kill()
            self.process.wait()
        if self.process.stdout is not None:
            self.process.stdout.close()
        self.process = None
