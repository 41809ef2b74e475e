"""Executors that send operations to a database or to the whole server."""

import logging
from typing import TYPE_CHECKING, Any, Protocol

from ravenlite.http.commands import RavenCommand

if TYPE_CHECKING:
    from ravenlite.documents.conventions import DocumentConventions
    from ravenlite.documents.store import DocumentStoreBase
    from ravenlite.http.request_executor import RequestExecutor

logger = logging.getLogger(__name__)


class Operation(Protocol):
    """Anything that can produce a command for the request executor."""

    def get_command(self, conventions: "DocumentConventions") -> RavenCommand: ...


class OperationExecutor:
    """Sends document operations (e.g. delete by query) to a database."""

    def __init__(self, store: "DocumentStoreBase", database: str | None = None) -> None:
        self._store = store
        self._database = database or store.database
        self._request_executor: "RequestExecutor | None" = None

    @property
    def request_executor(self) -> "RequestExecutor":
        if self._request_executor is None:
            self._request_executor = self._store.get_request_executor(self._database)
        return self._request_executor

    def for_database(self, database: str | None) -> "OperationExecutor":
        if not database or database == self._database:
            return self
        return type(self)(self._store, database)

    def send(self, operation: Operation) -> Any:
        command = operation.get_command(self._store.conventions)
        logger.debug(f"Sending {type(operation).__name__} to database '{self._database}'")
        self.request_executor.execute(command)
        return command.result


class MaintenanceOperationExecutor(OperationExecutor):
    """Sends maintenance operations (indexes, statistics) to a database.

    ``server`` gives access to server-wide operations such as creating or
    deleting databases.
    """

    def __init__(self, store: "DocumentStoreBase", database: str | None = None) -> None:
        super().__init__(store, database)
        self._server: ServerOperationExecutor | None = None

    @property
    def server(self) -> "ServerOperationExecutor":
        if self._server is None:
            self._server = ServerOperationExecutor(self._store)
        return self._server


class ServerOperationExecutor:
    """Sends server-wide operations; these need no database."""

    def __init__(self, store: "DocumentStoreBase") -> None:
        self._store = store
        self._request_executor: "RequestExecutor | None" = None

    @property
    def request_executor(self) -> "RequestExecutor":
        if self._request_executor is None:
            self._request_executor = self._store.get_server_request_executor()
        return self._request_executor

    def send(self, operation: Operation) -> Any:
        command = operation.get_command(self._store.conventions)
        logger.debug(f"Sending server operation {type(operation).__name__}")
        self.request_executor.execute(command)
        return command.result
