"""Document store: the configured entry point to a RavenDB database."""

import abc
import logging
import threading
from datetime import timedelta
from typing import Any, ContextManager, Iterable

import requests

from ravenlite.auth import AuthOptions
from ravenlite.documents.conventions import DocumentConventions
from ravenlite.documents.indexes import AbstractIndexCreationTask, IndexCreation
from ravenlite.documents.operations.executor import MaintenanceOperationExecutor, OperationExecutor
from ravenlite.documents.operations.indexes import PutIndexesOperation
from ravenlite.documents.session.events import EventHandler, validate_event_name
from ravenlite.documents.session.session import DocumentSession, SessionOptions
from ravenlite.exceptions import InvalidArgumentException, InvalidOperationException
from ravenlite.http.request_executor import RequestExecutor
from ravenlite.utils import validate_uri

logger = logging.getLogger(__name__)


class DocumentStoreBase(abc.ABC):
    """Public surface shared by document store implementations.

    Holds the configuration (urls, database, conventions, auth options) and
    the store-level session listeners; subclasses provide sessions, request
    executors and operation executors.
    """

    def __init__(self) -> None:
        self._urls: list[str] = []
        self._database: str | None = None
        self._conventions: DocumentConventions | None = None
        self._auth_options: AuthOptions | None = None
        self._identifier: str | None = None
        self._initialized = False
        self._disposed = False
        self._event_handlers: list[tuple[str, EventHandler]] = []

    def __enter__(self) -> "DocumentStoreBase":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Abstract surface
    # -------------------------------------------------------------------------

    @abc.abstractmethod
    def initialize(self) -> "DocumentStoreBase": ...

    @abc.abstractmethod
    def open_session(self, database_or_options: str | SessionOptions | None = None) -> DocumentSession: ...

    @abc.abstractmethod
    def get_request_executor(self, database: str | None = None) -> RequestExecutor: ...

    @abc.abstractmethod
    def get_server_request_executor(self) -> RequestExecutor: ...

    @property
    @abc.abstractmethod
    def maintenance(self) -> MaintenanceOperationExecutor: ...

    @property
    @abc.abstractmethod
    def operations(self) -> OperationExecutor: ...

    @abc.abstractmethod
    def aggressively_cache_for(self, duration: timedelta | float, database: str | None = None) -> ContextManager[None]: ...

    @abc.abstractmethod
    def disable_aggressive_caching(self, database: str | None = None) -> ContextManager[None]: ...

    @abc.abstractmethod
    def close(self) -> None: ...

    def is_disposed(self) -> bool:
        return self._disposed

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    @property
    def identifier(self) -> str | None:
        if self._identifier is not None:
            return self._identifier
        if not self._urls:
            return None
        if self._database:
            return f"{self._urls[0]} (DB: {self._database})"
        return self._urls[0]

    @identifier.setter
    def identifier(self, value: str | None) -> None:
        self._identifier = value

    @property
    def urls(self) -> list[str]:
        return list(self._urls)

    @urls.setter
    def urls(self, value: list[str]) -> None:
        if self._initialized:
            raise InvalidOperationException("You cannot change the urls after the document store has been initialized")
        if value is None or not isinstance(value, (list, tuple)):
            raise InvalidArgumentException(f"Invalid urls array passed: {value!r}.")

        urls = []
        for index, url in enumerate(value):
            if not url:
                raise InvalidArgumentException(f"Url cannot be None or empty - url index: {index}")
            validate_uri(url)
            urls.append(url.rstrip("/"))
        self._urls = urls

    @property
    def database(self) -> str | None:
        return self._database

    @database.setter
    def database(self, value: str | None) -> None:
        if self._initialized:
            raise InvalidOperationException(
                "You cannot change the default database name after the document store has been initialized"
            )
        self._database = value

    @property
    def conventions(self) -> DocumentConventions:
        if self._conventions is None:
            self._conventions = DocumentConventions()
        return self._conventions

    @conventions.setter
    def conventions(self, value: DocumentConventions) -> None:
        if self._initialized:
            raise InvalidOperationException("You cannot change conventions after the document store has been initialized")
        self._conventions = value

    @property
    def auth_options(self) -> AuthOptions | None:
        return self._auth_options

    @auth_options.setter
    def auth_options(self, value: AuthOptions | None) -> None:
        if self._initialized:
            raise InvalidOperationException("You cannot change auth options after the document store has been initialized")
        self._auth_options = value

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def _ensure_not_disposed(self) -> None:
        if self._disposed:
            raise InvalidOperationException("The document store has already been disposed and cannot be used")

    def _assert_initialized(self) -> None:
        if not self._initialized:
            raise InvalidOperationException(
                "You cannot open a session or access the database commands before initializing the document store. "
                "Did you forget calling initialize()?"
            )

    # -------------------------------------------------------------------------
    # Indexes
    # -------------------------------------------------------------------------

    def execute_index(self, task: AbstractIndexCreationTask, database: str | None = None) -> None:
        self._assert_initialized()
        task.execute(self, self.conventions, database)

    def execute_indexes(self, tasks: Iterable[AbstractIndexCreationTask], database: str | None = None) -> None:
        """Put several index definitions in a single request."""
        self._assert_initialized()
        indexes_to_add = IndexCreation.create_indexes_to_add(list(tasks), self.conventions)
        if not indexes_to_add:
            return
        self.maintenance.for_database(database or self.database).send(PutIndexesOperation(*indexes_to_add))

    # -------------------------------------------------------------------------
    # Session listeners
    # -------------------------------------------------------------------------

    def add_session_listener(self, event_name: str, event_handler: EventHandler) -> "DocumentStoreBase":
        """Register a listener attached to every session opened afterwards.

        Args:
            event_name: before_store, after_save_changes, before_query or before_delete
            event_handler: Callable receiving the event args
        """
        validate_event_name(event_name)
        self._event_handlers.append((event_name, event_handler))
        return self

    def remove_session_listener(self, event_name: str, event_handler: EventHandler) -> None:
        for index, (name, handler) in enumerate(self._event_handlers):
            if name == event_name and handler == event_handler:
                del self._event_handlers[index]
                return

    def _register_events(self, session: DocumentSession) -> None:
        for event_name, event_handler in self._event_handlers:
            session.on(event_name, event_handler)


class DocumentStore(DocumentStoreBase):
    """Document store talking to RavenDB over HTTP.

    Args:
        urls: One URL or a list of node URLs
        database: Default database for sessions and operations
        auth_options: Client certificate for https servers
        http_session: ``requests.Session`` shared by all request executors
            (a new one per executor when omitted)

    Example:
        with DocumentStore(["http://localhost:8080"], "Northwind") as store:
            store.initialize()
            with store.open_session() as session:
                session.store(user)
                session.save_changes()
    """

    def __init__(
        self,
        urls: str | list[str] | None = None,
        database: str | None = None,
        auth_options: AuthOptions | None = None,
        http_session: requests.Session | None = None,
    ) -> None:
        super().__init__()
        if urls is not None:
            self.urls = [urls] if isinstance(urls, str) else urls
        self._database = database
        self._auth_options = auth_options
        self._http_session = http_session
        self._request_executors: dict[str | None, RequestExecutor] = {}
        self._server_request_executor: RequestExecutor | None = None
        self._executors_lock = threading.Lock()
        self._maintenance: MaintenanceOperationExecutor | None = None
        self._operations: OperationExecutor | None = None

    def initialize(self) -> "DocumentStore":
        if self._initialized:
            return self
        self._ensure_not_disposed()
        if not self._urls:
            raise InvalidArgumentException("Document store URLs cannot be empty")

        self.conventions.freeze()
        self._initialized = True
        logger.info(f"✅ Document store initialized: {self.identifier}")
        return self

    def open_session(self, database_or_options: str | SessionOptions | None = None) -> DocumentSession:
        self._assert_initialized()
        self._ensure_not_disposed()

        if isinstance(database_or_options, SessionOptions):
            options = database_or_options
        else:
            options = SessionOptions(database=database_or_options)

        session = DocumentSession(self, options)
        self._register_events(session)
        return session

    def _create_request_executor(self, database: str | None) -> RequestExecutor:
        return RequestExecutor(
            self._urls,
            database,
            self.conventions,
            auth_options=self._auth_options,
            http_session=self._http_session,
        )

    def get_request_executor(self, database: str | None = None) -> RequestExecutor:
        self._assert_initialized()
        self._ensure_not_disposed()
        database = database or self._database
        with self._executors_lock:
            executor = self._request_executors.get(database)
            if executor is None:
                executor = self._create_request_executor(database)
                self._request_executors[database] = executor
            return executor

    def get_server_request_executor(self) -> RequestExecutor:
        self._assert_initialized()
        self._ensure_not_disposed()
        with self._executors_lock:
            if self._server_request_executor is None:
                self._server_request_executor = self._create_request_executor(None)
            return self._server_request_executor

    @property
    def maintenance(self) -> MaintenanceOperationExecutor:
        self._assert_initialized()
        if self._maintenance is None:
            self._maintenance = MaintenanceOperationExecutor(self)
        return self._maintenance

    @property
    def operations(self) -> OperationExecutor:
        self._assert_initialized()
        if self._operations is None:
            self._operations = OperationExecutor(self)
        return self._operations

    def aggressively_cache_for(self, duration: timedelta | float, database: str | None = None) -> ContextManager[None]:
        """Serve cached GET responses younger than ``duration`` without asking the server."""
        return self.get_request_executor(database).aggressively_cache_for(duration)

    def aggressively_cache(self, database: str | None = None) -> ContextManager[None]:
        return self.aggressively_cache_for(timedelta(days=1), database)

    def disable_aggressive_caching(self, database: str | None = None) -> ContextManager[None]:
        return self.get_request_executor(database).disable_aggressive_caching()

    def close(self) -> None:
        if self._disposed:
            return
        with self._executors_lock:
            executors: list[Any] = list(self._request_executors.values())
            if self._server_request_executor is not None:
                executors.append(self._server_request_executor)
            self._request_executors.clear()
            self._server_request_executor = None
        for executor in executors:
            executor.close()
        self._disposed = True
        logger.debug(f"Document store closed: {self.identifier}")
