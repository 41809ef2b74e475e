"""Unit-of-work session over a document store."""

import copy
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable

from ravenlite.constants import Metadata
from ravenlite.documents.commands import BatchCommand, GetDocumentsCommand, HeadDocumentCommand, QueryCommand
from ravenlite.documents.query import AbstractDocumentQuery, DocumentQuery, RawDocumentQuery
from ravenlite.documents.serializer import EntitySerializer
from ravenlite.documents.session.document_info import DocumentInfo
from ravenlite.documents.session.events import (
    AfterSaveChangesEventArgs,
    BeforeDeleteEventArgs,
    BeforeQueryEventArgs,
    BeforeStoreEventArgs,
    SessionEventEmitter,
)
from ravenlite.exceptions import (
    InvalidArgumentException,
    InvalidOperationException,
    NonUniqueObjectException,
)

if TYPE_CHECKING:
    from ravenlite.documents.store import DocumentStoreBase
    from ravenlite.http.request_executor import RequestExecutor

logger = logging.getLogger(__name__)

# Metadata the server manages; never sent back on PUT
_SERVER_METADATA = {
    Metadata.ID,
    Metadata.CHANGE_VECTOR,
    Metadata.LAST_MODIFIED,
    Metadata.FLAGS,
    Metadata.INDEX_SCORE,
    Metadata.PROJECTION,
}


@dataclass
class SessionOptions:
    """Options for DocumentStore.open_session.

    Attributes:
        database: Database for this session (default: the store's)
        no_tracking: Do not track loaded entities; save_changes is refused
        request_executor: Executor to use instead of the store's one
    """

    database: str | None = None
    no_tracking: bool = False
    request_executor: "RequestExecutor | None" = None


class DocumentSession(SessionEventEmitter):
    """Tracks entities for one exchange with the server.

    Loaded and stored entities are kept in an identity map: loading the same
    id twice returns the same object and costs one request. Changes are
    detected by comparing each entity's serialized form against the snapshot
    taken when it was last synced, and are flushed in a single batch by
    ``save_changes()``.

    Args:
        store: The owning document store
        options: Session options
    """

    def __init__(self, store: "DocumentStoreBase", options: SessionOptions | None = None) -> None:
        super().__init__()
        options = options or SessionOptions()
        self._store = store
        self.database = options.database or store.database
        if not self.database:
            raise InvalidOperationException(
                "Cannot open a session without specifying a name of a database to operate on. "
                "Database name can be passed as an argument when a session is opened or set "
                "on the store as its default database."
            )
        self.no_tracking = options.no_tracking
        self._request_executor = options.request_executor or store.get_request_executor(self.database)
        self.conventions = store.conventions
        self.serializer = EntitySerializer(self.conventions)

        self._documents_by_id: dict[str, DocumentInfo] = {}
        self._documents_by_entity: dict[int, DocumentInfo] = {}
        self._deleted_entities: dict[int, Any] = {}
        self._known_missing_ids: set[str] = set()
        self._deferred_commands: list[dict[str, Any]] = []
        self._number_of_requests = 0
        self._use_optimistic_concurrency = False
        self._closed = False
        self._advanced = DocumentSession._Advanced(self)

    def __enter__(self) -> "DocumentSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def advanced(self) -> "DocumentSession._Advanced":
        return self._advanced

    @property
    def number_of_requests(self) -> int:
        return self._number_of_requests

    def close(self) -> None:
        self._clear_tracking()
        self._closed = True

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _assert_open(self) -> None:
        if self._closed:
            raise InvalidOperationException("The session has been closed and cannot be used")

    def _increment_requests_count(self) -> None:
        self._number_of_requests += 1
        limit = self.conventions.max_number_of_requests_per_session
        if self._number_of_requests > limit:
            raise InvalidOperationException(
                f"The maximum number of requests ({limit}) allowed for this session has been reached. "
                "The session is meant for a single unit of work; you can raise the limit through "
                "conventions.max_number_of_requests_per_session, but first consider restructuring "
                "your calls to need fewer round trips."
            )

    def _clear_tracking(self) -> None:
        self._documents_by_id.clear()
        self._documents_by_entity.clear()
        self._deleted_entities.clear()
        self._known_missing_ids.clear()
        self._deferred_commands.clear()

    def _is_server_generated(self, key: str) -> bool:
        return key.endswith(self.conventions.identity_parts_separator) or key.endswith("|")

    def _identity_of(self, entity: Any) -> str | None:
        if isinstance(entity, dict):
            return None
        identity = self.conventions.get_identity_property(type(entity))
        value = getattr(entity, identity, None)
        return value if isinstance(value, str) and value else None

    def _set_identity(self, entity: Any, key: str) -> None:
        if isinstance(entity, dict):
            return
        setattr(entity, self.conventions.get_identity_property(type(entity)), key)

    def _serialize(self, info: DocumentInfo) -> dict[str, Any]:
        return self.serializer.to_document(info.entity, info.metadata)

    def _track_document(
        self,
        document: dict[str, Any],
        object_type: type | None = None,
        nested_object_types: dict[str, type] | None = None,
    ) -> Any:
        """Turn a server document into an entity, reusing a tracked one if present."""
        metadata = document.get(Metadata.KEY) or {}
        key = metadata.get(Metadata.ID)
        if key is None:
            raise InvalidOperationException("Document must have an id")

        existing = self._documents_by_id.get(key.lower())
        if existing is not None:
            return existing.entity

        entity = self.serializer.to_entity(document, object_type, nested_object_types)
        if self.no_tracking:
            return entity

        info = DocumentInfo(
            id=key,
            entity=entity,
            metadata=copy.deepcopy(metadata),
            change_vector=metadata.get(Metadata.CHANGE_VECTOR),
            document={k: v for k, v in document.items() if k != Metadata.KEY},
        )
        info.mark_synced(self._serialize(info))
        self._documents_by_id[key.lower()] = info
        self._documents_by_entity[id(entity)] = info
        self._known_missing_ids.discard(key.lower())
        return entity

    def _get_info(self, entity: Any) -> DocumentInfo:
        info = self._documents_by_entity.get(id(entity))
        if info is None:
            raise InvalidOperationException(f"{entity!r} is not associated with the session, cannot find its document")
        return info

    def _entity_for(self, key: str) -> Any:
        info = self._documents_by_id.get(key.lower())
        if info is None or id(info.entity) in self._deleted_entities:
            return None
        return info.entity

    def _has_changed(self, info: DocumentInfo) -> bool:
        if info.new_document or info.snapshot is None:
            return True
        if info.metadata != info.original_metadata:
            return True
        return self._serialize(info) != info.snapshot

    # -------------------------------------------------------------------------
    # Store / delete / load
    # -------------------------------------------------------------------------

    def store(self, entity: Any, key: str | None = None, change_vector: str | None = None) -> None:
        """Start tracking an entity; it is sent to the server on save_changes.

        Args:
            entity: A dict, dataclass instance or plain object
            key: Document id; taken from the identity property or generated when omitted
            change_vector: Expected change vector for optimistic concurrency

        Raises:
            NonUniqueObjectException: If a different instance with the same id is tracked
            InvalidOperationException: If the entity or its id was deleted in this session
        """
        self._assert_open()
        if entity is None or isinstance(entity, type):
            raise InvalidArgumentException("Entity cannot be None or a class")

        info = self._documents_by_entity.get(id(entity))
        if info is not None:
            if id(entity) in self._deleted_entities:
                raise InvalidOperationException(
                    f"Can't store object, it was already deleted in this session. Document id: {info.id}"
                )
            if change_vector is not None:
                info.expected_change_vector = change_vector
            return

        if key is None:
            key = self._identity_of(entity)
        if key is None:
            key = self.conventions.generate_document_id(self.database, entity)

        server_generated = self._is_server_generated(key)
        if not server_generated:
            if any(command["Id"].lower() == key.lower() for command in self._deferred_commands):
                raise InvalidOperationException(
                    "Can't store document, there is a deferred command registered for this document "
                    f"in the session. Document id: {key}"
                )
            existing = self._documents_by_id.get(key.lower())
            if existing is not None and existing.entity is not entity:
                if id(existing.entity) in self._deleted_entities:
                    raise InvalidOperationException(
                        f"Can't store object, it was already deleted in this session. Document id: {key}"
                    )
                raise NonUniqueObjectException(f"Attempted to associate a different object with id '{key}'.")
            self._set_identity(entity, key)

        metadata: dict[str, Any] = {}
        collection = self.conventions.get_collection_name(entity)
        if collection:
            metadata[Metadata.COLLECTION] = collection

        info = DocumentInfo(
            id=key,
            entity=entity,
            metadata=metadata,
            new_document=True,
            expected_change_vector=change_vector,
        )
        self._documents_by_entity[id(entity)] = info
        if not server_generated:
            self._documents_by_id[key.lower()] = info
            self._known_missing_ids.discard(key.lower())
        logger.debug(f"Tracking new entity {type(entity).__name__} as '{key}'")

    def delete(self, key_or_entity: Any, expected_change_vector: str | None = None) -> None:
        """Mark a document for deletion on the next save_changes.

        Deleting by id a document that was not loaded defers a raw delete
        command; deleting an entity requires it to be tracked.
        """
        self._assert_open()
        if key_or_entity is None:
            raise InvalidArgumentException("Key or entity cannot be None")

        if isinstance(key_or_entity, str):
            key = key_or_entity
            info = self._documents_by_id.get(key.lower())
            if info is None:
                self._known_missing_ids.add(key.lower())
                self._deferred_commands.append({"Id": key, "Type": "DELETE", "ChangeVector": expected_change_vector})
                return
        else:
            info = self._documents_by_entity.get(id(key_or_entity))
            if info is None:
                raise InvalidOperationException(
                    f"{key_or_entity!r} is not associated with the session, cannot delete unknown entity instance"
                )

        if info.new_document:
            # Never reached the server; just forget it
            self._documents_by_entity.pop(id(info.entity), None)
            self._documents_by_id.pop(info.id.lower(), None)
            return

        info.expected_change_vector = expected_change_vector
        self._deleted_entities[id(info.entity)] = info.entity

    def load(
        self,
        keys: str | Iterable[str],
        object_type: type | None = None,
        nested_object_types: dict[str, type] | None = None,
    ) -> Any:
        """Load one document by id, or several as a dict of id -> entity.

        Tracked entities are returned without a request; ids known to be
        missing return None.

        Args:
            keys: A document id or an iterable of ids
            object_type: Class to deserialize into (default: from metadata, else dict)
            nested_object_types: Attribute name -> class for nested values
        """
        self._assert_open()
        single = isinstance(keys, str)
        ids = [keys] if single else list(keys)
        if any(not key for key in ids):
            raise InvalidArgumentException("Document id cannot be None or empty")

        to_fetch: list[str] = []
        for key in ids:
            lowered = key.lower()
            if lowered in self._documents_by_id or lowered in self._known_missing_ids:
                continue
            if key not in to_fetch:
                to_fetch.append(key)

        fetched: dict[str, Any] = {}
        if to_fetch:
            self._increment_requests_count()
            command = GetDocumentsCommand(ids=to_fetch)
            self._request_executor.execute(command)
            results = (command.result or {}).get("Results") or [None] * len(to_fetch)
            for key, document in zip(to_fetch, results):
                if document is None:
                    self._known_missing_ids.add(key.lower())
                    continue
                fetched[key] = self._track_document(document, object_type, nested_object_types)

        if self.no_tracking:
            values = {key: fetched.get(key) for key in ids}
        else:
            values = {key: self._entity_for(key) for key in ids}
        return values[ids[0]] if single else values

    # -------------------------------------------------------------------------
    # Save changes
    # -------------------------------------------------------------------------

    def save_changes(self) -> None:
        """Send all pending puts and deletes to the server in one batch.

        Raises:
            InvalidOperationException: If tracking is disabled for this session
        """
        self._assert_open()
        if self.no_tracking:
            raise InvalidOperationException("Cannot execute save_changes when entity tracking is disabled.")

        commands: list[dict[str, Any]] = []
        tracked: list[DocumentInfo | None] = []

        for entity in list(self._deleted_entities.values()):
            info = self._documents_by_entity[id(entity)]
            self.emit("before_delete", BeforeDeleteEventArgs(self, info.id, entity))
            change_vector = info.expected_change_vector
            if change_vector is None and self._use_optimistic_concurrency:
                change_vector = info.change_vector
            commands.append({"Id": info.id, "Type": "DELETE", "ChangeVector": change_vector})
            tracked.append(info)

        for info in list(self._documents_by_entity.values()):
            if id(info.entity) in self._deleted_entities or info.ignore_changes:
                continue
            if not self._has_changed(info):
                continue

            self.emit("before_store", BeforeStoreEventArgs(self, info.id, info.entity))
            body = self._serialize(info)
            document = dict(body)
            document[Metadata.KEY] = {k: v for k, v in info.metadata.items() if k not in _SERVER_METADATA}

            change_vector = info.expected_change_vector
            if change_vector is None and self._use_optimistic_concurrency:
                change_vector = info.change_vector
            commands.append({"Id": info.id, "Type": "PUT", "Document": document, "ChangeVector": change_vector})
            tracked.append(info)

        deferred = list(self._deferred_commands)
        commands.extend(deferred)
        tracked.extend([None] * len(deferred))

        if not commands:
            logger.debug("save_changes: nothing to send")
            return

        self._increment_requests_count()
        batch = BatchCommand(commands)
        self._request_executor.execute(batch)
        results = (batch.result or {}).get("Results", [])
        logger.debug(f"save_changes: {len(commands)} command(s) applied")

        saved: list[DocumentInfo] = []
        for info, command, result in zip(tracked, commands, results):
            if info is None:
                continue
            if command["Type"] == "DELETE":
                self._documents_by_entity.pop(id(info.entity), None)
                self._documents_by_id.pop(info.id.lower(), None)
                self._deleted_entities.pop(id(info.entity), None)
                self._known_missing_ids.add(info.id.lower())
                continue

            new_id = result.get(Metadata.ID, info.id)
            if new_id != info.id:
                self._documents_by_id.pop(info.id.lower(), None)
                info.id = new_id
                self._set_identity(info.entity, new_id)
            self._documents_by_id[new_id.lower()] = info
            info.change_vector = result.get(Metadata.CHANGE_VECTOR, info.change_vector)
            info.expected_change_vector = None
            for key in (Metadata.ID, Metadata.CHANGE_VECTOR, Metadata.LAST_MODIFIED):
                if key in result:
                    info.metadata[key] = result[key]
            info.document = {k: v for k, v in command["Document"].items() if k != Metadata.KEY}
            info.mark_synced(self._serialize(info))
            saved.append(info)

        self._deferred_commands.clear()
        for info in saved:
            self.emit("after_save_changes", AfterSaveChangesEventArgs(self, info.id, info.entity))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def query(
        self,
        object_type: type | None = None,
        collection: str | None = None,
        index_name: str | None = None,
        nested_object_types: dict[str, type] | None = None,
    ) -> DocumentQuery:
        """Start a query over a collection, an index, or all documents."""
        self._assert_open()
        return DocumentQuery(self, object_type, collection, index_name, nested_object_types)

    def _execute_query(self, query: AbstractDocumentQuery) -> dict[str, Any]:
        self._assert_open()
        self.emit("before_query", BeforeQueryEventArgs(self, query))
        index_query = query.to_index_query()
        self._increment_requests_count()
        logger.debug(f"Executing query: {index_query['Query']}")
        command = QueryCommand(index_query)
        self._request_executor.execute(command)
        return command.result or {}

    def _convert_query_results(self, query: AbstractDocumentQuery, results: list[Any]) -> list[Any]:
        entities = []
        for document in results:
            if not isinstance(document, dict):
                entities.append(document)
                continue
            metadata = document.get(Metadata.KEY) or {}
            if query.is_projection or metadata.get(Metadata.PROJECTION) or Metadata.ID not in metadata:
                entities.append(
                    self.serializer.to_entity(document, query.object_type, query.nested_object_types)
                )
                continue
            entities.append(self._track_document(document, query.object_type, query.nested_object_types))
        return entities

    # -------------------------------------------------------------------------
    # Advanced
    # -------------------------------------------------------------------------

    class _Advanced:
        """Less common session operations, reached through ``session.advanced``."""

        def __init__(self, session: "DocumentSession") -> None:
            self._session = session

        @property
        def number_of_requests(self) -> int:
            return self._session.number_of_requests

        @property
        def use_optimistic_concurrency(self) -> bool:
            return self._session._use_optimistic_concurrency

        @use_optimistic_concurrency.setter
        def use_optimistic_concurrency(self, value: bool) -> None:
            self._session._use_optimistic_concurrency = value

        @property
        def request_executor(self) -> "RequestExecutor":
            return self._session._request_executor

        def raw_query(self, query: str, object_type: type | None = None) -> RawDocumentQuery:
            self._session._assert_open()
            return RawDocumentQuery(self._session, query, object_type)

        def get_document_info(self, entity: Any) -> DocumentInfo:
            return self._session._get_info(entity)

        def get_metadata_for(self, entity: Any) -> dict[str, Any]:
            """Get the live metadata of a tracked entity; changes are saved with it."""
            return self._session._get_info(entity).metadata

        def get_change_vector_for(self, entity: Any) -> str | None:
            return self._session._get_info(entity).change_vector

        def get_document_id(self, entity: Any) -> str | None:
            info = self._session._documents_by_entity.get(id(entity))
            return info.id if info is not None else None

        def is_loaded(self, key: str) -> bool:
            return self._session._entity_for(key) is not None

        def has_changed(self, entity: Any) -> bool:
            session = self._session
            if id(entity) in session._deleted_entities:
                return True
            return session._has_changed(session._get_info(entity))

        def has_changes(self) -> bool:
            session = self._session
            if session._deleted_entities or session._deferred_commands:
                return True
            return any(
                session._has_changed(info)
                for info in session._documents_by_entity.values()
                if not info.ignore_changes
            )

        def ignore_changes_for(self, entity: Any) -> None:
            self._session._get_info(entity).ignore_changes = True

        def evict(self, entity: Any) -> None:
            session = self._session
            info = session._documents_by_entity.pop(id(entity), None)
            if info is not None:
                session._documents_by_id.pop(info.id.lower(), None)
            session._deleted_entities.pop(id(entity), None)

        def clear(self) -> None:
            self._session._clear_tracking()

        def exists(self, key: str) -> bool:
            session = self._session
            session._assert_open()
            if session._entity_for(key) is not None:
                return True
            if key.lower() in session._known_missing_ids:
                return False
            session._increment_requests_count()
            command = HeadDocumentCommand(key)
            session._request_executor.execute(command)
            return command.result is not None

        def refresh(self, entity: Any) -> None:
            """Reload a tracked entity from the server, overwriting local changes."""
            session = self._session
            info = session._get_info(entity)
            session._increment_requests_count()
            command = GetDocumentsCommand(ids=[info.id])
            session._request_executor.execute(command)
            results = (command.result or {}).get("Results") or []
            if not results or results[0] is None:
                raise InvalidOperationException(f"Document '{info.id}' no longer exists and was probably deleted")

            document = results[0]
            fresh = session.serializer.to_entity(document, type(entity) if not isinstance(entity, dict) else None)
            if isinstance(entity, dict):
                entity.clear()
                entity.update(fresh)
            else:
                vars(entity).update(vars(fresh))

            metadata = document.get(Metadata.KEY) or {}
            info.metadata = copy.deepcopy(metadata)
            info.change_vector = metadata.get(Metadata.CHANGE_VECTOR)
            info.document = {k: v for k, v in document.items() if k != Metadata.KEY}
            info.mark_synced(session._serialize(info))

        def load_starting_with(
            self,
            id_prefix: str,
            object_type: type | None = None,
            start: int = 0,
            page_size: int = 25,
        ) -> list[Any]:
            session = self._session
            session._assert_open()
            session._increment_requests_count()
            command = GetDocumentsCommand(starts_with=id_prefix, start=start, page_size=page_size)
            session._request_executor.execute(command)
            results = (command.result or {}).get("Results") or []
            return [session._track_document(document, object_type) for document in results if document]
