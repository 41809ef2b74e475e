"""Index definitions and index creation tasks."""

import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ravenlite.exceptions import InvalidArgumentException

if TYPE_CHECKING:
    from ravenlite.documents.conventions import DocumentConventions
    from ravenlite.documents.store import DocumentStoreBase

logger = logging.getLogger(__name__)


class FieldStorage(enum.Enum):
    YES = "Yes"
    NO = "No"


class FieldIndexing(enum.Enum):
    NO = "No"
    SEARCH = "Search"
    EXACT = "Exact"
    DEFAULT = "Default"


class FieldTermVector(enum.Enum):
    NO = "No"
    YES = "Yes"
    WITH_POSITIONS = "WithPositions"
    WITH_OFFSETS = "WithOffsets"
    WITH_POSITIONS_AND_OFFSETS = "WithPositionsAndOffsets"


class IndexPriority(enum.Enum):
    LOW = "Low"
    NORMAL = "Normal"
    HIGH = "High"


class IndexLockMode(enum.Enum):
    UNLOCK = "Unlock"
    LOCKED_IGNORE = "LockedIgnore"
    LOCKED_ERROR = "LockedError"


@dataclass
class IndexFieldOptions:
    """Per-field indexing options."""

    storage: FieldStorage | None = None
    indexing: FieldIndexing | None = None
    term_vector: FieldTermVector | None = None
    analyzer: str | None = None
    suggestions: bool | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "Storage": self.storage.value if self.storage else None,
            "Indexing": self.indexing.value if self.indexing else None,
            "TermVector": self.term_vector.value if self.term_vector else None,
            "Analyzer": self.analyzer,
            "Suggestions": self.suggestions,
            "Spatial": None,
        }

    @classmethod
    def from_json(cls, json_dict: dict[str, Any]) -> "IndexFieldOptions":
        return cls(
            storage=FieldStorage(json_dict["Storage"]) if json_dict.get("Storage") else None,
            indexing=FieldIndexing(json_dict["Indexing"]) if json_dict.get("Indexing") else None,
            term_vector=FieldTermVector(json_dict["TermVector"]) if json_dict.get("TermVector") else None,
            analyzer=json_dict.get("Analyzer"),
            suggestions=json_dict.get("Suggestions"),
        )


@dataclass
class IndexDefinition:
    """A static index as understood by the server.

    Attributes:
        name: Index name, e.g. ``Users/ByName``
        maps: One or more LINQ/JavaScript map functions
        reduce: Optional reduce function
        fields: Field name -> options
        priority: Indexing priority
        lock_mode: Whether the definition can be overwritten
        configuration: Index-level configuration overrides
    """

    name: str | None = None
    maps: set[str] = field(default_factory=set)
    reduce: str | None = None
    fields: dict[str, IndexFieldOptions] = field(default_factory=dict)
    priority: IndexPriority | None = None
    lock_mode: IndexLockMode | None = None
    configuration: dict[str, str] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        if not self.name:
            raise InvalidArgumentException("Index name cannot be empty")
        if not self.maps:
            raise InvalidArgumentException(f"Index '{self.name}' must have at least one map")
        return {
            "Name": self.name,
            "Maps": sorted(self.maps),
            "Reduce": self.reduce,
            "Fields": {name: options.to_json() for name, options in self.fields.items()},
            "Priority": self.priority.value if self.priority else None,
            "LockMode": self.lock_mode.value if self.lock_mode else None,
            "Configuration": dict(self.configuration),
        }

    @classmethod
    def from_json(cls, json_dict: dict[str, Any]) -> "IndexDefinition":
        return cls(
            name=json_dict.get("Name"),
            maps=set(json_dict.get("Maps") or []),
            reduce=json_dict.get("Reduce"),
            fields={
                name: IndexFieldOptions.from_json(options)
                for name, options in (json_dict.get("Fields") or {}).items()
            },
            priority=IndexPriority(json_dict["Priority"]) if json_dict.get("Priority") else None,
            lock_mode=IndexLockMode(json_dict["LockMode"]) if json_dict.get("LockMode") else None,
            configuration=dict(json_dict.get("Configuration") or {}),
        )


class AbstractIndexCreationTask:
    """Base class for indexes defined in code.

    Subclasses set ``map`` (and optionally ``reduce`` and per-field
    settings); the index name comes from the class name with ``_`` turned
    into ``/``::

        class Users_ByName(AbstractIndexCreationTask):
            map = "from u in docs.Users select new { u.name }"
    """

    map: str | None = None
    reduce: str | None = None
    stores: dict[str, FieldStorage] = {}
    indexes: dict[str, FieldIndexing] = {}
    analyzers: dict[str, str] = {}
    priority: IndexPriority | None = None
    lock_mode: IndexLockMode | None = None
    configuration: dict[str, str] = {}

    def __init__(self) -> None:
        self.conventions: DocumentConventions | None = None

    @property
    def index_name(self) -> str:
        return type(self).__name__.replace("_", "/")

    def create_index_definition(self) -> IndexDefinition:
        if not self.map:
            raise InvalidArgumentException(f"Index creation task {type(self).__name__} has no map")

        field_names = set(self.stores) | set(self.indexes) | set(self.analyzers)
        fields = {
            name: IndexFieldOptions(
                storage=self.stores.get(name),
                indexing=self.indexes.get(name),
                analyzer=self.analyzers.get(name),
            )
            for name in field_names
        }
        return IndexDefinition(
            name=self.index_name,
            maps={self.map},
            reduce=self.reduce,
            fields=fields,
            priority=self.priority,
            lock_mode=self.lock_mode,
            configuration=dict(self.configuration),
        )

    def execute(
        self,
        store: "DocumentStoreBase",
        conventions: "DocumentConventions | None" = None,
        database: str | None = None,
    ) -> None:
        """Put this index on the server.

        Args:
            store: Initialized document store
            conventions: Conventions to use (default: the store's)
            database: Target database (default: the store's)
        """
        from ravenlite.documents.operations.indexes import PutIndexesOperation

        self.conventions = conventions or store.conventions
        definition = self.create_index_definition()
        logger.info(f"🔧 Putting index '{definition.name}'")
        store.maintenance.for_database(database or store.database).send(PutIndexesOperation(definition))


class IndexCreation:
    """Helpers to create many index tasks at once."""

    @staticmethod
    def create_indexes_to_add(
        tasks: list[AbstractIndexCreationTask],
        conventions: "DocumentConventions",
    ) -> list[IndexDefinition]:
        definitions = []
        for task in tasks:
            task.conventions = conventions
            definitions.append(task.create_index_definition())
        return definitions

    @staticmethod
    def create_indexes(
        tasks: list[AbstractIndexCreationTask],
        store: "DocumentStoreBase",
        database: str | None = None,
    ) -> None:
        store.execute_indexes(tasks, database)
