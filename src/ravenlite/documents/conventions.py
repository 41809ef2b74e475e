"""Conventions controlling serialization and identifier resolution."""

import importlib
import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from ravenlite.constants import MAX_NUMBER_OF_REQUESTS_PER_SESSION, Metadata
from ravenlite.exceptions import InvalidOperationException

logger = logging.getLogger(__name__)


@dataclass
class SerializedAttribute:
    """One top-level attribute passing through an attribute serializer.

    Serializers read ``original_attribute``/``original_value`` and may
    overwrite ``serialized_attribute``/``serialized_value``.
    """

    original_attribute: str
    original_value: Any
    metadata: dict[str, Any] = field(default_factory=dict)
    serialized_attribute: str = ""
    serialized_value: Any = None

    def __post_init__(self) -> None:
        if not self.serialized_attribute:
            self.serialized_attribute = self.original_attribute
            self.serialized_value = self.original_value


class DocumentInfoResolver(Protocol):
    """Resolves per-type identity properties and classes by type name.

    Both methods are optional; returning None falls through to the defaults.
    """

    def resolve_id_property(self, type_name: str) -> str | None: ...

    def resolve_constructor(self, type_name: str) -> type | None: ...


class AttributeSerializer(Protocol):
    """Hooks run for every top-level attribute on store and on load."""

    def on_serialized(self, serialized: SerializedAttribute) -> None: ...

    def on_unserialized(self, serialized: SerializedAttribute) -> None: ...


def pluralize(name: str) -> str:
    """Pluralize a class name to derive its collection name.

    Examples: ``User`` -> ``Users``, ``Category`` -> ``Categories``,
    ``Box`` -> ``Boxes``.
    """
    if not name:
        return name
    if re.search(r"[^aeiou]y$", name, re.IGNORECASE):
        return name[:-1] + "ies"
    if re.search(r"(s|x|z|ch|sh)$", name, re.IGNORECASE):
        return name + "es"
    return name + "s"


class DocumentConventions:
    """Client conventions shared by a store and all of its sessions.

    The object is mutable until the owning store is initialized, after which
    it is frozen and any change raises InvalidOperationException.
    """

    def __init__(self) -> None:
        self._frozen = False
        self._identity_property_name = "Id"
        self._identity_parts_separator = "/"
        self._max_number_of_requests_per_session = MAX_NUMBER_OF_REQUESTS_PER_SESSION
        self._parse_dates = True
        self._find_collection_name: Callable[[type], str | None] | None = None
        self._resolvers: list[Any] = []
        self._attribute_serializers: list[Any] = []
        self._types: dict[str, type] = {}

    # -------------------------------------------------------------------------
    # Freezing
    # -------------------------------------------------------------------------

    def freeze(self) -> None:
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def _assert_not_frozen(self) -> None:
        if self._frozen:
            raise InvalidOperationException(
                "Conventions has frozen after 'DocumentStore.initialize()' and no changes can be applied to them"
            )

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    @property
    def identity_property_name(self) -> str:
        return self._identity_property_name

    @identity_property_name.setter
    def identity_property_name(self, value: str) -> None:
        self._assert_not_frozen()
        self._identity_property_name = value

    @property
    def identity_parts_separator(self) -> str:
        return self._identity_parts_separator

    @identity_parts_separator.setter
    def identity_parts_separator(self, value: str) -> None:
        self._assert_not_frozen()
        if value == "|":
            raise InvalidOperationException("Cannot set identity parts separator to '|'")
        self._identity_parts_separator = value

    @property
    def max_number_of_requests_per_session(self) -> int:
        return self._max_number_of_requests_per_session

    @max_number_of_requests_per_session.setter
    def max_number_of_requests_per_session(self, value: int) -> None:
        self._assert_not_frozen()
        self._max_number_of_requests_per_session = value

    @property
    def parse_dates(self) -> bool:
        return self._parse_dates

    @parse_dates.setter
    def parse_dates(self, value: bool) -> None:
        self._assert_not_frozen()
        self._parse_dates = value

    @property
    def find_collection_name(self) -> Callable[[type], str | None] | None:
        return self._find_collection_name

    @find_collection_name.setter
    def find_collection_name(self, value: Callable[[type], str | None] | None) -> None:
        self._assert_not_frozen()
        self._find_collection_name = value

    @property
    def attribute_serializers(self) -> list[Any]:
        return list(self._attribute_serializers)

    # -------------------------------------------------------------------------
    # Resolvers and serializers
    # -------------------------------------------------------------------------

    def add_document_info_resolver(self, resolver: Any) -> "DocumentConventions":
        """Register an object with resolve_id_property/resolve_constructor hooks.

        Resolvers may be added after the store is initialized, mirroring how
        classes are usually registered lazily by application code.
        """
        self._resolvers.append(resolver)
        return self

    def add_attribute_serializer(self, serializer: Any) -> "DocumentConventions":
        """Register an object with on_serialized/on_unserialized hooks."""
        self._attribute_serializers.append(serializer)
        return self

    def register_type(self, object_type: type) -> None:
        """Remember a class so it can be revived from its metadata name."""
        self._types[self.find_python_class_name(object_type)] = object_type

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    def get_identity_property(self, object_type: type | None) -> str:
        """Get the attribute holding the document id for a class.

        Args:
            object_type: The entity class, or None for untyped documents

        Returns:
            str: Attribute name (default: the identity_property_name)
        """
        if object_type is not None and object_type is not dict:
            for resolver in self._resolvers:
                resolve = getattr(resolver, "resolve_id_property", None)
                if resolve is None:
                    continue
                name = resolve(object_type.__name__)
                if name:
                    return name
        return self._identity_property_name

    def find_collection_name_for_type(self, object_type: type) -> str | None:
        if object_type is dict:
            return None
        if self._find_collection_name is not None:
            name = self._find_collection_name(object_type)
            if name:
                return name
        return pluralize(object_type.__name__)

    def get_collection_name(self, entity: Any) -> str | None:
        """Get the collection of an entity instance or class.

        Dict entities only have a collection when their ``@metadata`` names one.
        """
        if entity is None:
            return None
        if isinstance(entity, type):
            return self.find_collection_name_for_type(entity)
        if isinstance(entity, dict):
            metadata = entity.get(Metadata.KEY)
            if isinstance(metadata, dict):
                return metadata.get(Metadata.COLLECTION)
            return None
        return self.find_collection_name_for_type(type(entity))

    def generate_document_id(self, database: str | None, entity: Any) -> str:
        """Generate an id for a new entity.

        Entities with a collection get ``<Collection>/`` so that the server
        assigns the numeric part on save; untyped documents get a UUID.
        """
        collection = self.get_collection_name(entity)
        if collection:
            return f"{collection}{self._identity_parts_separator}"
        return str(uuid.uuid4())

    # -------------------------------------------------------------------------
    # Types
    # -------------------------------------------------------------------------

    @staticmethod
    def find_python_class_name(object_type: type) -> str:
        return f"{object_type.__module__}.{object_type.__qualname__}"

    def resolve_type(self, type_name: str | None) -> type | None:
        """Find the class for a name stored in document metadata.

        Resolvers are asked first (with the short class name), then classes
        seen by this process, then an import of the module path.
        """
        if not type_name:
            return None

        short_name = type_name.rsplit(".", 1)[-1]
        for resolver in self._resolvers:
            resolve = getattr(resolver, "resolve_constructor", None)
            if resolve is None:
                continue
            found = resolve(short_name)
            if isinstance(found, type):
                return found

        if type_name in self._types:
            return self._types[type_name]

        module_name, _, qualname = type_name.rpartition(".")
        while module_name:
            try:
                module = importlib.import_module(module_name)
            except ImportError:
                module_name, _, head = module_name.rpartition(".")
                qualname = f"{head}.{qualname}"
                continue
            target: Any = module
            for part in qualname.split("."):
                target = getattr(target, part, None)
                if target is None:
                    break
            if isinstance(target, type):
                self._types[type_name] = target
                return target
            break

        logger.debug(f"Could not resolve type '{type_name}', falling back to dict")
        return None
