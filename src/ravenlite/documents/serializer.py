"""Conversion between Python entities and JSON documents."""

import dataclasses
import enum
import logging
import types
import typing
from datetime import date, datetime
from typing import Any

from ravenlite.constants import Metadata
from ravenlite.documents.conventions import DocumentConventions, SerializedAttribute
from ravenlite.exceptions import InvalidArgumentException
from ravenlite.utils import parse_iso_date, parse_iso_datetime, to_iso

logger = logging.getLogger(__name__)

_PRIMITIVES = (str, int, float, bool, type(None))


def _is_object(value: Any) -> bool:
    """True for user objects that are stored as nested JSON objects."""
    if isinstance(value, (*_PRIMITIVES, dict, list, tuple, set, date, enum.Enum)):
        return False
    return dataclasses.is_dataclass(value) or hasattr(value, "__dict__")


def _public_attributes(entity: Any) -> dict[str, Any]:
    if dataclasses.is_dataclass(entity):
        return {f.name: getattr(entity, f.name) for f in dataclasses.fields(entity)}
    return {k: v for k, v in vars(entity).items() if not k.startswith("_")}


def _unwrap_hint(hint: Any) -> Any:
    """Strip Optional/Union wrappers down to the first concrete type."""
    origin = typing.get_origin(hint)
    if origin is typing.Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        return _unwrap_hint(args[0]) if args else None
    return hint


def _type_hints(object_type: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(object_type)
    except Exception:
        # Forward references to classes we cannot see; fall back to no hints
        return {}


class EntitySerializer:
    """Turns entities into documents and back, following the conventions.

    Args:
        conventions: The store conventions (identity properties, resolvers,
            attribute serializers, date parsing)
    """

    def __init__(self, conventions: DocumentConventions) -> None:
        self.conventions = conventions

    # -------------------------------------------------------------------------
    # Entity -> document
    # -------------------------------------------------------------------------

    def to_json_value(self, value: Any) -> Any:
        """Convert a single value into its JSON representation."""
        if isinstance(value, _PRIMITIVES):
            return value
        if isinstance(value, (datetime, date)):
            return to_iso(value)
        if isinstance(value, enum.Enum):
            return value.value
        if isinstance(value, dict):
            return {str(k): self.to_json_value(v) for k, v in value.items()}
        if isinstance(value, (list, tuple, set)):
            return [self.to_json_value(v) for v in value]
        to_json = getattr(value, "to_json", None)
        if callable(to_json):
            return to_json()
        if _is_object(value):
            return {k: self.to_json_value(v) for k, v in _public_attributes(value).items()}
        raise InvalidArgumentException(f"Cannot serialize value of type {type(value).__name__}")

    def to_document(self, entity: Any, metadata: dict[str, Any]) -> dict[str, Any]:
        """Serialize an entity into a document body.

        Type information is written into ``metadata``: the entity class under
        ``Raven-Python-Type`` and the classes of nested objects under
        ``@nested-object-types``. The identity property is not part of the body.

        Args:
            entity: A dict, dataclass instance or plain object
            metadata: The document metadata, updated in place

        Returns:
            dict: JSON-ready document body without ``@metadata``
        """
        if isinstance(entity, dict):
            attributes = {k: v for k, v in entity.items() if k != Metadata.KEY}
            own_metadata = entity.get(Metadata.KEY)
            if isinstance(own_metadata, dict):
                for key, value in own_metadata.items():
                    metadata.setdefault(key, value)
        else:
            object_type = type(entity)
            self.conventions.register_type(object_type)
            metadata[Metadata.RAVEN_PYTHON_TYPE] = self.conventions.find_python_class_name(object_type)
            identity = self.conventions.get_identity_property(object_type)
            attributes = {k: v for k, v in _public_attributes(entity).items() if k != identity}

        nested_types: dict[str, str] = {}
        document: dict[str, Any] = {}
        for name, value in attributes.items():
            nested = self._nested_type_of(value)
            if nested is not None:
                self.conventions.register_type(nested)
                nested_types[name] = self.conventions.find_python_class_name(nested)

            serialized = SerializedAttribute(name, self.to_json_value(value), metadata)
            for serializer in self.conventions.attribute_serializers:
                hook = getattr(serializer, "on_serialized", None)
                if hook is not None:
                    hook(serialized)
            document[serialized.serialized_attribute] = serialized.serialized_value

        if nested_types:
            metadata[Metadata.NESTED_OBJECT_TYPES] = nested_types
        else:
            metadata.pop(Metadata.NESTED_OBJECT_TYPES, None)
        return document

    @staticmethod
    def _nested_type_of(value: Any) -> type | None:
        if isinstance(value, (list, tuple)):
            items = [item for item in value if item is not None]
            if items and all(_is_object(item) for item in items):
                return type(items[0])
            return None
        if _is_object(value):
            return type(value)
        return None

    # -------------------------------------------------------------------------
    # Document -> entity
    # -------------------------------------------------------------------------

    def to_entity(
        self,
        document: dict[str, Any],
        object_type: type | None = None,
        nested_object_types: dict[str, type] | None = None,
    ) -> Any:
        """Deserialize a document (with ``@metadata``) into an entity.

        Args:
            document: Raw document as returned by the server
            object_type: Class to build; resolved from metadata when omitted
            nested_object_types: Attribute name -> class overrides for nested values

        Returns:
            The entity, or a dict when no class can be determined
        """
        metadata = document.get(Metadata.KEY) or {}
        if object_type is None:
            object_type = self.conventions.resolve_type(metadata.get(Metadata.RAVEN_PYTHON_TYPE))

        attributes: dict[str, Any] = {}
        for name, value in document.items():
            if name == Metadata.KEY:
                continue
            serialized = SerializedAttribute(name, value, metadata)
            for serializer in self.conventions.attribute_serializers:
                hook = getattr(serializer, "on_unserialized", None)
                if hook is not None:
                    hook(serialized)
            attributes[serialized.serialized_attribute] = serialized.serialized_value

        nested = dict(nested_object_types or {})
        for name, type_name in (metadata.get(Metadata.NESTED_OBJECT_TYPES) or {}).items():
            if name not in nested:
                resolved = self.conventions.resolve_type(type_name)
                if resolved is not None:
                    nested[name] = resolved

        if object_type is None or object_type is dict:
            result = {name: self._revive(value, nested.get(name)) for name, value in attributes.items()}
            result[Metadata.KEY] = dict(metadata)
            return result

        entity = self._build(object_type, attributes, nested)
        document_id = metadata.get(Metadata.ID)
        if document_id is not None:
            setattr(entity, self.conventions.get_identity_property(object_type), document_id)
        return entity

    def _build(self, object_type: type, attributes: dict[str, Any], nested: dict[str, type] | None = None) -> Any:
        hints = _type_hints(object_type)
        values = {}
        for name, value in attributes.items():
            target = (nested or {}).get(name) or hints.get(name)
            values[name] = self._revive(value, target)
        return self._instantiate(object_type, values)

    def _revive(self, value: Any, hint: Any = None) -> Any:
        hint = _unwrap_hint(hint)
        if hint in (list, tuple, set, dict, typing.Any, object):
            hint = None
        if value is None:
            return None

        origin = typing.get_origin(hint)
        if origin in (list, tuple, set) and isinstance(value, list):
            args = typing.get_args(hint)
            items = [self._revive(item, args[0] if args else None) for item in value]
            return origin(items) if origin is not list else items
        if origin is dict and isinstance(value, dict):
            args = typing.get_args(hint)
            value_hint = args[1] if len(args) == 2 else None
            return {k: self._revive(v, value_hint) for k, v in value.items()}

        if isinstance(hint, type):
            if isinstance(value, list):
                return [self._revive(item, hint) for item in value]
            if issubclass(hint, datetime) and isinstance(value, str):
                parsed = parse_iso_datetime(value)
                return parsed if parsed is not None else datetime.fromisoformat(value)
            if issubclass(hint, date) and isinstance(value, str):
                return date.fromisoformat(value[:10])
            if issubclass(hint, enum.Enum):
                return hint(value)
            if isinstance(value, dict) and hint is not dict and not issubclass(hint, _PRIMITIVES):
                return self._build(hint, value)
            return value

        if isinstance(value, list):
            return [self._revive(item) for item in value]
        if isinstance(value, dict):
            return {k: self._revive(v) for k, v in value.items()}
        if self.conventions.parse_dates and isinstance(value, str):
            parsed = parse_iso_datetime(value)
            if parsed is not None:
                return parsed
            parsed_date = parse_iso_date(value)
            if parsed_date is not None:
                return parsed_date
        return value

    @staticmethod
    def _instantiate(object_type: type, values: dict[str, Any]) -> Any:
        """Create an instance, calling the constructor only when it fits."""
        entity = None
        if dataclasses.is_dataclass(object_type):
            init_fields = {f.name for f in dataclasses.fields(object_type) if f.init}
            kwargs = {k: v for k, v in values.items() if k in init_fields}
            try:
                entity = object_type(**kwargs)
            except TypeError:
                entity = None
        else:
            try:
                entity = object_type()
            except TypeError:
                entity = None

        if entity is None:
            entity = object_type.__new__(object_type)
            if dataclasses.is_dataclass(object_type):
                for f in dataclasses.fields(object_type):
                    if f.default is not dataclasses.MISSING:
                        setattr(entity, f.name, f.default)
                    elif f.default_factory is not dataclasses.MISSING:
                        setattr(entity, f.name, f.default_factory())

        for name, value in values.items():
            setattr(entity, name, value)
        return entity
