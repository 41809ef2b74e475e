"""Tests for document conventions."""

import pytest

from conftest import Company, User
from ravenlite.documents.conventions import DocumentConventions, pluralize
from ravenlite.exceptions import InvalidOperationException


class _IdResolver:
    def resolve_id_property(self, type_name):
        return "key" if type_name == "Product" else None

    def resolve_constructor(self, type_name):
        return Product if type_name == "Product" else None


class Product:
    def __init__(self, key=None, title=""):
        self.key = key
        self.title = title


class TestPluralize:
    """Tests for collection name derivation."""

    @pytest.mark.parametrize(
        "name, expected",
        [("User", "Users"), ("Company", "Companies"), ("Box", "Boxes"), ("Day", "Days"), ("Address", "Addresses")],
    )
    def test_pluralize(self, name, expected):
        assert pluralize(name) == expected


class TestCollections:
    """Tests for collection names and id generation."""

    def test_collection_from_class(self):
        conventions = DocumentConventions()
        assert conventions.get_collection_name(User) == "Users"
        assert conventions.get_collection_name(Company(name="x")) == "Companies"

    def test_custom_collection_function(self):
        conventions = DocumentConventions()
        conventions.find_collection_name = lambda object_type: "People" if object_type is User else None
        assert conventions.get_collection_name(User) == "People"
        assert conventions.get_collection_name(Company) == "Companies"

    def test_dict_collection_from_metadata(self):
        conventions = DocumentConventions()
        assert conventions.get_collection_name({"@metadata": {"@collection": "Orders"}}) == "Orders"
        assert conventions.get_collection_name({"name": "plain"}) is None

    def test_generate_id_for_typed_entity(self):
        assert DocumentConventions().generate_document_id("db1", User()) == "Users/"

    def test_generate_id_for_untyped_dict_is_unique(self):
        conventions = DocumentConventions()
        first = conventions.generate_document_id("db1", {"a": 1})
        second = conventions.generate_document_id("db1", {"a": 1})
        assert first != second
        assert "/" not in first


class TestFreezing:
    """Tests for freezing conventions on store initialization."""

    def test_setters_rejected_when_frozen(self):
        conventions = DocumentConventions()
        conventions.freeze()
        with pytest.raises(InvalidOperationException):
            conventions.identity_property_name = "key"
        with pytest.raises(InvalidOperationException):
            conventions.parse_dates = False

    def test_pipe_separator_rejected(self):
        with pytest.raises(InvalidOperationException):
            DocumentConventions().identity_parts_separator = "|"

    def test_resolvers_allowed_after_freeze(self):
        conventions = DocumentConventions()
        conventions.freeze()
        conventions.add_document_info_resolver(_IdResolver())
        assert conventions.get_identity_property(Product) == "key"


class TestTypeResolution:
    """Tests for identity properties and class lookup."""

    def test_default_identity_property(self):
        assert DocumentConventions().get_identity_property(User) == "Id"

    def test_resolver_constructor_wins(self):
        conventions = DocumentConventions().add_document_info_resolver(_IdResolver())
        assert conventions.resolve_type("some.other.module.Product") is Product

    def test_registered_type(self):
        conventions = DocumentConventions()
        conventions.register_type(User)
        assert conventions.resolve_type(conventions.find_python_class_name(User)) is User

    def test_import_by_module_path(self):
        conventions = DocumentConventions()
        resolved = conventions.resolve_type("ravenlite.documents.conventions.DocumentConventions")
        assert resolved is DocumentConventions

    def test_unknown_type_is_none(self):
        conventions = DocumentConventions()
        assert conventions.resolve_type("no.such.module.Thing") is None
        assert conventions.resolve_type(None) is None
