"""Tests for index definitions and creation tasks."""

import pytest

from ravenlite.documents.indexes import (
    AbstractIndexCreationTask,
    FieldIndexing,
    FieldStorage,
    IndexCreation,
    IndexDefinition,
    IndexFieldOptions,
    IndexPriority,
)
from ravenlite.exceptions import InvalidArgumentException


class Users_ByName(AbstractIndexCreationTask):
    map = "from u in docs.Users select new { u.name }"
    stores = {"name": FieldStorage.YES}
    indexes = {"name": FieldIndexing.SEARCH}
    priority = IndexPriority.HIGH


class Orders_Totals(AbstractIndexCreationTask):
    map = "from o in docs.Orders select new { o.company, count = 1 }"
    reduce = "from r in results group r by r.company into g select new { company = g.Key, count = g.Sum(x => x.count) }"


class Broken(AbstractIndexCreationTask):
    pass


class TestIndexCreationTask:
    """Tests for building definitions from tasks."""

    def test_index_name_from_class(self):
        assert Users_ByName().index_name == "Users/ByName"

    def test_definition_fields(self):
        definition = Users_ByName().create_index_definition()

        assert definition.name == "Users/ByName"
        assert definition.maps == {Users_ByName.map}
        assert definition.fields["name"].storage is FieldStorage.YES
        assert definition.fields["name"].indexing is FieldIndexing.SEARCH
        assert definition.priority is IndexPriority.HIGH

    def test_map_reduce(self):
        definition = Orders_Totals().create_index_definition()
        assert definition.reduce.startswith("from r in results")

    def test_missing_map(self):
        with pytest.raises(InvalidArgumentException, match="has no map"):
            Broken().create_index_definition()

    def test_create_indexes_to_add(self, store):
        definitions = IndexCreation.create_indexes_to_add([Users_ByName(), Orders_Totals()], store.conventions)
        assert [d.name for d in definitions] == ["Users/ByName", "Orders/Totals"]


class TestIndexDefinitionJson:
    """Tests for the wire format of index definitions."""

    def test_to_json(self):
        definition = IndexDefinition(
            name="Users/ByName",
            maps={"from u in docs.Users select new { u.name }"},
            fields={"name": IndexFieldOptions(storage=FieldStorage.YES, analyzer="StandardAnalyzer")},
        )
        json_dict = definition.to_json()

        assert json_dict["Name"] == "Users/ByName"
        assert json_dict["Maps"] == ["from u in docs.Users select new { u.name }"]
        assert json_dict["Fields"]["name"]["Storage"] == "Yes"
        assert json_dict["Fields"]["name"]["Analyzer"] == "StandardAnalyzer"
        assert json_dict["Priority"] is None

    def test_from_json(self):
        definition = IndexDefinition.from_json(
            {
                "Name": "Users/ByName",
                "Maps": ["map"],
                "Fields": {"name": {"Indexing": "Exact"}},
                "Priority": "Low",
            }
        )
        assert definition.fields["name"].indexing is FieldIndexing.EXACT
        assert definition.priority is IndexPriority.LOW

    def test_to_json_requires_name_and_map(self):
        with pytest.raises(InvalidArgumentException):
            IndexDefinition(maps={"map"}).to_json()
        with pytest.raises(InvalidArgumentException, match="at least one map"):
            IndexDefinition(name="x").to_json()


class TestIndexCreationExecute:
    """Tests for sending index tasks to the server."""

    def test_create_indexes_uses_store(self, store, http_session, response_factory):
        http_session.add(response_factory(201, {"Results": []}))

        IndexCreation.create_indexes([Users_ByName(), Orders_Totals()], store)

        assert len(http_session.calls[0]["json"]["Indexes"]) == 2

    def test_task_execute_targets_database(self, store, http_session, response_factory):
        http_session.add(response_factory(201, {"Results": []}))

        Orders_Totals().execute(store, database="sales")

        assert http_session.calls[0]["url"] == "http://localhost:8080/databases/sales/admin/indexes"
