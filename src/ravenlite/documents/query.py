"""Fluent RQL queries executed through a session."""

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Iterator

from ravenlite.constants import Metadata
from ravenlite.exceptions import InvalidOperationException
from ravenlite.utils import escape_rql_string, quote_collection, quote_field

if TYPE_CHECKING:
    from ravenlite.documents.session.session import DocumentSession


@dataclass
class QueryStatistics:
    """Details about the last execution of a query."""

    total_results: int = 0
    skipped_results: int = 0
    is_stale: bool = False
    index_name: str | None = None
    duration_in_ms: int = 0
    result_etag: int | None = None

    def update(self, result: dict[str, Any]) -> None:
        self.total_results = result.get("TotalResults", 0)
        self.skipped_results = result.get("SkippedResults", 0)
        self.is_stale = result.get("IsStale", False)
        self.index_name = result.get("IndexName")
        self.duration_in_ms = result.get("DurationInMs", 0)
        self.result_etag = result.get("ResultEtag")


def _format_timespan(timeout: timedelta) -> str:
    total = int(timeout.total_seconds())
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02}:{minutes:02}:{seconds:02}"


class AbstractDocumentQuery:
    """Shared execution logic for built and raw queries."""

    def __init__(
        self,
        session: "DocumentSession",
        object_type: type | None = None,
        nested_object_types: dict[str, type] | None = None,
    ) -> None:
        self.session = session
        self.object_type = object_type
        self.nested_object_types = nested_object_types
        self.query_parameters: dict[str, Any] = {}
        self._wait_for_non_stale_results = False
        self._timeout: timedelta | None = None
        self._statistics = QueryStatistics()
        self._projection = False

    def to_rql(self) -> str:
        raise NotImplementedError

    def wait_for_non_stale_results(self, timeout: timedelta | None = None) -> "AbstractDocumentQuery":
        self._wait_for_non_stale_results = True
        self._timeout = timeout
        return self

    def statistics(self) -> QueryStatistics:
        return self._statistics

    @property
    def is_projection(self) -> bool:
        return self._projection

    def to_index_query(self) -> dict[str, Any]:
        """The JSON body sent to the server's query endpoint."""
        index_query: dict[str, Any] = {
            "Query": self.to_rql(),
            "QueryParameters": self.session.serializer.to_json_value(self.query_parameters),
        }
        if self._wait_for_non_stale_results:
            index_query["WaitForNonStaleResults"] = True
            if self._timeout is not None:
                index_query["WaitForNonStaleResultsTimeout"] = _format_timespan(self._timeout)
        return index_query

    def _execute(self) -> list[Any]:
        result = self.session._execute_query(self)
        self._statistics.update(result)
        return self.session._convert_query_results(self, result.get("Results", []))

    def all(self) -> list[Any]:
        return self._execute()

    def __iter__(self) -> Iterator[Any]:
        return iter(self._execute())

    def first(self) -> Any:
        results = self._execute()
        if not results:
            raise InvalidOperationException("Expected at least one result")
        return results[0]

    def first_or_default(self) -> Any:
        results = self._execute()
        return results[0] if results else None

    def single(self) -> Any:
        results = self._execute()
        if len(results) != 1:
            raise InvalidOperationException(f"Expected single result, got: {len(results)}")
        return results[0]

    def count(self) -> int:
        self._execute()
        return self._statistics.total_results

    def any(self) -> bool:
        return self.count() > 0


class RawDocumentQuery(AbstractDocumentQuery):
    """A query given as literal RQL, with named parameters."""

    def __init__(self, session: "DocumentSession", query: str, object_type: type | None = None) -> None:
        super().__init__(session, object_type)
        self._query = query

    def add_parameter(self, name: str, value: Any) -> "RawDocumentQuery":
        self.query_parameters[name.lstrip("$")] = value
        return self

    def to_rql(self) -> str:
        return self._query


class DocumentQuery(AbstractDocumentQuery):
    """Builds RQL from chained calls.

    Consecutive conditions are joined with ``and`` unless ``or_else()`` is
    called between them. Values are always sent as query parameters::

        session.query(User).where_equals("name", "Arek").order_by("age").take(10).all()
    """

    def __init__(
        self,
        session: "DocumentSession",
        object_type: type | None = None,
        collection: str | None = None,
        index_name: str | None = None,
        nested_object_types: dict[str, type] | None = None,
    ) -> None:
        super().__init__(session, object_type, nested_object_types)
        if collection and index_name:
            raise InvalidOperationException("Query can target either a collection or an index, not both")
        if collection is None and index_name is None and object_type is not None:
            collection = session.conventions.get_collection_name(object_type)
        self.collection = collection
        self.index_name = index_name
        self._where_tokens: list[str] = []
        self._order_by: list[str] = []
        self._select: list[str] = []
        self._skip: int | None = None
        self._take: int | None = None
        self._negate = False

    # -------------------------------------------------------------------------
    # Building blocks
    # -------------------------------------------------------------------------

    def _add_parameter(self, value: Any) -> str:
        name = f"p{len(self.query_parameters)}"
        self.query_parameters[name] = value
        return f"${name}"

    def _append_operator_if_needed(self) -> None:
        if self._where_tokens and self._where_tokens[-1] not in ("(", "and", "or", "and not", "or not"):
            self._where_tokens.append("and")

    def _add_condition(self, condition: str) -> "DocumentQuery":
        self._append_operator_if_needed()
        if self._negate:
            self._negate = False
            if self._where_tokens and self._where_tokens[-1] in ("and", "or"):
                self._where_tokens[-1] = f"{self._where_tokens[-1]} not"
            else:
                condition = f"true and not {condition}"
        self._where_tokens.append(condition)
        return self

    # -------------------------------------------------------------------------
    # Filtering
    # -------------------------------------------------------------------------

    def where_equals(self, field_name: str, value: Any, exact: bool = False) -> "DocumentQuery":
        if value is None:
            condition = f"{quote_field(field_name)} = null"
        else:
            condition = f"{quote_field(field_name)} = {self._add_parameter(value)}"
        return self._add_condition(f"exact({condition})" if exact else condition)

    def where_not_equals(self, field_name: str, value: Any) -> "DocumentQuery":
        target = "null" if value is None else self._add_parameter(value)
        return self._add_condition(f"{quote_field(field_name)} != {target}")

    def where_in(self, field_name: str, values: list[Any]) -> "DocumentQuery":
        return self._add_condition(f"{quote_field(field_name)} in ({self._add_parameter(list(values))})")

    def where_starts_with(self, field_name: str, prefix: str) -> "DocumentQuery":
        return self._add_condition(f"startsWith({quote_field(field_name)}, {self._add_parameter(prefix)})")

    def where_ends_with(self, field_name: str, suffix: str) -> "DocumentQuery":
        return self._add_condition(f"endsWith({quote_field(field_name)}, {self._add_parameter(suffix)})")

    def where_greater_than(self, field_name: str, value: Any) -> "DocumentQuery":
        return self._add_condition(f"{quote_field(field_name)} > {self._add_parameter(value)}")

    def where_greater_than_or_equal(self, field_name: str, value: Any) -> "DocumentQuery":
        return self._add_condition(f"{quote_field(field_name)} >= {self._add_parameter(value)}")

    def where_less_than(self, field_name: str, value: Any) -> "DocumentQuery":
        return self._add_condition(f"{quote_field(field_name)} < {self._add_parameter(value)}")

    def where_less_than_or_equal(self, field_name: str, value: Any) -> "DocumentQuery":
        return self._add_condition(f"{quote_field(field_name)} <= {self._add_parameter(value)}")

    def where_between(self, field_name: str, start: Any, end: Any) -> "DocumentQuery":
        low = self._add_parameter(start)
        high = self._add_parameter(end)
        return self._add_condition(f"{quote_field(field_name)} between {low} and {high}")

    def where_exists(self, field_name: str) -> "DocumentQuery":
        return self._add_condition(f"exists({quote_field(field_name)})")

    def search(self, field_name: str, terms: str) -> "DocumentQuery":
        return self._add_condition(f"search({quote_field(field_name)}, {self._add_parameter(terms)})")

    def and_also(self) -> "DocumentQuery":
        if not self._where_tokens or self._where_tokens[-1] in ("(", "and", "or"):
            raise InvalidOperationException("and_also() must follow a condition")
        self._where_tokens.append("and")
        return self

    def or_else(self) -> "DocumentQuery":
        if not self._where_tokens or self._where_tokens[-1] in ("(", "and", "or"):
            raise InvalidOperationException("or_else() must follow a condition")
        self._where_tokens.append("or")
        return self

    def not_(self) -> "DocumentQuery":
        self._negate = True
        return self

    def open_subclause(self) -> "DocumentQuery":
        self._append_operator_if_needed()
        self._where_tokens.append("(")
        return self

    def close_subclause(self) -> "DocumentQuery":
        self._where_tokens.append(")")
        return self

    # -------------------------------------------------------------------------
    # Ordering, projection, paging
    # -------------------------------------------------------------------------

    def order_by(self, field_name: str) -> "DocumentQuery":
        self._order_by.append(quote_field(field_name))
        return self

    def order_by_descending(self, field_name: str) -> "DocumentQuery":
        self._order_by.append(f"{quote_field(field_name)} desc")
        return self

    def order_by_score(self) -> "DocumentQuery":
        self._order_by.append("score()")
        return self

    def select_fields(self, *field_names: str) -> "DocumentQuery":
        self._select.extend(field_names)
        self._projection = bool(self._select)
        return self

    def skip(self, count: int) -> "DocumentQuery":
        self._skip = count
        return self

    def take(self, count: int) -> "DocumentQuery":
        self._take = count
        return self

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _from_clause(self) -> str:
        if self.index_name:
            return f"from index '{escape_rql_string(self.index_name)}'"
        if self.collection:
            return f"from {quote_collection(self.collection)}"
        return f"from {Metadata.ALL_DOCUMENTS_COLLECTION}"

    def to_rql(self) -> str:
        if self._where_tokens and self._where_tokens[-1] in ("and", "or"):
            raise InvalidOperationException("Query ends with a dangling operator")
        if self._where_tokens.count("(") != self._where_tokens.count(")"):
            raise InvalidOperationException("Unbalanced subclauses in query")

        parts = [self._from_clause()]
        if self._where_tokens:
            where = " ".join(self._where_tokens).replace("( ", "(").replace(" )", ")")
            parts.append(f"where {where}")
        if self._order_by:
            parts.append("order by " + ", ".join(self._order_by))
        if self._select:
            parts.append("select " + ", ".join(quote_field(name) for name in self._select))
        if self._skip:
            take = self._take if self._take is not None else 2147483647
            parts.append(f"limit {self._skip}, {take}")
        elif self._take is not None:
            parts.append(f"limit {self._take}")
        return " ".join(parts)

    def count(self) -> int:
        previous = self._take
        self._take = 0
        try:
            self._execute()
        finally:
            self._take = previous
        return self._statistics.total_results
