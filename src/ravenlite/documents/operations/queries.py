"""Set-based document operations."""

from typing import Any

from ravenlite.documents.conventions import DocumentConventions
from ravenlite.documents.serializer import EntitySerializer
from ravenlite.exceptions import InvalidArgumentException
from ravenlite.http.commands import HttpRequest, RavenCommand, ServerNode


class DeleteByQueryOperation:
    """Delete every document matching an RQL query.

    The server runs this as a background operation; the result holds its
    ``OperationId``.
    """

    def __init__(self, query: str, parameters: dict[str, Any] | None = None) -> None:
        if not query:
            raise InvalidArgumentException("Query cannot be None or empty")
        self._query = query
        self._parameters = parameters or {}

    def get_command(self, conventions: DocumentConventions) -> RavenCommand:
        serializer = EntitySerializer(conventions)
        index_query = {
            "Query": self._query,
            "QueryParameters": serializer.to_json_value(self._parameters),
        }
        return self._DeleteByQueryCommand(index_query)

    class _DeleteByQueryCommand(RavenCommand):
        def __init__(self, index_query: dict[str, Any]) -> None:
            super().__init__()
            self._index_query = index_query

        def create_request(self, node: ServerNode) -> HttpRequest:
            return HttpRequest(
                "DELETE",
                node.database_url("/queries"),
                params=[("allowStale", "false")],
                json=self._index_query,
            )
