"""Maintenance operations on indexes."""

from typing import Any

from ravenlite.documents.conventions import DocumentConventions
from ravenlite.documents.indexes import IndexDefinition
from ravenlite.exceptions import InvalidArgumentException
from ravenlite.http.commands import HttpRequest, RavenCommand, ServerNode


class PutIndexesOperation:
    """Create or update one or more index definitions.

    The result is a list of ``{"Index": name, "RaftCommandIndex": n}`` dicts.
    """

    def __init__(self, *indexes_to_add: IndexDefinition) -> None:
        if not indexes_to_add:
            raise InvalidArgumentException("indexes_to_add cannot be empty")
        self._indexes_to_add = indexes_to_add

    def get_command(self, conventions: DocumentConventions) -> RavenCommand:
        return self._PutIndexesCommand(self._indexes_to_add)

    class _PutIndexesCommand(RavenCommand):
        def __init__(self, indexes: tuple[IndexDefinition, ...]) -> None:
            super().__init__()
            self._indexes = [index.to_json() for index in indexes]

        def create_request(self, node: ServerNode) -> HttpRequest:
            return HttpRequest("PUT", node.database_url("/admin/indexes"), json={"Indexes": self._indexes})

        def set_response(self, response: Any, from_cache: bool) -> None:
            super().set_response((response or {}).get("Results", []), from_cache)


class GetIndexNamesOperation:
    """List index names, paged."""

    def __init__(self, start: int = 0, page_size: int = 100) -> None:
        self._start = start
        self._page_size = page_size

    def get_command(self, conventions: DocumentConventions) -> RavenCommand:
        return self._GetIndexNamesCommand(self._start, self._page_size)

    class _GetIndexNamesCommand(RavenCommand):
        is_read_request = True

        def __init__(self, start: int, page_size: int) -> None:
            super().__init__()
            self._start = start
            self._page_size = page_size

        def create_request(self, node: ServerNode) -> HttpRequest:
            params = [("start", self._start), ("pageSize", self._page_size), ("namesOnly", "true")]
            return HttpRequest("GET", node.database_url("/indexes"), params=params)

        def set_response(self, response: Any, from_cache: bool) -> None:
            super().set_response(list((response or {}).get("Results", [])), from_cache)


class GetIndexOperation:
    """Fetch one index definition; the result is None when it does not exist."""

    def __init__(self, index_name: str) -> None:
        if not index_name:
            raise InvalidArgumentException("Index name cannot be None or empty")
        self._index_name = index_name

    def get_command(self, conventions: DocumentConventions) -> RavenCommand:
        return self._GetIndexCommand(self._index_name)

    class _GetIndexCommand(RavenCommand):
        is_read_request = True

        def __init__(self, index_name: str) -> None:
            super().__init__()
            self._index_name = index_name

        def create_request(self, node: ServerNode) -> HttpRequest:
            return HttpRequest("GET", node.database_url("/indexes"), params=[("name", self._index_name)])

        def set_response(self, response: Any, from_cache: bool) -> None:
            results = (response or {}).get("Results") or []
            super().set_response(IndexDefinition.from_json(results[0]) if results else None, from_cache)


class DeleteIndexOperation:
    """Delete an index by name."""

    def __init__(self, index_name: str) -> None:
        if not index_name:
            raise InvalidArgumentException("Index name cannot be None or empty")
        self._index_name = index_name

    def get_command(self, conventions: DocumentConventions) -> RavenCommand:
        return self._DeleteIndexCommand(self._index_name)

    class _DeleteIndexCommand(RavenCommand):
        def __init__(self, index_name: str) -> None:
            super().__init__()
            self._index_name = index_name

        def create_request(self, node: ServerNode) -> HttpRequest:
            return HttpRequest("DELETE", node.database_url("/indexes"), params=[("name", self._index_name)])
