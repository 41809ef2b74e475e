"""Server-wide operations on databases."""

from typing import Any

from ravenlite.documents.conventions import DocumentConventions
from ravenlite.exceptions import InvalidArgumentException
from ravenlite.http.commands import HttpRequest, RavenCommand, ServerNode


class CreateDatabaseOperation:
    """Create a database with default settings."""

    def __init__(self, database_name: str, replication_factor: int = 1) -> None:
        if not database_name:
            raise InvalidArgumentException("Database name is required")
        self._database_name = database_name
        self._replication_factor = replication_factor

    def get_command(self, conventions: DocumentConventions) -> RavenCommand:
        return self._CreateDatabaseCommand(self._database_name, self._replication_factor)

    class _CreateDatabaseCommand(RavenCommand):
        requires_database = False

        def __init__(self, database_name: str, replication_factor: int) -> None:
            super().__init__()
            self._database_name = database_name
            self._replication_factor = replication_factor

        def create_request(self, node: ServerNode) -> HttpRequest:
            params = [("name", self._database_name), ("replicationFactor", self._replication_factor)]
            payload = {"DatabaseName": self._database_name, "Settings": {}, "Disabled": False}
            return HttpRequest("PUT", f"{node.url}/admin/databases", params=params, json=payload)


class DeleteDatabaseOperation:
    """Delete a database; ``hard_delete`` also removes its files."""

    def __init__(self, database_name: str, hard_delete: bool = True) -> None:
        if not database_name:
            raise InvalidArgumentException("Database name is required")
        self._database_name = database_name
        self._hard_delete = hard_delete

    def get_command(self, conventions: DocumentConventions) -> RavenCommand:
        return self._DeleteDatabaseCommand(self._database_name, self._hard_delete)

    class _DeleteDatabaseCommand(RavenCommand):
        requires_database = False

        def __init__(self, database_name: str, hard_delete: bool) -> None:
            super().__init__()
            self._database_name = database_name
            self._hard_delete = hard_delete

        def create_request(self, node: ServerNode) -> HttpRequest:
            payload = {"DatabaseNames": [self._database_name], "HardDelete": self._hard_delete}
            return HttpRequest("DELETE", f"{node.url}/admin/databases", json=payload)


class GetDatabaseNamesOperation:
    """List database names on the server, paged."""

    def __init__(self, start: int = 0, page_size: int = 100) -> None:
        self._start = start
        self._page_size = page_size

    def get_command(self, conventions: DocumentConventions) -> RavenCommand:
        return self._GetDatabaseNamesCommand(self._start, self._page_size)

    class _GetDatabaseNamesCommand(RavenCommand):
        is_read_request = True
        requires_database = False

        def __init__(self, start: int, page_size: int) -> None:
            super().__init__()
            self._start = start
            self._page_size = page_size

        def create_request(self, node: ServerNode) -> HttpRequest:
            params = [("start", self._start), ("pageSize", self._page_size), ("namesOnly", "true")]
            return HttpRequest("GET", f"{node.url}/databases", params=params)

        def set_response(self, response: Any, from_cache: bool) -> None:
            super().set_response(list((response or {}).get("Databases", [])), from_cache)
