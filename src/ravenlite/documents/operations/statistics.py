"""Database and collection statistics."""

from dataclasses import dataclass, field
from typing import Any

from ravenlite.documents.conventions import DocumentConventions
from ravenlite.http.commands import HttpRequest, RavenCommand, ServerNode


@dataclass
class DatabaseStatistics:
    """Subset of the server's database statistics."""

    count_of_documents: int = 0
    count_of_indexes: int = 0
    count_of_conflicts: int = 0
    database_id: str | None = None
    indexes: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_json(cls, json_dict: dict[str, Any]) -> "DatabaseStatistics":
        return cls(
            count_of_documents=json_dict.get("CountOfDocuments", 0),
            count_of_indexes=json_dict.get("CountOfIndexes", 0),
            count_of_conflicts=json_dict.get("CountOfConflicts", 0),
            database_id=json_dict.get("DatabaseId"),
            indexes=list(json_dict.get("Indexes") or []),
        )


@dataclass
class CollectionStatistics:
    """Document counts per collection."""

    count_of_documents: int = 0
    count_of_conflicts: int = 0
    collections: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_json(cls, json_dict: dict[str, Any]) -> "CollectionStatistics":
        return cls(
            count_of_documents=json_dict.get("CountOfDocuments", 0),
            count_of_conflicts=json_dict.get("CountOfConflicts", 0),
            collections=dict(json_dict.get("Collections") or {}),
        )


class GetStatisticsOperation:
    def get_command(self, conventions: DocumentConventions) -> RavenCommand:
        return self._GetStatisticsCommand()

    class _GetStatisticsCommand(RavenCommand):
        is_read_request = True

        def create_request(self, node: ServerNode) -> HttpRequest:
            return HttpRequest("GET", node.database_url("/stats"))

        def set_response(self, response: Any, from_cache: bool) -> None:
            super().set_response(DatabaseStatistics.from_json(response or {}), from_cache)


class GetCollectionStatisticsOperation:
    def get_command(self, conventions: DocumentConventions) -> RavenCommand:
        return self._GetCollectionStatisticsCommand()

    class _GetCollectionStatisticsCommand(RavenCommand):
        is_read_request = True

        def create_request(self, node: ServerNode) -> HttpRequest:
            return HttpRequest("GET", node.database_url("/collections/stats"))

        def set_response(self, response: Any, from_cache: bool) -> None:
            super().set_response(CollectionStatistics.from_json(response or {}), from_cache)
