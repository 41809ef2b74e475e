"""Document-level commands used by sessions."""

from typing import Any

from ravenlite.http.commands import HttpRequest, RavenCommand, ServerNode


class GetDocumentsCommand(RavenCommand):
    """Load documents by id, or page through ids starting with a prefix.

    The result is the server payload (``{"Results": [...], "Includes": {...}}``)
    or None when none of the documents exist.
    """

    is_read_request = True

    def __init__(
        self,
        ids: list[str] | None = None,
        starts_with: str | None = None,
        start: int = 0,
        page_size: int = 25,
        metadata_only: bool = False,
    ) -> None:
        super().__init__()
        if not ids and starts_with is None:
            raise ValueError("Either ids or starts_with must be given")
        self.ids = list(ids or [])
        self.starts_with = starts_with
        self.start = start
        self.page_size = page_size
        self.metadata_only = metadata_only

    def create_request(self, node: ServerNode) -> HttpRequest:
        params: list[tuple[str, Any]] = []
        if self.starts_with is not None:
            params.extend(
                [
                    ("startsWith", self.starts_with),
                    ("start", self.start),
                    ("pageSize", self.page_size),
                ]
            )
        else:
            params.extend(("id", key) for key in self.ids)
        if self.metadata_only:
            params.append(("metadataOnly", "true"))
        return HttpRequest("GET", node.database_url("/docs"), params=params)


class HeadDocumentCommand(RavenCommand):
    """Check whether a document exists; the result is its change vector or None."""

    is_read_request = True

    def __init__(self, key: str) -> None:
        super().__init__()
        if not key:
            raise ValueError("Key cannot be None or empty")
        self.key = key

    def create_request(self, node: ServerNode) -> HttpRequest:
        return HttpRequest("HEAD", node.database_url("/docs"), params=[("id", self.key)])


class BatchCommand(RavenCommand):
    """Send PUT/DELETE commands in a single transaction.

    Each entry of ``commands`` is a dict in the server's batch format, e.g.
    ``{"Id": "users/1", "Type": "PUT", "Document": {...}, "ChangeVector": None}``.
    """

    def __init__(self, commands: list[dict[str, Any]]) -> None:
        super().__init__()
        self.commands = commands

    def create_request(self, node: ServerNode) -> HttpRequest:
        return HttpRequest("POST", node.database_url("/bulk_docs"), json={"Commands": self.commands})


class QueryCommand(RavenCommand):
    """Run an RQL query; the result is the raw query result payload."""

    def __init__(self, index_query: dict[str, Any], metadata_only: bool = False) -> None:
        super().__init__()
        self.index_query = index_query
        self.metadata_only = metadata_only

    def create_request(self, node: ServerNode) -> HttpRequest:
        params: list[tuple[str, Any]] = []
        if self.metadata_only:
            params.append(("metadataOnly", "true"))
        return HttpRequest("POST", node.database_url("/queries"), params=params, json=self.index_query)
