"""Base types for commands sent through the request executor."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ServerNode:
    """A server URL paired with the database the executor talks to."""

    url: str
    database: str | None = None

    def database_url(self, path: str = "") -> str:
        return f"{self.url}/databases/{self.database}{path}"


@dataclass
class HttpRequest:
    """Everything needed to issue one HTTP call against a node."""

    method: str
    url: str
    params: list[tuple[str, Any]] | dict[str, Any] | None = None
    json: Any = None
    headers: dict[str, str] = field(default_factory=dict)


class RavenCommand:
    """A single request/response exchange with the server.

    Subclasses build the HTTP request for a node and turn the decoded JSON
    payload into ``result``.
    """

    is_read_request = False
    requires_database = True

    def __init__(self) -> None:
        self.result: Any = None
        self.from_cache = False

    def create_request(self, node: ServerNode) -> HttpRequest:
        raise NotImplementedError

    def set_response(self, response: Any, from_cache: bool) -> None:
        self.result = response
        self.from_cache = from_cache
