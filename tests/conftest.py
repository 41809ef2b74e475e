"""Pytest configuration and shared fixtures for the test suite."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

import pytest
import requests

from ravenlite.config import RavenConfig
from ravenlite.documents.store import DocumentStore


# Sample entities
@dataclass
class Address:
    street: str = ""
    city: str = ""


@dataclass
class User:
    name: str = ""
    age: int = 0
    Id: str | None = None


@dataclass
class Company:
    name: str = ""
    address: Address | None = None
    employees: list[Address] = field(default_factory=list)
    founded: datetime | None = None
    Id: str | None = None


# Fake HTTP layer
def make_response(
    status: int = 200,
    payload: Any = None,
    headers: dict[str, str] | None = None,
    url: str = "http://localhost:8080",
) -> requests.Response:
    """Build a real ``requests.Response`` without touching the network.

    Args:
        status: HTTP status code
        payload: JSON-serializable body (None = empty body)
        headers: Response headers
        url: URL the response claims to come from
    """
    response = requests.Response()
    response.status_code = status
    response._content = json.dumps(payload).encode() if payload is not None else b""
    response.headers.update(headers or {})
    response.url = url
    return response


class FakeHttpSession:
    """Stands in for ``requests.Session``; replays queued responses in order.

    A queued item can be a Response, an exception instance (raised from
    ``request``) or a callable receiving the recorded call and returning a
    Response.
    """

    def __init__(self) -> None:
        self.headers: dict[str, str] = {}
        self.cert = None
        self.verify = True
        self.calls: list[dict[str, Any]] = []
        self.queue: list[Any] = []
        self.closed = False

    def add(self, *items: Any) -> "FakeHttpSession":
        self.queue.extend(items)
        return self

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        call = {"method": method, "url": url, "params": params, "json": json, "headers": headers or {}}
        self.calls.append(call)
        if not self.queue:
            raise AssertionError(f"Unexpected request: {method} {url}")
        item = self.queue.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(call)
        return item

    def close(self) -> None:
        self.closed = True


# Service availability checks
def ravendb_available() -> bool:
    """Check if RavenDB server is running and accessible.

    Returns:
        True if RavenDB is available, False otherwise
    """
    try:
        response = requests.get(f"{RavenConfig.get_urls()[0]}/databases", timeout=2)
        return response.status_code == 200 or response.status_code == 401  # Auth required is OK
    except requests.RequestException:
        return False


@pytest.fixture
def http_session() -> FakeHttpSession:
    """Provide a fake HTTP session with an empty response queue."""
    return FakeHttpSession()


@pytest.fixture
def store(http_session) -> DocumentStore:
    """Provide an initialized store wired to the fake HTTP session.

    Yields:
        DocumentStore for database 'db1' at http://localhost:8080
    """
    document_store = DocumentStore(["http://localhost:8080"], "db1", http_session=http_session)
    document_store.initialize()
    yield document_store
    document_store.close()


@pytest.fixture
def response_factory() -> Callable[..., requests.Response]:
    """Provide the make_response helper to tests."""
    return make_response


@pytest.fixture
def ravendb_store():
    """Provide a store on a freshly created database, skip if RavenDB not available.

    Yields:
        Initialized DocumentStore instance

    Raises:
        pytest.skip: If RavenDB server is not running
    """
    if not ravendb_available():
        pytest.skip(f"RavenDB server not running on {RavenConfig.get_urls()[0]}")

    import uuid

    from ravenlite.database import create_database, create_document_store, delete_database

    database = f"test_ravenlite_{uuid.uuid4().hex[:8]}"
    create_database(database=database)
    document_store = create_document_store(database=database)
    yield document_store
    document_store.close()
    delete_database(database=database)
