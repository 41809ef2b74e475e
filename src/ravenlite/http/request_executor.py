"""HTTP request execution against one or more RavenDB nodes."""

import contextlib
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Iterator

import requests

from ravenlite.auth import AuthOptions
from ravenlite.config import RavenConfig
from ravenlite.constants import CLIENT_VERSION, MAX_HTTP_CACHE_ITEMS, Headers
from ravenlite.documents.conventions import DocumentConventions
from ravenlite.exceptions import (
    AllTopologyNodesDownException,
    InvalidOperationException,
    RavenServerError,
)
from ravenlite.http.commands import HttpRequest, RavenCommand, ServerNode

logger = logging.getLogger(__name__)


@dataclass
class CachedItem:
    etag: str
    payload: Any
    stored_at: float

    def age(self) -> float:
        return time.monotonic() - self.stored_at


class HttpCache:
    """ETag cache for GET responses, keyed by URL and query string.

    Holds at most ``max_items`` entries; the least recently used one is
    evicted first.
    """

    def __init__(self, max_items: int = MAX_HTTP_CACHE_ITEMS) -> None:
        self.max_items = max_items
        self._items: OrderedDict[str, CachedItem] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._items)

    @staticmethod
    def key_for(request: HttpRequest) -> str:
        params = request.params or []
        if isinstance(params, dict):
            params = list(params.items())
        query = "&".join(f"{k}={v}" for k, v in params)
        return f"{request.url}?{query}" if query else request.url

    def get(self, key: str) -> CachedItem | None:
        with self._lock:
            item = self._items.get(key)
            if item is not None:
                self._items.move_to_end(key)
            return item

    def set(self, key: str, etag: str, payload: Any) -> None:
        with self._lock:
            self._items[key] = CachedItem(etag=etag, payload=payload, stored_at=time.monotonic())
            self._items.move_to_end(key)
            while len(self._items) > self.max_items:
                self._items.popitem(last=False)

    def touch(self, key: str) -> None:
        with self._lock:
            item = self._items.get(key)
            if item is not None:
                item.stored_at = time.monotonic()
                self._items.move_to_end(key)

    def remove(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()


class RequestExecutor:
    """Sends commands to the configured nodes with failover and caching.

    Nodes are tried in order starting from the last one that answered;
    transport failures move on to the next node. Every HTTP status the
    server returns is final: errors are raised, not retried.

    Args:
        urls: Node URLs (already validated)
        database: Database addressed by database-scoped commands
        conventions: Store conventions
        auth_options: Client certificate settings for https nodes
        timeout: Per-request timeout in seconds (default: RavenConfig.get_request_timeout())
        http_session: ``requests.Session`` to use, mainly for tests
    """

    def __init__(
        self,
        urls: list[str],
        database: str | None,
        conventions: DocumentConventions,
        auth_options: AuthOptions | None = None,
        timeout: float | None = None,
        http_session: requests.Session | None = None,
    ) -> None:
        if not urls:
            raise InvalidOperationException("Request executor needs at least one url")

        self._urls = list(urls)
        self.database = database
        self.conventions = conventions
        self.timeout = timeout if timeout is not None else RavenConfig.get_request_timeout()
        self.cache = HttpCache()
        self.number_of_server_requests = 0
        self._preferred_index = 0
        self._aggressive_duration: float | None = None
        self._closed = False

        self._http = http_session if http_session is not None else requests.Session()
        self._http.headers.update({Headers.CLIENT_VERSION: CLIENT_VERSION})
        if auth_options is not None and auth_options.certificate:
            self._http.cert = auth_options.requests_cert
            self._http.verify = auth_options.requests_verify

        logger.debug(f"Request executor created for {self._urls} (database={database})")

    @property
    def urls(self) -> list[str]:
        return list(self._urls)

    @property
    def preferred_node(self) -> ServerNode:
        return ServerNode(self._urls[self._preferred_index], self.database)

    # -------------------------------------------------------------------------
    # Aggressive caching
    # -------------------------------------------------------------------------

    @property
    def aggressive_caching(self) -> float | None:
        """Seconds a cached response is served without asking the server, or None."""
        return self._aggressive_duration

    @contextlib.contextmanager
    def aggressively_cache_for(self, duration: timedelta | float) -> Iterator[None]:
        seconds = duration.total_seconds() if isinstance(duration, timedelta) else float(duration)
        previous = self._aggressive_duration
        self._aggressive_duration = seconds
        try:
            yield
        finally:
            self._aggressive_duration = previous

    @contextlib.contextmanager
    def disable_aggressive_caching(self) -> Iterator[None]:
        previous = self._aggressive_duration
        self._aggressive_duration = None
        try:
            yield
        finally:
            self._aggressive_duration = previous

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def execute(self, command: RavenCommand) -> Any:
        """Execute a command and return its result.

        Raises:
            InvalidOperationException: If the executor was closed, or the
                command needs a database and none is set
            AllTopologyNodesDownException: If no node could be reached
            RavenServerError: If the server answered with an error status
        """
        if self._closed:
            raise InvalidOperationException("The request executor has been closed")
        if command.requires_database and not self.database:
            raise InvalidOperationException(
                f"Cannot execute {type(command).__name__} without a database. "
                "Set DocumentStore.database or pass a database name."
            )

        node_count = len(self._urls)
        order = [(self._preferred_index + offset) % node_count for offset in range(node_count)]
        failures: list[str] = []

        for index in order:
            node = ServerNode(self._urls[index], self.database)
            request = command.create_request(node)
            cache_key = None
            headers = dict(request.headers)

            if command.is_read_request and request.method == "GET":
                cache_key = HttpCache.key_for(request)
                cached = self.cache.get(cache_key)
                if cached is not None:
                    if self._aggressive_duration is not None and cached.age() < self._aggressive_duration:
                        logger.debug(f"Serving {cache_key} from aggressive cache")
                        command.set_response(cached.payload, True)
                        return command.result
                    headers[Headers.IF_NONE_MATCH] = f'"{cached.etag}"'

            logger.debug(f"{request.method} {request.url} params={request.params}")
            try:
                response = self._http.request(
                    request.method,
                    request.url,
                    params=request.params,
                    json=request.json,
                    headers=headers,
                    timeout=self.timeout,
                )
            except (requests.ConnectionError, requests.Timeout) as e:
                logger.warning(f"Request to {node.url} failed, trying next node: {e}")
                failures.append(f"{node.url}: {e}")
                continue

            self.number_of_server_requests += 1
            self._preferred_index = index
            self._handle_response(command, request, response, cache_key)
            return command.result

        raise AllTopologyNodesDownException(
            f"Tried to send '{type(command).__name__}' to all configured nodes, but none responded: "
            + "; ".join(failures)
        )

    def _handle_response(
        self,
        command: RavenCommand,
        request: HttpRequest,
        response: requests.Response,
        cache_key: str | None,
    ) -> None:
        status = response.status_code

        if status == 304 and cache_key is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                self.cache.touch(cache_key)
                command.set_response(cached.payload, True)
                return

        if request.method == "HEAD":
            if status == 404:
                command.set_response(None, False)
                return
            if not response.ok:
                raise RavenServerError.from_response(response)
            command.set_response(_strip_etag(response.headers.get(Headers.ETAG)), False)
            return

        if status == 404 and command.is_read_request:
            if cache_key is not None:
                self.cache.remove(cache_key)
            command.set_response(None, False)
            return

        if not response.ok:
            error = RavenServerError.from_response(response)
            logger.error(f"❌ {error}")
            raise error

        payload = response.json() if response.content else None
        etag = _strip_etag(response.headers.get(Headers.ETAG))
        if cache_key is not None and etag:
            self.cache.set(cache_key, etag, payload)
        command.set_response(payload, False)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.cache.clear()
        self._http.close()


def _strip_etag(value: str | None) -> str | None:
    if not value:
        return None
    return value.strip('"')
