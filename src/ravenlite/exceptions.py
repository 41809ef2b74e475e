"""Exception hierarchy for the ravenlite client.

Validation failures are raised synchronously by the client; everything the
server reports is mapped onto a :class:`RavenServerError` subclass by
:meth:`RavenServerError.from_response` and propagated to the caller.
"""

from typing import Any

import requests


class RavenException(Exception):
    """Base class for every error raised by ravenlite."""


class InvalidArgumentException(RavenException, ValueError):
    """An argument passed to the client is missing or malformed."""


class InvalidOperationException(RavenException, RuntimeError):
    """The call is not valid in the current state of the store or session."""


class NonUniqueObjectException(InvalidOperationException):
    """Another instance with the same document id is already tracked."""


class ServerFileNotFoundError(RavenException, FileNotFoundError):
    """The server executable for the test runner does not exist."""


class ServerStartupError(RavenException):
    """The test server exited or did not report its URL in time."""


class AllTopologyNodesDownException(RavenException):
    """Every configured node failed at the transport level."""


class RavenServerError(RavenException):
    """The server answered with a non-success HTTP status.

    Attributes:
        status_code: HTTP status code of the response
        url: URL of the failed request
        error_type: Server-side exception type name, when provided
        server_message: Server-side message, when provided
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        error_type: str | None = None,
        server_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url
        self.error_type = error_type
        self.server_message = server_message

    @classmethod
    def from_response(cls, response: requests.Response) -> "RavenServerError":
        """Build the most specific error for a failed server response.

        Args:
            response: The failed ``requests`` response

        Returns:
            RavenServerError: An instance of the matching subclass
        """
        payload: dict[str, Any] = {}
        try:
            body = response.json()
            if isinstance(body, dict):
                payload = body
        except ValueError:
            pass

        error_type = payload.get("Type")
        server_message = payload.get("Message") or payload.get("Error") or response.text
        short_type = error_type.rsplit(".", 1)[-1] if error_type else None

        status = response.status_code
        if short_type == "DatabaseDoesNotExistException":
            error_cls: type[RavenServerError] = DatabaseDoesNotExistException
        elif short_type == "IndexDoesNotExistException":
            error_cls = IndexDoesNotExistException
        elif status == 409 or short_type == "ConcurrencyException":
            error_cls = ConcurrencyException
        elif status in (401, 403):
            error_cls = AuthorizationException
        else:
            error_cls = cls

        message = f"{response.request.method if response.request else 'HTTP'} {response.url} failed with status {status}"
        if server_message:
            message = f"{message}: {server_message}"

        return error_cls(
            message,
            status_code=status,
            url=response.url,
            error_type=error_type,
            server_message=server_message,
        )


class DatabaseDoesNotExistException(RavenServerError):
    """The database addressed by the request does not exist on the server."""


class ConcurrencyException(RavenServerError):
    """The document's change vector did not match the expected one."""


class AuthorizationException(RavenServerError):
    """The client certificate was rejected or lacks permissions."""


class IndexDoesNotExistException(RavenServerError):
    """A query or operation referenced an index the server does not have."""
