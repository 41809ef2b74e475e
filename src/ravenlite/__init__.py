"""ravenlite: a synchronous client for RavenDB."""

from ravenlite.auth import AuthOptions
from ravenlite.database import create_document_store
from ravenlite.documents import (
    AbstractIndexCreationTask,
    DocumentConventions,
    DocumentSession,
    DocumentStore,
    DocumentStoreBase,
    SessionOptions,
)
from ravenlite.exceptions import (
    InvalidArgumentException,
    InvalidOperationException,
    RavenException,
    RavenServerError,
)

__version__ = "0.1.0"

__all__ = [
    "AbstractIndexCreationTask",
    "AuthOptions",
    "DocumentConventions",
    "DocumentSession",
    "DocumentStore",
    "DocumentStoreBase",
    "InvalidArgumentException",
    "InvalidOperationException",
    "RavenException",
    "RavenServerError",
    "SessionOptions",
    "create_document_store",
]
