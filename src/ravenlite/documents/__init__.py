"""Documents API: store, sessions, queries, conventions and indexes."""

from ravenlite.documents.conventions import DocumentConventions, SerializedAttribute
from ravenlite.documents.indexes import (
    AbstractIndexCreationTask,
    FieldIndexing,
    FieldStorage,
    IndexCreation,
    IndexDefinition,
    IndexFieldOptions,
)
from ravenlite.documents.query import DocumentQuery, QueryStatistics, RawDocumentQuery
from ravenlite.documents.session import DocumentSession, SessionOptions
from ravenlite.documents.store import DocumentStore, DocumentStoreBase

__all__ = [
    "DocumentStoreBase",
    "DocumentStore",
    "DocumentSession",
    "SessionOptions",
    "DocumentConventions",
    "SerializedAttribute",
    "DocumentQuery",
    "RawDocumentQuery",
    "QueryStatistics",
    "AbstractIndexCreationTask",
    "IndexCreation",
    "IndexDefinition",
    "IndexFieldOptions",
    "FieldIndexing",
    "FieldStorage",
]
