"""Sessions: unit-of-work tracking over a document store."""

from ravenlite.documents.session.document_info import DocumentInfo
from ravenlite.documents.session.events import (
    AfterSaveChangesEventArgs,
    BeforeDeleteEventArgs,
    BeforeQueryEventArgs,
    BeforeStoreEventArgs,
    SessionEventEmitter,
)
from ravenlite.documents.session.session import DocumentSession, SessionOptions

__all__ = [
    "DocumentSession",
    "SessionOptions",
    "DocumentInfo",
    "SessionEventEmitter",
    "BeforeStoreEventArgs",
    "AfterSaveChangesEventArgs",
    "BeforeDeleteEventArgs",
    "BeforeQueryEventArgs",
]
