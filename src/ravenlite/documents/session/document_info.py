"""Tracking state kept by a session for every entity it knows about."""

import copy
from dataclasses import dataclass, field
from typing import Any


@dataclass(eq=False)
class DocumentInfo:
    """What the session knows about one tracked entity.

    Attributes:
        id: Document id (a ``Collection/`` prefix until the server assigns one)
        entity: The tracked Python object
        metadata: Live metadata, exposed through get_metadata_for
        change_vector: Last change vector seen from the server
        document: Raw document body as received from the server
        snapshot: Serialized body when the entity was last synced, for change detection
        original_metadata: Metadata when the entity was last synced
        new_document: True until the entity has been saved
        ignore_changes: Skip this entity in save_changes
        expected_change_vector: Change vector required by a pending delete
    """

    id: str
    entity: Any
    metadata: dict[str, Any] = field(default_factory=dict)
    change_vector: str | None = None
    document: dict[str, Any] | None = None
    snapshot: dict[str, Any] | None = None
    original_metadata: dict[str, Any] = field(default_factory=dict)
    new_document: bool = False
    ignore_changes: bool = False
    expected_change_vector: str | None = None

    def mark_synced(self, body: dict[str, Any]) -> None:
        self.snapshot = copy.deepcopy(body)
        self.original_metadata = copy.deepcopy(self.metadata)
        self.new_document = False
