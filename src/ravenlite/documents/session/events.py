"""Session events and the listener registry shared by stores and sessions."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from ravenlite.constants import SESSION_EVENTS
from ravenlite.exceptions import InvalidArgumentException

if TYPE_CHECKING:
    from ravenlite.documents.query import AbstractDocumentQuery
    from ravenlite.documents.session.session import DocumentSession


@dataclass
class BeforeStoreEventArgs:
    """Raised for each new or changed entity right before it is sent."""

    session: "DocumentSession"
    document_id: str
    entity: Any

    @property
    def document_metadata(self) -> dict[str, Any]:
        return self.session.advanced.get_metadata_for(self.entity)


@dataclass
class AfterSaveChangesEventArgs:
    """Raised for each entity the server accepted in save_changes."""

    session: "DocumentSession"
    document_id: str
    entity: Any

    @property
    def document_metadata(self) -> dict[str, Any]:
        return self.session.advanced.get_metadata_for(self.entity)


@dataclass
class BeforeDeleteEventArgs:
    """Raised for each tracked entity about to be deleted."""

    session: "DocumentSession"
    document_id: str
    entity: Any


@dataclass
class BeforeQueryEventArgs:
    """Raised before a query is executed; listeners may customize the query."""

    session: "DocumentSession"
    query: "AbstractDocumentQuery"


EventHandler = Callable[[Any], None]


def validate_event_name(event_name: str) -> None:
    if event_name not in SESSION_EVENTS:
        raise InvalidArgumentException(
            f"Unknown session event '{event_name}'. Expected one of: {', '.join(SESSION_EVENTS)}"
        )


class SessionEventEmitter:
    """Keeps session listeners per event name and invokes them in order."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[EventHandler]] = {name: [] for name in SESSION_EVENTS}

    def on(self, event_name: str, handler: EventHandler) -> "SessionEventEmitter":
        validate_event_name(event_name)
        self._listeners[event_name].append(handler)
        return self

    def remove_listener(self, event_name: str, handler: EventHandler) -> None:
        validate_event_name(event_name)
        handlers = self._listeners[event_name]
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event_name: str) -> int:
        return len(self._listeners.get(event_name, []))

    def emit(self, event_name: str, event_args: Any) -> None:
        for handler in list(self._listeners[event_name]):
            handler(event_args)
