"""Small helpers shared by the store, session and query builder."""

import re
from datetime import date, datetime
from urllib.parse import urlparse

from ravenlite.exceptions import InvalidArgumentException

_ISO_DATETIME = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{1,7})?(Z|[+-]\d{2}:\d{2})?$"
)
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_PLAIN_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_uri(url: str) -> None:
    """Validate that a URL can be used to reach a RavenDB node.

    Args:
        url: The URL to check

    Raises:
        InvalidArgumentException: If the scheme is not http(s) or the host is missing
    """
    try:
        parsed = urlparse(url)
    except (TypeError, ValueError) as e:
        raise InvalidArgumentException(f"Invalid URL: {url!r}") from e

    if parsed.scheme not in ("http", "https") or not parsed.netloc or not parsed.hostname:
        raise InvalidArgumentException(f"Invalid URL: {url!r}")


def to_iso(value: datetime | date) -> str:
    """Format a date or datetime the way the server stores it."""
    if isinstance(value, datetime):
        text = value.isoformat(timespec="microseconds")
        if value.tzinfo is not None and text.endswith("+00:00"):
            text = text[: -len("+00:00")] + "Z"
        return text
    return value.isoformat()


def parse_iso_datetime(value: str) -> datetime | None:
    """Parse an ISO-8601 string produced by the server, or return None."""
    if not isinstance(value, str) or not _ISO_DATETIME.match(value):
        return None
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    # The server writes 7 fractional digits, datetime accepts at most 6
    match = re.match(r"^(.*\.\d{6})\d*(.*)$", text)
    if match:
        text = match.group(1) + match.group(2)
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def parse_iso_date(value: str) -> date | None:
    """Parse a date-only ISO-8601 string such as ``1987-10-12``, or return None."""
    if not isinstance(value, str) or not _ISO_DATE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def escape_rql_string(value: str) -> str:
    """Escape a value to be embedded in single quotes in RQL."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def quote_collection(name: str) -> str:
    """Quote a collection name for a ``from`` clause when needed."""
    if _PLAIN_IDENTIFIER.match(name):
        return name
    return f"'{escape_rql_string(name)}'"


def quote_field(name: str) -> str:
    """Quote a field path for RQL unless it is a plain dotted identifier."""
    if name == "id()" or all(_PLAIN_IDENTIFIER.match(part) for part in name.split(".")):
        return name
    return f"'{escape_rql_string(name)}'"
