"""Client-wide constants and defaults for ravenlite.

This module provides a single source of truth for configuration defaults,
metadata keys, HTTP headers, and other magic strings used throughout the
client.
"""

# =============================================================================
# Default URLs and Databases
# =============================================================================
DEFAULT_RAVENDB_URL = "http://localhost:8080"
DEFAULT_RAVENDB_DATABASE = "ravenlite"
DEFAULT_REQUEST_TIMEOUT = 30.0  # seconds
MAX_HTTP_CACHE_ITEMS = 1024

# =============================================================================
# Session Limits
# =============================================================================
MAX_NUMBER_OF_REQUESTS_PER_SESSION = 30

# =============================================================================
# Test Server
# =============================================================================
DEFAULT_TEST_SERVER_HOST = "127.0.0.1"
DEFAULT_TEST_SERVER_HTTPS_PORT = 8085
DEFAULT_SERVER_START_TIMEOUT = 20.0  # seconds
SERVER_AVAILABLE_PREFIX = "Server available on:"

# =============================================================================
# Client identification
# =============================================================================
CLIENT_VERSION = "5.2.0"


class Metadata:
    """Keys of the ``@metadata`` object attached to every document."""

    KEY = "@metadata"
    ID = "@id"
    COLLECTION = "@collection"
    CHANGE_VECTOR = "@change-vector"
    LAST_MODIFIED = "@last-modified"
    FLAGS = "@flags"
    INDEX_SCORE = "@index-score"
    PROJECTION = "@projection"
    NESTED_OBJECT_TYPES = "@nested-object-types"
    ALL_DOCUMENTS_COLLECTION = "@all_docs"
    RAVEN_PYTHON_TYPE = "Raven-Python-Type"


class Headers:
    """HTTP headers exchanged with the server."""

    CLIENT_VERSION = "Raven-Client-Version"
    ETAG = "ETag"
    IF_NONE_MATCH = "If-None-Match"


# Session events that can be registered on a store and forwarded to sessions
SESSION_EVENTS = ("before_store", "after_save_changes", "before_query", "before_delete")
