"""Configuration for RavenDB connection and the test server."""

import os
import shlex

from dotenv import load_dotenv

from ravenlite.constants import (
    DEFAULT_RAVENDB_DATABASE,
    DEFAULT_RAVENDB_URL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TEST_SERVER_HOST,
)

# Load environment variables
load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


class RavenConfig:
    """Configuration class for RavenDB connection details."""

    @staticmethod
    def get_urls() -> list[str]:
        """Get the RavenDB server URLs from environment variables.

        ``RAVENDB_URLS`` (comma separated) takes precedence over the single
        ``RAVENDB_URL``.

        Returns:
            list[str]: RavenDB server URLs (default: [http://localhost:8080])
        """
        urls_env = os.getenv("RAVENDB_URLS", "")
        urls = [url.strip() for url in urls_env.split(",") if url.strip()]
        if urls:
            return urls
        return [os.getenv("RAVENDB_URL", DEFAULT_RAVENDB_URL)]

    @staticmethod
    def get_database_name() -> str:
        """Get the RavenDB database name from environment variables.

        Returns:
            str: Database name (default: ravenlite)
        """
        return os.getenv("RAVENDB_DATABASE", DEFAULT_RAVENDB_DATABASE)

    @staticmethod
    def get_certificate_path() -> str | None:
        """Get the client certificate (PEM) path, if configured."""
        return os.getenv("RAVENDB_CERTIFICATE") or None

    @staticmethod
    def get_ca_path() -> str | None:
        """Get the CA bundle path used to verify the server, if configured."""
        return os.getenv("RAVENDB_CA") or None

    @staticmethod
    def get_request_timeout() -> float:
        """Get the HTTP request timeout in seconds.

        Returns:
            float: Timeout (default: 30 seconds)
        """
        return float(os.getenv("RAVENDB_REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT)))


class TestServerConfig:
    """Environment settings for launching a throwaway RavenDB server."""

    __test__ = False  # not a pytest test class

    @staticmethod
    def get_server_path() -> str | None:
        return os.getenv("RAVENDB_TEST_SERVER_PATH") or None

    @staticmethod
    def get_command() -> str | None:
        return os.getenv("RAVENDB_TEST_SERVER_COMMAND") or None

    @staticmethod
    def get_host() -> str:
        return os.getenv("RAVENDB_TEST_SERVER_HOST", DEFAULT_TEST_SERVER_HOST)

    @staticmethod
    def use_https() -> bool:
        return os.getenv("RAVENDB_TEST_SERVER_HTTPS", "").strip().lower() in _TRUTHY

    @staticmethod
    def get_extra_arguments() -> list[str]:
        return shlex.split(os.getenv("RAVENDB_TEST_SERVER_ARGS", ""))

    @staticmethod
    def get_certificate_path() -> str | None:
        return os.getenv("RAVENDB_TEST_SERVER_CERTIFICATE") or None
