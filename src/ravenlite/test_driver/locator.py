"""Locating the RavenDB server executable used for tests."""

import abc

from ravenlite.config import TestServerConfig
from ravenlite.constants import DEFAULT_TEST_SERVER_HOST
from ravenlite.exceptions import InvalidArgumentException


class RavenServerLocator(abc.ABC):
    """Tells the runner where the server lives and how to start it."""

    @abc.abstractmethod
    def get_server_path(self) -> str: ...

    def get_command(self) -> str:
        return self.get_server_path()

    def get_command_arguments(self) -> list[str]:
        return []

    def get_server_host(self) -> str:
        return DEFAULT_TEST_SERVER_HOST

    def with_https(self) -> bool:
        return False

    def get_server_certificate_path(self) -> str | None:
        return None


class EnvServerLocator(RavenServerLocator):
    """Locator configured through the ``RAVENDB_TEST_SERVER_*`` variables."""

    def get_server_path(self) -> str:
        path = TestServerConfig.get_server_path()
        if not path:
            raise InvalidArgumentException(
                "Unable to find RavenDB server path. Please set the RAVENDB_TEST_SERVER_PATH environment variable."
            )
        return path

    def get_command(self) -> str:
        return TestServerConfig.get_command() or self.get_server_path()

    def get_command_arguments(self) -> list[str]:
        return TestServerConfig.get_extra_arguments()

    def get_server_host(self) -> str:
        return TestServerConfig.get_host()

    def with_https(self) -> bool:
        return TestServerConfig.use_https()

    def get_server_certificate_path(self) -> str | None:
        return TestServerConfig.get_certificate_path()
