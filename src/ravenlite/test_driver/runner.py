"""Spawning a throwaway RavenDB server process."""

import logging
import os
import subprocess
from dataclasses import dataclass

from ravenlite.constants import DEFAULT_TEST_SERVER_HTTPS_PORT
from ravenlite.exceptions import InvalidArgumentException, ServerFileNotFoundError
from ravenlite.test_driver.locator import RavenServerLocator

logger = logging.getLogger(__name__)


@dataclass
class ProcessStartInfo:
    command: str
    arguments: list[str]

    @property
    def args(self) -> list[str]:
        return [self.command, *self.arguments]


class RavenServerRunner:
    """Builds the server command line and starts it as a child process.

    The returned process belongs to the caller, who must terminate it.
    """

    @staticmethod
    def run(locator: RavenServerLocator) -> subprocess.Popen:
        process_start_info = RavenServerRunner.get_process_start_info(locator)
        logger.info(f"🚀 Starting RavenDB server: {' '.join(process_start_info.args)}")
        return subprocess.Popen(
            process_start_info.args,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            text=True,
        )

    @staticmethod
    def get_process_start_info(locator: RavenServerLocator | None) -> ProcessStartInfo:
        if locator is None:
            raise InvalidArgumentException("Locator instance is mandatory.")

        server_path = locator.get_server_path()
        if not os.path.exists(server_path):
            raise ServerFileNotFoundError(f"Server file was not found: {server_path}")

        host = locator.get_server_host()
        if locator.with_https():
            server_url = f"--ServerUrl=https://{host}:{DEFAULT_TEST_SERVER_HTTPS_PORT}"
        else:
            server_url = f"--ServerUrl=http://{host}:0"

        command_arguments = [
            server_url,
            "--RunInMemory=true",
            "--License.Eula.Accepted=true",
            "--Setup.Mode=None",
            f"--Testing.ParentProcessId={os.getpid()}",
        ]

        certificate_path = locator.get_server_certificate_path()
        if locator.with_https() and certificate_path:
            command_arguments.append(f"--Security.Certificate.Path={certificate_path}")

        command_arguments.extend(locator.get_command_arguments())
        return ProcessStartInfo(command=locator.get_command(), arguments=command_arguments)
