"""Tests for the test-server locator and runner."""

import os
import subprocess
from unittest.mock import patch

import pytest

from ravenlite.exceptions import InvalidArgumentException, ServerFileNotFoundError
from ravenlite.test_driver import EnvServerLocator, RavenServerLocator, RavenServerRunner


class _Locator(RavenServerLocator):
    def __init__(self, path, https=False, extra=None, certificate=None, command=None):
        self.path = path
        self.https = https
        self.extra = extra or []
        self.certificate = certificate
        self.command = command

    def get_server_path(self):
        return self.path

    def get_command(self):
        return self.command or self.path

    def get_command_arguments(self):
        return self.extra

    def with_https(self):
        return self.https

    def get_server_certificate_path(self):
        return self.certificate


@pytest.fixture
def server_binary(tmp_path):
    binary = tmp_path / "Raven.Server"
    binary.write_text("")
    return str(binary)


class TestProcessStartInfo:
    """Tests for building the server command line."""

    def test_locator_is_mandatory(self):
        with pytest.raises(InvalidArgumentException, match="Locator instance is mandatory."):
            RavenServerRunner.get_process_start_info(None)

    def test_missing_server_file(self, tmp_path):
        missing = str(tmp_path / "nope")
        with pytest.raises(ServerFileNotFoundError, match="Server file was not found: "):
            RavenServerRunner.get_process_start_info(_Locator(missing))

    def test_http_arguments(self, server_binary):
        info = RavenServerRunner.get_process_start_info(_Locator(server_binary))

        assert info.command == server_binary
        assert info.arguments == [
            "--ServerUrl=http://127.0.0.1:0",
            "--RunInMemory=true",
            "--License.Eula.Accepted=true",
            "--Setup.Mode=None",
            f"--Testing.ParentProcessId={os.getpid()}",
        ]

    def test_https_arguments(self, server_binary):
        locator = _Locator(server_binary, https=True, certificate="/certs/server.pfx")
        arguments = RavenServerRunner.get_process_start_info(locator).arguments

        assert arguments[0] == "--ServerUrl=https://127.0.0.1:8085"
        assert "--Security.Certificate.Path=/certs/server.pfx" in arguments

    def test_extra_arguments_appended_last(self, server_binary):
        locator = _Locator(server_binary, extra=["--Logs.Mode=None"], command="dotnet")
        info = RavenServerRunner.get_process_start_info(locator)

        assert info.arguments[-1] == "--Logs.Mode=None"
        assert info.args[0] == "dotnet"

    @patch("ravenlite.test_driver.runner.subprocess.Popen")
    def test_run_spawns_process(self, mock_popen, server_binary):
        RavenServerRunner.run(_Locator(server_binary))

        args, kwargs = mock_popen.call_args
        assert args[0][0] == server_binary
        assert kwargs["stdout"] == subprocess.PIPE
        assert kwargs["stderr"] == subprocess.STDOUT
        assert kwargs["text"] is True


class TestEnvServerLocator:
    """Tests for the environment based locator."""

    def test_reads_environment(self, server_binary):
        env = {
            "RAVENDB_TEST_SERVER_PATH": server_binary,
            "RAVENDB_TEST_SERVER_HOST": "10.0.0.5",
            "RAVENDB_TEST_SERVER_HTTPS": "true",
            "RAVENDB_TEST_SERVER_ARGS": "--Logs.Mode=None --Features.Availability=Experimental",
        }
        with patch.dict(os.environ, env):
            locator = EnvServerLocator()
            info = RavenServerRunner.get_process_start_info(locator)

        assert info.arguments[0] == "--ServerUrl=https://10.0.0.5:8085"
        assert info.arguments[-2:] == ["--Logs.Mode=None", "--Features.Availability=Experimental"]

    def test_missing_path(self):
        with patch.dict(os.environ, {"RAVENDB_TEST_SERVER_PATH": ""}):
            with pytest.raises(InvalidArgumentException, match="RAVENDB_TEST_SERVER_PATH"):
                EnvServerLocator().get_server_path()
