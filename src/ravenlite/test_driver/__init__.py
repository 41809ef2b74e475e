"""Helpers for running a throwaway RavenDB server in tests."""

from ravenlite.test_driver.driver import RavenTestDriver, wait_for_server_url
from ravenlite.test_driver.locator import EnvServerLocator, RavenServerLocator
from ravenlite.test_driver.runner import ProcessStartInfo, RavenServerRunner

__all__ = [
    "EnvServerLocator",
    "ProcessStartInfo",
    "RavenServerLocator",
    "RavenServerRunner",
    "RavenTestDriver",
    "wait_for_server_url",
]
