"""Ephemeral docker browsers behind a selenoid hub."""

from dockerdriver.browsers import BrowserRequest, BrowserType, ParameterKind, ParameterMeta, TestScope, VersionSpec
from dockerdriver.config import Settings, load_settings
from dockerdriver.handler import DockerDriverHandler, SessionHandle
from dockerdriver.runtime.base import DockerDriverError, SessionResolutionError

__all__ = [
    "BrowserRequest",
    "BrowserType",
    "DockerDriverError",
    "DockerDriverHandler",
    "ParameterKind",
    "ParameterMeta",
    "SessionHandle",
    "SessionResolutionError",
    "Settings",
    "TestScope",
    "VersionSpec",
    "load_settings",
]
