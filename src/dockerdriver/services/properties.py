from __future__ import annotations

import os
from typing import Optional, Protocol


class PropertySink(Protocol):
    """Process-wide key/value channel used to publish the VNC URL."""

    def set(self, key: str, value: str) -> None:
        ...

    def get(self, key: str) -> Optional[str]:
        ...

    def clear(self, key: str) -> None:
        ...


class EnvironPropertySink:
    """PropertySink writing to the process environment."""

    def set(self, key: str, value: str) -> None:
        os.environ[key] = value

    def get(self, key: str) -> Optional[str]:
        return os.environ.get(key)

    def clear(self, key: str) -> None:
        os.environ.pop(key, None)


class MemoryPropertySink:
    """PropertySink kept in a dict, for embedding without touching os.environ."""

    def __init__(self):
        self.values: dict[str, str] = {}

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def clear(self, key: str) -> None:
        self.values.pop(key, None)
