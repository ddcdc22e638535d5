"""Wait for session recordings and give them their session name."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Optional

from loguru import logger

from dockerdriver.runtime.base import ArtifactTimeout, Interrupted


class ArtifactFinalizer:
    def __init__(
        self,
        wait_timeout_sec: int,
        poll_interval_ms: int,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.wait_timeout_sec = wait_timeout_sec
        self.poll_interval_ms = poll_interval_ms
        self.cancel_event = cancel_event or threading.Event()

    def finalize(self, recording_path: Path, name: str, raise_on_timeout: bool = False) -> Optional[Path]:
        """Rename ``recording_path`` to ``<name>.mp4`` once the recorder has written it.

        Returns the final path, or None when the file did not appear in time.
        """
        deadline = time.monotonic() + self.wait_timeout_sec
        logger.debug(f"Waiting for recording {recording_path} to be available")
        while not recording_path.exists():
            if time.monotonic() > deadline:
                message = f"Timeout of {self.wait_timeout_sec} seconds waiting for file {recording_path}"
                if raise_on_timeout:
                    raise ArtifactTimeout(message)
                logger.warning(message)
                return None
            logger.trace(f"Recording {recording_path} not present ... waiting {self.poll_interval_ms} ms")
            if self.cancel_event.wait(self.poll_interval_ms / 1000):
                raise Interrupted(f"Interrupted while waiting for recording {recording_path}")

        target = recording_path.with_name(f"{name}.mp4")
        logger.trace(f"Renaming {recording_path} to {target.name}")
        recording_path.replace(target)
        return target
