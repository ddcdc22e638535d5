"""Configuration model for the docker browser handler."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from dockerdriver.runtime.base import ConfigInvalid

ENV_PREFIX = "DOCKERDRIVER_"


class Settings(BaseModel):
    """Settings for browser containers, VNC viewing and recording.

    Fields are snake_case; every field also accepts its camelCase key
    (``vncScreenResolution``, ``seleniumServerUrl``...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # VNC
    vnc: bool = False
    vnc_screen_resolution: str = "1920x1080x24"
    vnc_redirect_html_page: bool = False
    vnc_export: str = "DOCKERDRIVER_VNC_URL"
    selenoid_vnc_password: str = "selenoid"

    # Images and ports
    selenoid_image: str = "aerokube/selenoid:1.8.4"
    novnc_image: str = "psharkey/novnc:3.3-t6"
    selenoid_port: int = Field(4444, ge=1, le=65535)
    novnc_port: int = Field(8080, ge=1, le=65535)

    # Recording
    recording: bool = False
    recording_image: str = "selenoid/video-recorder:latest-release"
    recording_video_screen_size: str = "1024x768"
    recording_video_frame_rate: int = Field(12, gt=0)

    # Hub
    browser_session_timeout_duration: str = "1m0s"
    selenium_server_url: Optional[str] = None
    output_folder: Path = Path(".")

    # Docker
    docker_network: str = "bridge"
    docker_api_version: str = "1.35"
    docker_time_zone: str = "UTC"
    docker_wait_timeout_sec: int = Field(20, gt=0)
    docker_poll_time_ms: int = Field(200, gt=0)
    docker_stop_timeout_sec: int = Field(5, ge=0)
    docker_default_socket: str = "/var/run/docker.sock"

    # Browser catalog
    docker_hub_url: str = "https://hub.docker.com/"
    browser_list_from_docker_hub: bool = False
    browser_image_repository: str = "selenoid/vnc"
    chrome_first_version: str = "48.0"
    chrome_latest_version: str = "73.0"
    firefox_first_version: str = "3.6"
    firefox_latest_version: str = "66.0"
    opera_first_version: str = "33.0"
    opera_latest_version: str = "58.0"

    @field_validator("selenium_server_url")
    @classmethod
    def _blank_server_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()

    @property
    def has_selenium_server_url(self) -> bool:
        return self.selenium_server_url is not None

    def version_range(self, browser: str) -> tuple[str, str]:
        """Return the (first, latest) configured versions for a browser name."""
        try:
            return (
                getattr(self, f"{browser}_first_version"),
                getattr(self, f"{browser}_latest_version"),
            )
        except AttributeError as exc:
            raise ConfigInvalid(f"No version range configured for {browser}") from exc


def _env_values() -> dict[str, str]:
    values = {}
    for name in Settings.model_fields:
        raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None:
            values[name] = raw
    return values


def load_settings(overrides: Optional[Mapping[str, Any]] = None) -> Settings:
    """Build Settings from DOCKERDRIVER_* env vars (.env for local dev) plus overrides."""
    load_dotenv()
    values: dict[str, Any] = _env_values()
    if overrides:
        values.update(overrides)
    try:
        return Settings.model_validate(values)
    except ValidationError as e:
        raise ConfigInvalid(f"Invalid settings: {e}") from e
