from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol


class DockerDriverError(Exception):
    code = "DOCKER_DRIVER_ERROR"

    def __init__(self, msg: str, code: Optional[str] = None):
        super().__init__(msg)
        if code:
            self.code = code


class RuntimeUnavailable(DockerDriverError):
    """The container runtime daemon cannot be reached."""

    code = "RUNTIME_UNAVAILABLE"


class ImageUnavailable(DockerDriverError):
    """Image pull failed or the requested tag is not in the catalog."""

    code = "IMAGE_UNAVAILABLE"


class ContainerStartFailed(DockerDriverError):
    code = "CONTAINER_START_FAILED"


class SessionOpenFailed(DockerDriverError):
    """The remote endpoint refused to open a WebDriver session."""

    code = "SESSION_OPEN_FAILED"


class ArtifactTimeout(DockerDriverError):
    code = "ARTIFACT_TIMEOUT"


class Interrupted(DockerDriverError):
    code = "INTERRUPTED"


class ConfigInvalid(DockerDriverError):
    code = "CONFIG_INVALID"


class SessionResolutionError(DockerDriverError):
    """Single error raised when a browser session cannot be resolved."""

    code = "SESSION_RESOLUTION_FAILED"


@dataclass(frozen=True)
class ContainerSpec:
    image: str
    port_bindings: Dict[str, str] = field(default_factory=dict)  # internal port -> host ip
    binds: List[str] = field(default_factory=list)                # "host:container"
    cmd: List[str] = field(default_factory=list)
    entry_point: Optional[List[str]] = None
    envs: List[str] = field(default_factory=list)                 # "KEY=value"
    network: Optional[str] = None


@dataclass
class ContainerRecord:
    image: str
    container_id: str
    url: str
    ports: Dict[str, str] = field(default_factory=dict)           # internal -> external
    network: Optional[str] = None


class RuntimeGateway(Protocol):
    wait_timeout_sec: int
    poll_interval_ms: int

    def pull_image(self, image: str) -> None:
        ...

    def pull_image_if_absent(self, image: str) -> None:
        ...

    def start_container(self, spec: ContainerSpec) -> str:
        """Start a container and return its id once it is running."""
        ...

    def get_host(self, container_id: str, network: Optional[str]) -> str:
        ...

    def get_bind_port(self, container_id: str, port: str) -> str:
        ...

    def stop_and_remove(self, container_id: str, image: str) -> None:
        ...

    def default_socket_path(self) -> str:
        ...
