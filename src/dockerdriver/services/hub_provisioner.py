"""Start the shared selenoid hub container."""

from __future__ import annotations

from pathlib import Path, PureWindowsPath
from typing import Optional, Union

from loguru import logger

from dockerdriver.browsers import BrowserRequest
from dockerdriver.catalog import ImageCatalog
from dockerdriver.config import Settings
from dockerdriver.runtime.base import ContainerRecord, ContainerSpec, RuntimeGateway
from dockerdriver.services.container_registry import ContainerRegistry

BROWSERS_JSON = "/etc/selenoid/browsers.json"
VIDEO_DIR = "/opt/selenoid/video"


def to_docker_path(path: Union[str, Path]) -> str:
    """Path as the docker daemon sees it: C:\\Users\\a\\v -> /c/Users/a/v."""
    path_string = str(path)
    if ":" in path_string:  # Windows
        path_string = path_string[0].lower() + path_string[1:]
        path_string = path_string.replace("\\", "/").replace(":", "")
        path_string = "/" + path_string
    logger.trace(f"The path of file {path} in Docker format is {path_string}")
    return path_string


def host_path(path: Union[str, Path]) -> str:
    """Absolute form of a host path; Windows paths are kept as given."""
    path_string = str(path)
    if PureWindowsPath(path_string).drive:
        return path_string
    return str(Path(path_string).expanduser().resolve())


def build_hub_command(browsers_json: str, port: int, timeout: str, network: str, limit: int) -> str:
    return (
        f"mkdir -p /etc/selenoid/; echo '{browsers_json}' > {BROWSERS_JSON}; /usr/bin/selenoid"
        f" -listen :{port}"
        f" -conf {BROWSERS_JSON}"
        f" -video-output-dir {VIDEO_DIR}/"
        f" -timeout {timeout}"
        f" -container-network {network}"
        f" -limit {limit}"
    )


class HubProvisioner:
    """Starts the selenoid hub at most once per registry."""

    def __init__(
        self,
        docker_service: RuntimeGateway,
        catalog: ImageCatalog,
        registry: ContainerRegistry,
        settings: Settings,
        *,
        browser_count: int = 1,
        video_folder: Optional[Path] = None,
    ):
        self.docker_service = docker_service
        self.catalog = catalog
        self.registry = registry
        self.settings = settings
        self.browser_count = browser_count
        self.video_folder = video_folder or settings.output_folder

    @property
    def image(self) -> str:
        return self.settings.selenoid_image

    def ensure_hub(self, request: BrowserRequest) -> str:
        """Pull the browser image for the request and return the hub URL."""
        browser = request.type
        if request.version.is_latest:
            logger.info(f"Using {browser.name} version {self.catalog.default_version(browser)} (latest)")
            browser_image = self.catalog.latest_image(browser)
        else:
            logger.info(f"Using {browser.name} version {request.version}")
            browser_image = self.catalog.image_from_version(browser, request.version.value)
        self.docker_service.pull_image(browser_image)
        return self.start_hub().url

    def start_hub(self) -> ContainerRecord:
        record = self.registry.get(self.image)
        if record:
            logger.trace("Selenoid container already available")
            return record

        # 1. Pull images
        self.docker_service.pull_image_if_absent(self.image)
        recording = self.settings.recording
        video_path = None
        if recording:
            self.docker_service.pull_image_if_absent(self.settings.recording_image)
            video_path = to_docker_path(host_path(self.video_folder))

        # 2. Ports, binds, command and env
        port = self.settings.selenoid_port
        network = self.settings.docker_network
        socket = self.docker_service.default_socket_path()
        binds = [f"{socket}:{socket}"]
        if recording:
            binds.append(f"{video_path}:{VIDEO_DIR}")

        command = build_hub_command(
            self.catalog.browsers_descriptor_json(),
            port,
            self.settings.browser_session_timeout_duration,
            network,
            max(self.browser_count, 1),
        )
        envs = [
            f"DOCKER_API_VERSION={self.settings.docker_api_version}",
            f"TZ={self.settings.docker_time_zone}",
        ]
        if recording:
            envs.append(f"OVERRIDE_VIDEO_OUTPUT_DIR={video_path}")

        # TODO: the empty entrypoint mirrors what aerokube/selenoid expected in 1.8.x; re-check against newer tags
        spec = ContainerSpec(
            image=self.image,
            port_bindings={str(port): "0.0.0.0"},
            binds=binds,
            cmd=["sh", "-c", command],
            entry_point=[""],
            envs=envs,
            network=network,
        )

        # 3. Start and inspect
        container_id = self.docker_service.start_container(spec)
        host = self.docker_service.get_host(container_id, network)
        external_port = self.docker_service.get_bind_port(container_id, f"{port}/tcp")
        record = ContainerRecord(
            image=self.image,
            container_id=container_id,
            url=f"http://{host}:{external_port}/wd/hub",
            ports={str(port): external_port},
            network=network,
        )
        self.registry.put(self.image, record)
        logger.info(f"Selenoid hub available at {record.url}")
        return record
