from __future__ import annotations

from loguru import logger

from dockerdriver.config import Settings
from dockerdriver.runtime.base import ContainerRecord, ContainerSpec, RuntimeGateway
from dockerdriver.services.container_registry import ContainerRegistry


def viewer_url(novnc_url: str, hub_host: str, hub_port: int, session_id: str, password: str) -> str:
    """noVNC page connected to the VNC stream of one hub session."""
    return (
        f"{novnc_url}vnc.html?host={hub_host}&port={hub_port}&path=vnc/{session_id}"
        f"&resize=scale&autoconnect=true&password={password}"
    )


class VncProvisioner:
    """Starts the noVNC viewer container at most once per registry."""

    def __init__(self, docker_service: RuntimeGateway, registry: ContainerRegistry, settings: Settings):
        self.docker_service = docker_service
        self.registry = registry
        self.settings = settings

    @property
    def image(self) -> str:
        return self.settings.novnc_image

    def ensure_vnc(self) -> str:
        """Return the base URL (``http://host:port/``) of the noVNC container."""
        return self.start_vnc().url

    def start_vnc(self) -> ContainerRecord:
        record = self.registry.get(self.image)
        if record:
            logger.debug("noVNC container already available")
            return record

        self.docker_service.pull_image_if_absent(self.image)
        port = self.settings.novnc_port
        network = self.settings.docker_network
        spec = ContainerSpec(
            image=self.image,
            port_bindings={str(port): "0.0.0.0"},
            network=network,
        )
        container_id = self.docker_service.start_container(spec)
        host = self.docker_service.get_host(container_id, network)
        external_port = self.docker_service.get_bind_port(container_id, f"{port}/tcp")
        record = ContainerRecord(
            image=self.image,
            container_id=container_id,
            url=f"http://{host}:{external_port}/",
            ports={str(port): external_port},
            network=network,
        )
        self.registry.put(self.image, record)
        return record

    def viewer_url(self, hub_host: str, hub_port: int, session_id: str) -> str:
        return viewer_url(self.ensure_vnc(), hub_host, hub_port, session_id, self.settings.selenoid_vnc_password)
