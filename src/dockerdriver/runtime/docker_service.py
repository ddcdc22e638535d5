from __future__ import annotations

import os
import threading
import time
from pathlib import Path
from typing import Optional, Set

import docker
from docker.errors import APIError, DockerException, ImageNotFound, NotFound
from loguru import logger

from dockerdriver.config import Settings
from dockerdriver.runtime.base import (
    ContainerSpec,
    ContainerStartFailed,
    ImageUnavailable,
    Interrupted,
    RuntimeUnavailable,
)


class DockerService:
    """Runtime gateway over the docker SDK."""

    def __init__(self, settings: Settings, cancel_event: Optional[threading.Event] = None):
        self.settings = settings
        self.cancel_event = cancel_event or threading.Event()
        self.wait_timeout_sec = settings.docker_wait_timeout_sec
        self.poll_interval_ms = settings.docker_poll_time_ms
        self._pulled: Set[str] = set()
        # We respect DOCKER_HOST env var automatically
        try:
            self.client = docker.from_env()
        except DockerException as e:
            self.client = None
            logger.warning(f"Docker client initialization failed: {e}")

    def _require_client(self):
        if not self.client:
            raise RuntimeUnavailable("Docker client unavailable")
        return self.client

    def pull_image(self, image: str) -> None:
        client = self._require_client()
        if image in self._pulled:
            return
        logger.info(f"Pulling Docker image {image} ... please wait")
        try:
            client.images.pull(image)
        except (APIError, ImageNotFound) as e:
            raise ImageUnavailable(f"Unable to pull {image}: {e}") from e
        self._pulled.add(image)

    def pull_image_if_absent(self, image: str) -> None:
        client = self._require_client()
        try:
            client.images.get(image)
            logger.debug(f"Docker image {image} already present")
        except ImageNotFound:
            self.pull_image(image)
        except APIError as e:
            raise ImageUnavailable(f"Unable to inspect {image}: {e}") from e

    def start_container(self, spec: ContainerSpec) -> str:
        client = self._require_client()
        ports = {f"{port}/tcp": (host_ip,) for port, host_ip in spec.port_bindings.items()}
        try:
            logger.debug(f"Starting container from {spec.image} on network {spec.network}")
            container = client.containers.run(
                spec.image,
                command=spec.cmd or None,
                entrypoint=spec.entry_point,
                environment=spec.envs or None,
                ports=ports or None,
                volumes=spec.binds or None,
                network=spec.network,
                detach=True,
            )
        except (APIError, ImageNotFound) as e:
            raise ContainerStartFailed(f"Unable to start {spec.image}: {e}") from e

        # Wait until running and every port is bound
        deadline = time.monotonic() + self.wait_timeout_sec
        while True:
            container.reload()
            if container.status == "running":
                bound = container.attrs.get("NetworkSettings", {}).get("Ports") or {}
                if all(bound.get(port) for port in ports):
                    break
            elif container.status not in ("created", "restarting"):
                logs = container.logs().decode("utf-8", errors="replace")[-200:]
                self._discard(container)
                raise ContainerStartFailed(f"Container {spec.image} exited: {logs}")
            if time.monotonic() > deadline:
                self._discard(container)
                raise ContainerStartFailed(
                    f"Timed out after {self.wait_timeout_sec}s waiting for {spec.image} to run"
                )
            if self.cancel_event.wait(self.poll_interval_ms / 1000):
                self._discard(container)
                raise Interrupted(f"Interrupted while waiting for {spec.image} to run")

        logger.info(f"Container {container.id[:12]} ({spec.image}) running")
        return container.id

    def _discard(self, container) -> None:
        try:
            container.remove(force=True)
        except APIError as e:
            logger.error(f"Error removing failed container {container.id}: {e}")

    def get_host(self, container_id: str, network: Optional[str]) -> str:
        if self._running_in_container():
            container = self._require_client().containers.get(container_id)
            networks = container.attrs.get("NetworkSettings", {}).get("Networks") or {}
            gateway = (networks.get(network) or {}).get("Gateway")
            if gateway:
                return gateway
        return self._resolve_docker_host()

    def get_bind_port(self, container_id: str, port: str) -> str:
        container = self._require_client().containers.get(container_id)
        bindings = (container.attrs.get("NetworkSettings", {}).get("Ports") or {}).get(port)
        if not bindings:
            raise ContainerStartFailed(f"Port {port} of container {container_id[:12]} is not bound")
        return bindings[0]["HostPort"]

    def stop_and_remove(self, container_id: str, image: str) -> None:
        client = self._require_client()
        try:
            logger.info(f"Stopping container {container_id[:12]} ({image})")
            c = client.containers.get(container_id)
            c.stop(timeout=self.settings.docker_stop_timeout_sec)
            c.remove()
        except NotFound:
            logger.warning(f"Container {container_id[:12]} ({image}) not found during stop")
        except APIError as e:
            logger.error(f"Error stopping container {container_id[:12]} ({image}): {e}")

    def default_socket_path(self) -> str:
        return self.settings.docker_default_socket

    def close(self) -> None:
        if self.client:
            self.client.close()

    def _running_in_container(self) -> bool:
        return Path("/.dockerenv").exists()

    def _resolve_docker_host(self) -> str:
        d_host = os.environ.get("DOCKER_HOST")
        if d_host and "tcp://" in d_host:
            return d_host.split("://")[1].split(":")[0]
        return "localhost"
