"""Stop every container of a registry in parallel."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, wait

from loguru import logger

from dockerdriver.runtime.base import ContainerRecord, RuntimeGateway
from dockerdriver.services.container_registry import ContainerRegistry


class TeardownCoordinator:
    def __init__(self, docker_service: RuntimeGateway, registry: ContainerRegistry):
        self.docker_service = docker_service
        self.registry = registry

    def stop_all(self) -> int:
        """Stop and remove all registered containers, then empty the registry.

        Returns the number of containers a stop was submitted for.
        """
        entries = self.registry.entries()
        if not entries:
            return 0

        executor = ThreadPoolExecutor(max_workers=len(entries), thread_name_prefix="docker-stop")
        try:
            futures = [executor.submit(self._stop, image, record) for image, record in entries]
            wait(futures)
        except KeyboardInterrupt:
            logger.warning("Interrupted while cleaning Docker containers")
            raise
        finally:
            self.registry.clear()
            executor.shutdown(wait=False)
        return len(entries)

    def _stop(self, image: str, record: ContainerRecord) -> None:
        try:
            self.docker_service.stop_and_remove(record.container_id, image)
        except Exception as e:
            logger.error(f"Exception stopping container {record.container_id[:12]} ({image}): {e}")
