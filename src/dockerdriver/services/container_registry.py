from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from dockerdriver.runtime.base import ContainerRecord


class ContainerRegistry:
    """Live containers keyed by image, in start order.

    One container per image: a hit means the container is already
    provisioned. Not thread-safe; only the owning handler mutates it.
    """

    def __init__(self):
        self._containers: Dict[str, ContainerRecord] = {}

    def get(self, image: str) -> Optional[ContainerRecord]:
        return self._containers.get(image)

    def put(self, image: str, record: ContainerRecord) -> None:
        self._containers[image] = record

    def entries(self) -> List[Tuple[str, ContainerRecord]]:
        return list(self._containers.items())

    def clear(self) -> None:
        self._containers.clear()

    def size(self) -> int:
        return len(self._containers)

    def __contains__(self, image: str) -> bool:
        return image in self._containers

    def __len__(self) -> int:
        return self.size()
