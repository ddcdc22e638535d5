"""Browser image catalog backed by selenoid images."""

from __future__ import annotations

import json
import re
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

import requests
from loguru import logger

from dockerdriver.browsers import BrowserType, VersionSpec
from dockerdriver.config import Settings
from dockerdriver.runtime.base import ImageUnavailable

_NUMERIC_VERSION = re.compile(r"^\d+(\.\d+)*$")

# webdriver port inside the selenoid browser images
BROWSER_PORT = "4444"


class ImageCatalog(Protocol):
    def default_version(self, browser: BrowserType) -> str:
        ...

    def latest_image(self, browser: BrowserType) -> str:
        ...

    def image_from_version(self, browser: BrowserType, version: str) -> str:
        ...

    def image_version(self, browser: BrowserType, version: str) -> str:
        ...

    def version_from_label(self, browser: BrowserType, label: VersionSpec) -> str:
        ...

    def browsers_descriptor_json(self) -> str:
        ...


def version_key(version: str) -> tuple:
    return tuple(int(part) for part in version.split(".") if part.isdigit())


def version_range(first: str, latest: str) -> List[str]:
    """Expand a first..latest range in major steps: 48.0, 49.0, ... 73.0."""
    versions = [first]
    major = version_key(first)[0] + 1
    last_major = version_key(latest)[0]
    while major <= last_major:
        versions.append(f"{major}.0")
        major += 1
    if latest not in versions:
        versions.append(latest)
    return sorted(set(versions), key=version_key)


class DockerHubClient:
    """Lists image tags from the Docker Hub registry API."""

    def __init__(self, hub_url: str = "https://hub.docker.com/", timeout: float = 10.0):
        self.hub_url = hub_url if hub_url.endswith("/") else hub_url + "/"
        self.timeout = timeout

    def list_tags(self, repository: str) -> List[str]:
        url: Optional[str] = f"{self.hub_url}v2/repositories/{repository}/tags?page_size=100"
        tags: List[str] = []
        while url:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
            tags.extend(result["name"] for result in data.get("results", []))
            url = data.get("next")
        return tags


class SelenoidCatalog:
    """Maps (browser, version) to selenoid image tags and renders browsers.json."""

    def __init__(
        self,
        settings: Settings,
        versions: Optional[Mapping[BrowserType, Sequence[str]]] = None,
        hub_client: Optional[DockerHubClient] = None,
    ):
        self.settings = settings
        self.repository = settings.browser_image_repository
        self.hub_client = hub_client or DockerHubClient(settings.docker_hub_url)
        self._versions: Dict[BrowserType, List[str]] = {}
        if versions:
            for browser, values in versions.items():
                self._versions[browser] = sorted(values, key=version_key)

    def versions(self, browser: BrowserType) -> List[str]:
        if browser not in self._versions:
            self._versions[browser] = self._load_versions(browser)
        return self._versions[browser]

    def _load_versions(self, browser: BrowserType) -> List[str]:
        if self.settings.browser_list_from_docker_hub:
            try:
                versions = self._versions_from_docker_hub(browser)
                if versions:
                    return versions
                logger.warning(f"No {browser.value} tags found in {self.repository}, using configured versions")
            except requests.RequestException as e:
                logger.warning(f"Unable to list {self.repository} tags from Docker Hub ({e}), using configured versions")
        first, latest = self.settings.version_range(browser.value)
        return version_range(first, latest)

    def _versions_from_docker_hub(self, browser: BrowserType) -> List[str]:
        prefix = f"{browser.value}_"
        versions = []
        for tag in self.hub_client.list_tags(self.repository):
            if tag.startswith(prefix):
                version = tag[len(prefix):]
                if _NUMERIC_VERSION.match(version):
                    versions.append(version)
        logger.debug(f"Docker Hub lists {len(versions)} {browser.value} versions")
        return sorted(versions, key=version_key)

    def default_version(self, browser: BrowserType) -> str:
        versions = self.versions(browser)
        if not versions:
            raise ImageUnavailable(f"No versions of {browser.name} in catalog")
        return versions[-1]

    def latest_image(self, browser: BrowserType) -> str:
        return self._image(browser, self.default_version(browser))

    def image_from_version(self, browser: BrowserType, version: str) -> str:
        return self._image(browser, self.image_version(browser, version))

    def image_version(self, browser: BrowserType, version: str) -> str:
        """Resolve a user version ("73" or "73.0") to the catalog's version."""
        versions = self.versions(browser)
        if version in versions:
            return version
        # newest first so "73" prefers 73.1 over 73.0
        for candidate in reversed(versions):
            if candidate.startswith(version + "."):
                return candidate
        raise ImageUnavailable(f"Version {version} of {browser.name} is not available (known: {versions})")

    def version_from_label(self, browser: BrowserType, label: VersionSpec) -> str:
        versions = self.versions(browser)
        index = len(versions) - 1 - label.behind
        if index < 0:
            raise ImageUnavailable(f"{label} is out of range for {browser.name} ({len(versions)} versions known)")
        return versions[index]

    def browsers_descriptor_json(self) -> str:
        descriptor = {}
        for browser in BrowserType:
            versions = self.versions(browser)
            if not versions:
                continue
            descriptor[browser.value] = {
                "default": versions[-1],
                "versions": {
                    version: {
                        "image": self._image(browser, version),
                        "port": BROWSER_PORT,
                        "path": browser.profile.path,
                    }
                    for version in versions
                },
            }
        return json.dumps(descriptor, separators=(",", ":"))

    def _image(self, browser: BrowserType, version: str) -> str:
        return f"{self.repository}:{browser.value}_{version}"
