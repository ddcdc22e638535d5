"""Shared fakes for handler and provisioner tests."""

import time

import pytest

from dockerdriver.browsers import BrowserType
from dockerdriver.catalog import SelenoidCatalog
from dockerdriver.config import Settings


class FakeDockerService:
    """In-memory runtime gateway recording every call."""

    def __init__(self, stop_delay=0.0):
        self.wait_timeout_sec = 1
        self.poll_interval_ms = 10
        self.stop_delay = stop_delay
        self.pulled = []
        self.started = []
        self.stopped = []
        self.closed = False
        self.ports = {"4444/tcp": "32768", "8080/tcp": "32769"}

    def pull_image(self, image):
        self.pulled.append(image)

    def pull_image_if_absent(self, image):
        self.pulled.append(image)

    def start_container(self, spec):
        self.started.append(spec)
        return f"container{len(self.started)}"

    def get_host(self, container_id, network):
        return "localhost"

    def get_bind_port(self, container_id, port):
        return self.ports[port]

    def stop_and_remove(self, container_id, image):
        if self.stop_delay:
            time.sleep(self.stop_delay)
        self.stopped.append((container_id, image))

    def default_socket_path(self):
        return "/var/run/docker.sock"

    def close(self):
        self.closed = True


@pytest.fixture
def fake_docker():
    return FakeDockerService()


@pytest.fixture
def settings(tmp_path):
    return Settings(output_folder=tmp_path)


def make_catalog(settings, chrome=("71.0", "72.0", "73.0")):
    return SelenoidCatalog(
        settings,
        versions={
            BrowserType.CHROME: list(chrome),
            BrowserType.FIREFOX: ["65.0", "66.0"],
            BrowserType.OPERA: ["57.0", "58.0"],
        },
    )


@pytest.fixture
def catalog(settings):
    return make_catalog(settings)
