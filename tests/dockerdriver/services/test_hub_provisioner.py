import json

from dockerdriver.browsers import BrowserRequest, BrowserType, VersionSpec
from dockerdriver.config import Settings
from dockerdriver.services.container_registry import ContainerRegistry
from dockerdriver.services.hub_provisioner import HubProvisioner, build_hub_command, to_docker_path


def test_posix_path_is_unchanged():
    assert to_docker_path("/home/user/videos") == "/home/user/videos"


def test_windows_path_is_normalized():
    assert to_docker_path("C:\\Users\\a\\v") == "/c/Users/a/v"
    assert to_docker_path("C:\\a\\b") == "/c/a/b"


def test_hub_command_template():
    command = build_hub_command('{"chrome":{}}', 4444, "1m0s", "bridge", 2)

    assert command == (
        "mkdir -p /etc/selenoid/; echo '{\"chrome\":{}}' > /etc/selenoid/browsers.json; "
        "/usr/bin/selenoid -listen :4444 -conf /etc/selenoid/browsers.json "
        "-video-output-dir /opt/selenoid/video/ -timeout 1m0s -container-network bridge -limit 2"
    )


def test_ensure_hub_starts_one_container(fake_docker, catalog, settings):
    registry = ContainerRegistry()
    hub = HubProvisioner(fake_docker, catalog, registry, settings, browser_count=3)

    urls = {hub.ensure_hub(BrowserRequest(BrowserType.CHROME)) for _ in range(4)}

    assert urls == {"http://localhost:32768/wd/hub"}
    assert len(fake_docker.started) == 1
    assert fake_docker.pulled.count("aerokube/selenoid:1.8.4") == 1
    assert registry.get("aerokube/selenoid:1.8.4").container_id == "container1"


def test_hub_container_spec(fake_docker, catalog, settings):
    hub = HubProvisioner(fake_docker, catalog, ContainerRegistry(), settings, browser_count=3)
    hub.ensure_hub(BrowserRequest(BrowserType.FIREFOX, VersionSpec.exact("65")))

    assert "selenoid/vnc:firefox_65.0" in fake_docker.pulled
    spec = fake_docker.started[0]
    assert spec.image == "aerokube/selenoid:1.8.4"
    assert spec.port_bindings == {"4444": "0.0.0.0"}
    assert spec.binds == ["/var/run/docker.sock:/var/run/docker.sock"]
    assert spec.entry_point == [""]
    assert spec.envs == ["DOCKER_API_VERSION=1.35", "TZ=UTC"]
    assert spec.network == "bridge"
    assert spec.cmd[:2] == ["sh", "-c"]
    assert spec.cmd[2].endswith("-container-network bridge -limit 3")

    browsers_json = spec.cmd[2].split("echo '")[1].split("' >")[0]
    descriptor = json.loads(browsers_json)
    assert descriptor["firefox"]["default"] == "66.0"
    assert descriptor["firefox"]["versions"]["65.0"]["path"] == "/wd/hub"


def test_hub_with_recording(fake_docker, catalog, tmp_path):
    settings = Settings(recording=True, output_folder=tmp_path)
    video = str(tmp_path.resolve())
    hub = HubProvisioner(fake_docker, catalog, ContainerRegistry(), settings, video_folder=tmp_path)
    hub.ensure_hub(BrowserRequest(BrowserType.CHROME))

    assert "selenoid/video-recorder:latest-release" in fake_docker.pulled
    spec = fake_docker.started[0]
    assert f"{video}:/opt/selenoid/video" in spec.binds
    assert f"OVERRIDE_VIDEO_OUTPUT_DIR={video}" in spec.envs


def test_limit_is_never_zero(fake_docker, catalog, settings):
    hub = HubProvisioner(fake_docker, catalog, ContainerRegistry(), settings, browser_count=0)
    hub.start_hub()

    assert fake_docker.started[0].cmd[2].endswith("-limit 1")
