import json

import pytest
import requests
from unittest.mock import MagicMock, patch

from dockerdriver.browsers import BrowserType, VersionSpec
from dockerdriver.catalog import SelenoidCatalog, version_range
from dockerdriver.config import Settings
from dockerdriver.runtime.base import ImageUnavailable


def test_version_range_steps_by_major():
    versions = version_range("48.0", "73.0")

    assert versions[0] == "48.0"
    assert versions[-1] == "73.0"
    assert len(versions) == 26
    assert version_range("3.6", "5.0") == ["3.6", "4.0", "5.0"]


def test_configured_versions():
    catalog = SelenoidCatalog(Settings(chrome_first_version="70.0", chrome_latest_version="73.0"))

    assert catalog.versions(BrowserType.CHROME) == ["70.0", "71.0", "72.0", "73.0"]
    assert catalog.default_version(BrowserType.CHROME) == "73.0"
    assert catalog.latest_image(BrowserType.CHROME) == "selenoid/vnc:chrome_73.0"


def test_version_lookup(catalog):
    assert catalog.image_version(BrowserType.CHROME, "72") == "72.0"
    assert catalog.image_version(BrowserType.CHROME, "72.0") == "72.0"
    assert catalog.image_from_version(BrowserType.OPERA, "57") == "selenoid/vnc:opera_57.0"
    with pytest.raises(ImageUnavailable):
        catalog.image_version(BrowserType.CHROME, "12")


def test_version_from_label():
    catalog = SelenoidCatalog(Settings(), versions={BrowserType.CHROME: ["73", "71", "72"]})

    assert catalog.version_from_label(BrowserType.CHROME, VersionSpec.parse("latest-1")) == "72"
    assert catalog.version_from_label(BrowserType.CHROME, VersionSpec.parse("latest-2")) == "71"
    with pytest.raises(ImageUnavailable):
        catalog.version_from_label(BrowserType.CHROME, VersionSpec.parse("latest-3"))


def test_browsers_descriptor_json(catalog):
    descriptor = json.loads(catalog.browsers_descriptor_json())

    assert set(descriptor) == {"chrome", "firefox", "opera"}
    assert descriptor["chrome"]["default"] == "73.0"
    assert descriptor["chrome"]["versions"]["71.0"] == {
        "image": "selenoid/vnc:chrome_71.0",
        "port": "4444",
        "path": "/",
    }
    assert descriptor["firefox"]["versions"]["66.0"]["path"] == "/wd/hub"
    assert "'" not in catalog.browsers_descriptor_json()


@patch("dockerdriver.catalog.requests.get")
def test_versions_from_docker_hub(mock_get):
    page1 = MagicMock()
    page1.json.return_value = {
        "results": [{"name": "chrome_72.0"}, {"name": "firefox_66.0"}, {"name": "latest"}],
        "next": "https://hub.docker.com/v2/repositories/selenoid/vnc/tags?page=2",
    }
    page2 = MagicMock()
    page2.json.return_value = {"results": [{"name": "chrome_73.0"}, {"name": "chrome_beta"}], "next": None}
    mock_get.side_effect = [page1, page2]

    catalog = SelenoidCatalog(Settings(browser_list_from_docker_hub=True))

    assert catalog.versions(BrowserType.CHROME) == ["72.0", "73.0"]
    assert mock_get.call_count == 2
    assert mock_get.call_args_list[0][0][0] == "https://hub.docker.com/v2/repositories/selenoid/vnc/tags?page_size=100"
    assert mock_get.call_args_list[1][0][0] == "https://hub.docker.com/v2/repositories/selenoid/vnc/tags?page=2"


@patch("dockerdriver.catalog.requests.get", side_effect=requests.ConnectionError("offline"))
def test_docker_hub_failure_falls_back_to_settings(mock_get):
    settings = Settings(
        browser_list_from_docker_hub=True,
        firefox_first_version="64.0",
        firefox_latest_version="66.0",
    )
    catalog = SelenoidCatalog(settings)

    assert catalog.versions(BrowserType.FIREFOX) == ["64.0", "65.0", "66.0"]
