"""Resolve docker browsers into remote WebDriver sessions.

A handler serves one test scope: it starts the shared selenoid hub (and
the noVNC viewer) lazily, opens one remote session per ``resolve`` call,
and tears every container down again in ``close``.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from loguru import logger
from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.common.options import ArgOptions

from dockerdriver.browsers import (
    BrowserRequest,
    BrowserType,
    OptionsFactory,
    ParameterMeta,
    TestScope,
    VersionKind,
    VersionSpec,
    default_options,
)
from dockerdriver.catalog import ImageCatalog, SelenoidCatalog
from dockerdriver.config import Settings, load_settings
from dockerdriver.runtime.base import (
    DockerDriverError,
    Interrupted,
    RuntimeGateway,
    SessionOpenFailed,
    SessionResolutionError,
)
from dockerdriver.runtime.docker_service import DockerService
from dockerdriver.services.artifact_finalizer import ArtifactFinalizer
from dockerdriver.services.container_registry import ContainerRegistry
from dockerdriver.services.hub_provisioner import HubProvisioner, host_path
from dockerdriver.services.parallelism import estimate_browser_count
from dockerdriver.services.properties import EnvironPropertySink, PropertySink
from dockerdriver.services.teardown import TeardownCoordinator
from dockerdriver.services.vnc_provisioner import VncProvisioner

VNC_REDIRECT_PAGE = (
    "<!DOCTYPE html>\n"
    "<html>\n"
    "<head>\n"
    '<meta http-equiv="refresh" content="0; url={url}">\n'
    "</head>\n"
    "<body>\n"
    "</body>\n"
    "</html>"
)


@dataclass
class SessionHandle:
    url: str
    name: str
    session_id: str
    driver: Any
    image_version: str
    capabilities: Dict[str, Any] = field(default_factory=dict)
    recording_path: Optional[Path] = None
    vnc_url: Optional[str] = None


class DockerDriverHandler:
    """Provision docker browsers for one test scope and clean them up."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        scope: Optional[TestScope] = None,
        browser_count: Optional[int] = None,
        docker_service: Optional[RuntimeGateway] = None,
        catalog: Optional[ImageCatalog] = None,
        registry: Optional[ContainerRegistry] = None,
        property_sink: Optional[PropertySink] = None,
        options_factory: OptionsFactory = default_options,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.settings = settings or load_settings()
        self.scope = scope
        self.cancel_event = cancel_event or threading.Event()
        self._owns_docker_service = docker_service is None
        self.docker_service = docker_service or DockerService(self.settings, self.cancel_event)
        self.catalog = catalog or SelenoidCatalog(self.settings)
        self.registry = registry if registry is not None else ContainerRegistry()
        self.property_sink = property_sink or EnvironPropertySink()
        self.options_factory = options_factory

        folder = scope.output_folder if scope and scope.output_folder else self.settings.output_folder
        self.output_folder = Path(host_path(folder))
        if browser_count is None:
            browser_count = estimate_browser_count(scope)

        self.hub = HubProvisioner(
            self.docker_service,
            self.catalog,
            self.registry,
            self.settings,
            browser_count=browser_count,
            video_folder=self.output_folder,
        )
        self.vnc = VncProvisioner(self.docker_service, self.registry, self.settings)
        self.finalizer = ArtifactFinalizer(
            self.docker_service.wait_timeout_sec,
            self.docker_service.poll_interval_ms,
            self.cancel_event,
        )
        self.teardown = TeardownCoordinator(self.docker_service, self.registry)
        self.sessions: List[SessionHandle] = []
        self._closed = False

    def __enter__(self) -> DockerDriverHandler:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def resolve(
        self,
        request: BrowserRequest,
        parameter: Optional[ParameterMeta] = None,
        index: Optional[str] = None,
    ) -> SessionHandle:
        """Open a remote session for ``request`` and return its handle."""
        browser = request.type
        version = request.version
        try:
            # 1. Resolve image version
            if version.is_latest:
                image_version = self.catalog.default_version(browser)
                hub_request = request
            else:
                exact = version.value
                if version.kind is VersionKind.RELATIVE:
                    exact = self.catalog.version_from_label(browser, version)
                image_version = self.catalog.image_version(browser, exact)
                hub_request = replace(request, version=VersionSpec.exact(image_version))

            options = self._options(browser, parameter, image_version)

            # 2. Hub
            server_url = self.settings.selenium_server_url
            hub_url = server_url or self.hub.ensure_hub(hub_request)
            logger.trace(f"Using Selenium Server at {hub_url}")

            # 3. Remote session
            driver = self._open_session(hub_url, options)
            session_id = str(driver.session_id)
            handle = SessionHandle(
                url=hub_url,
                name=self._session_name(browser, image_version, session_id, parameter, index),
                session_id=session_id,
                driver=driver,
                image_version=image_version,
                capabilities=options.to_capabilities(),
            )

            # 4. VNC and recording
            if self.settings.vnc and not server_url:
                handle.vnc_url = self._publish_vnc(hub_url, session_id, handle.name)
            if self.settings.recording:
                if server_url:
                    logger.warning(f"Recording is not collected from external Selenium Server {server_url}")
                else:
                    handle.recording_path = self.output_folder / f"{session_id}.mp4"
        except Exception as e:
            logger.error(f"Exception resolving {parameter} ({browser.name} {version}): {e}")
            code = e.code if isinstance(e, DockerDriverError) else None
            raise SessionResolutionError(f"Unable to resolve {browser.name} {version}: {e}", code=code) from e

        self.sessions.append(handle)
        return handle

    def _options(self, browser: BrowserType, parameter: Optional[ParameterMeta], image_version: str) -> ArgOptions:
        options = self.options_factory(browser, parameter)
        options = browser.profile.post_process_options(options)
        options.set_capability("version", image_version)
        if self.settings.vnc:
            options.set_capability("enableVNC", True)
            options.set_capability("screenResolution", self.settings.vnc_screen_resolution)
        if self.settings.recording:
            options.set_capability("enableVideo", True)
            options.set_capability("videoScreenSize", self.settings.recording_video_screen_size)
            options.set_capability("videoFrameRate", self.settings.recording_video_frame_rate)
        return options

    def _open_session(self, hub_url: str, options: ArgOptions):
        try:
            return webdriver.Remote(command_executor=hub_url, options=options)
        except WebDriverException as e:
            raise SessionOpenFailed(f"Remote endpoint {hub_url} refused the session: {e.msg}") from e

    def _session_name(
        self,
        browser: BrowserType,
        image_version: str,
        session_id: str,
        parameter: Optional[ParameterMeta],
        index: Optional[str],
    ) -> str:
        if parameter is None:
            return browser.value.lower()
        name = f"{parameter.name}_{browser.name}_{image_version}_{session_id}"
        if self.scope and self.scope.test_method:
            name = f"{self.scope.test_method}_{name}"
        if index is not None:
            name += index
        return name

    def _publish_vnc(self, hub_url: str, session_id: str, name: str) -> str:
        hub = urlparse(hub_url)
        novnc_url = self.vnc.viewer_url(hub.hostname, hub.port, session_id)
        logger.info(f"Session id {session_id}")
        logger.info("VNC URL (copy and paste in a browser navigation bar to interact with remote session)")
        logger.info(novnc_url)

        vnc_export = self.settings.vnc_export
        logger.trace(f"Exporting VNC URL as property {vnc_export}")
        self.property_sink.set(vnc_export, novnc_url)

        if self.settings.vnc_redirect_html_page:
            self.output_folder.mkdir(parents=True, exist_ok=True)
            page = self.output_folder / f"{name}.html"
            page.write_text(VNC_REDIRECT_PAGE.format(url=novnc_url), encoding="utf-8")
        return novnc_url

    def finalize_recordings(self) -> None:
        for handle in self.sessions:
            if handle.recording_path is None:
                continue
            try:
                final_path = self.finalizer.finalize(handle.recording_path, handle.name)
            except OSError as e:
                logger.warning(f"Exception waiting for recording {handle.recording_path}: {e}")
                continue
            if final_path:
                handle.recording_path = final_path

    def _clear_vnc_property(self) -> None:
        vnc_export = self.settings.vnc_export
        try:
            if self.property_sink.get(vnc_export) is not None:
                logger.trace(f"Clearing property {vnc_export}")
                self.property_sink.clear(vnc_export)
        except Exception as e:
            logger.warning(f"Exception clearing property {vnc_export}: {e}")

    def cancel(self) -> None:
        """Make pending container starts and recording waits give up with Interrupted."""
        self.cancel_event.set()

    def close(self) -> None:
        """Finalize recordings, clear the VNC property and stop every container."""
        if self._closed:
            return
        self._closed = True

        interrupted = None
        try:
            if self.settings.recording:
                try:
                    self.finalize_recordings()
                except Interrupted as e:
                    logger.warning(f"{e}")
                    interrupted = e
            if self.settings.vnc:
                self._clear_vnc_property()
        finally:
            try:
                self.teardown.stop_all()
            finally:
                if self._owns_docker_service:
                    self.docker_service.close()
        if interrupted is not None:
            raise interrupted
