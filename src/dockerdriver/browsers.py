"""Browser requests and per-browser option profiles."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple

from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.chromium.options import ChromiumOptions
from selenium.webdriver.common.options import ArgOptions
from selenium.webdriver.firefox.options import Options as FirefoxOptions

OPERA_BINARY = "/usr/bin/opera"

_RELATIVE_LABEL = re.compile(r"^latest-(\d+)$", re.IGNORECASE)


class OperaOptions(ChromiumOptions):
    """Chromium options sent under the operadriver capability key."""

    KEY = "operaOptions"

    @property
    def default_capabilities(self) -> dict:
        return {"browserName": "opera"}


class BrowserType(str, Enum):
    CHROME = "chrome"
    FIREFOX = "firefox"
    OPERA = "opera"

    @classmethod
    def parse(cls, value: str) -> BrowserType:
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unsupported browser: {value}") from None

    @property
    def profile(self) -> BrowserProfile:
        return PROFILES[self]

    def __str__(self) -> str:
        return self.name


class VersionKind(str, Enum):
    LATEST = "latest"
    EXACT = "exact"
    RELATIVE = "relative"


@dataclass(frozen=True)
class VersionSpec:
    """Latest, an exact version ("73.0") or a label relative to latest ("latest-1")."""

    kind: VersionKind = VersionKind.LATEST
    value: Optional[str] = None

    @classmethod
    def latest(cls) -> VersionSpec:
        return cls()

    @classmethod
    def exact(cls, version: str) -> VersionSpec:
        return cls(VersionKind.EXACT, version)

    @classmethod
    def relative(cls, behind: int) -> VersionSpec:
        return cls(VersionKind.RELATIVE, f"latest-{behind}")

    @classmethod
    def parse(cls, text: Optional[str]) -> VersionSpec:
        if text is None or not text.strip() or text.strip().lower() == "latest":
            return cls.latest()
        text = text.strip()
        match = _RELATIVE_LABEL.match(text)
        if match:
            return cls.relative(int(match.group(1)))
        return cls.exact(text)

    @property
    def is_latest(self) -> bool:
        return self.kind is VersionKind.LATEST

    @property
    def behind(self) -> int:
        """How many versions behind latest a relative label points."""
        if self.kind is not VersionKind.RELATIVE:
            return 0
        return int(_RELATIVE_LABEL.match(self.value).group(1))

    def __str__(self) -> str:
        return self.value or "latest"


@dataclass(frozen=True)
class BrowserRequest:
    type: BrowserType
    version: VersionSpec = field(default_factory=VersionSpec.latest)
    size: Optional[int] = None


class ParameterKind(str, Enum):
    WEBDRIVER = "webdriver"
    BROWSER_LIST = "browser_list"
    OTHER = "other"


@dataclass(frozen=True)
class ParameterMeta:
    """A test parameter as declared by the test-framework adapter."""

    name: str
    kind: ParameterKind = ParameterKind.WEBDRIVER
    size: int = 0
    arguments: Tuple[str, ...] = ()
    capabilities: Mapping[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.name


@dataclass
class TestScope:
    """What the adapter knows about the test a handler serves."""

    __test__ = False

    test_class: Optional[str] = None
    test_method: Optional[str] = None
    # parameter lists of every constructor and method of the test class
    signatures: Sequence[Sequence[ParameterMeta]] = ()
    output_folder: Optional[Path] = None


class BrowserProfile:
    """Per-browser options factory and post-processing hook."""

    def __init__(self, browser: str, options_class: type[ArgOptions], path: str = "/"):
        self.browser = browser
        self.options_class = options_class
        self.path = path

    def create_options(self, parameter: Optional[ParameterMeta] = None) -> ArgOptions:
        options = self.options_class()
        if parameter is not None:
            for argument in parameter.arguments:
                options.add_argument(argument)
            for key, value in parameter.capabilities.items():
                options.set_capability(key, value)
        return options

    def post_process_options(self, options: ArgOptions) -> ArgOptions:
        return options


class OperaProfile(BrowserProfile):
    def post_process_options(self, options: ArgOptions) -> ArgOptions:
        # operablink ignores the image default binary
        options.binary_location = OPERA_BINARY
        return options


PROFILES = {
    BrowserType.CHROME: BrowserProfile("chrome", ChromeOptions),
    BrowserType.FIREFOX: BrowserProfile("firefox", FirefoxOptions, path="/wd/hub"),
    BrowserType.OPERA: OperaProfile("opera", OperaOptions),
}

OptionsFactory = Callable[[BrowserType, Optional[ParameterMeta]], ArgOptions]


def default_options(browser: BrowserType, parameter: Optional[ParameterMeta] = None) -> ArgOptions:
    return browser.profile.create_options(parameter)
