from __future__ import annotations

import json
from contextlib import ExitStack, contextmanager
from pathlib import Path
from typing import Any, Iterator
from urllib import error, request

import pytest
from selenium import webdriver
from selenium.common.exceptions import WebDriverException

from harness.config.schema import (
    AdminCredentials,
    BrowserSettings,
    TestConfiguration,
    TimeoutSettings,
    WindowSize,
)
from harness.core.browser import DriverBuilder
from harness.core.browser_type import BrowserType
from harness.core.exceptions import DriverError
from harness.core.provisioning import DriverProvisioner
from harness.core.session import managed_session
from harness.logging.artifacts import ArtifactManager


def valid_section(**overrides: Any) -> dict[str, Any]:
    section: dict[str, Any] = {
        "BaseUrl": "http://localhost:3000/",
        "AdminCredentials": {"Username": "admin", "Password": "s3cr3t"},
    }
    section.update(overrides)
    return section


def write_settings(directory: Path, payload: dict[str, Any], name: str = "appsettings.json") -> Path:
    path = directory / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def make_config(
    browser: str = "Chrome",
    headless: bool = False,
    width: int = 1920,
    height: int = 1080,
    timeout_seconds: int = 10,
) -> TestConfiguration:
    return TestConfiguration(
        base_url="http://localhost:3000/",
        admin_credentials=AdminCredentials(username="admin", password="s3cr3t"),
        timeouts=TimeoutSettings(default_timeout_seconds=timeout_seconds),
        browser=BrowserSettings(
            default_browser=browser,
            headless=headless,
            window_size=WindowSize(width=width, height=height),
        ),
    )


class FakeProvisioner(DriverProvisioner):
    name = "fake"

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.installs: list[BrowserType] = []

    def install(self, browser_type: BrowserType) -> str:
        if self.error is not None:
            raise self.error
        self.installs.append(browser_type)
        return f"/drivers/{browser_type.value}driver"


class FakeDriver:
    """Records the calls DriverBuilder makes against a Selenium session."""

    def __init__(self, browser: str, options, service, fail_on: str | None = None) -> None:
        self.browser = browser
        self.options = options
        self.service = service
        self.fail_on = fail_on
        self.page_load_timeout: float | None = None
        self.implicit_wait: float | None = None
        self.window_size: tuple[int, int] | None = None
        self.quit_called = False
        self.screenshots: list[str] = []

    def set_page_load_timeout(self, seconds: float) -> None:
        self._maybe_fail("set_page_load_timeout")
        self.page_load_timeout = seconds

    def implicitly_wait(self, seconds: float) -> None:
        self.implicit_wait = seconds

    def set_window_size(self, width: int, height: int) -> None:
        self._maybe_fail("set_window_size")
        self.window_size = (width, height)

    def save_screenshot(self, filename: str) -> bool:
        Path(filename).write_bytes(b"\x89PNG")
        self.screenshots.append(filename)
        return True

    def quit(self) -> None:
        self.quit_called = True

    def _maybe_fail(self, method: str) -> None:
        if self.fail_on == method:
            raise WebDriverException(f"{method} failed")


def install_fake_webdriver(monkeypatch, fail_on: str | None = None, start_error: Exception | None = None) -> list[FakeDriver]:
    """Replaces the Selenium browser classes; returns the list of drivers they create."""

    created: list[FakeDriver] = []

    def factory_for(browser: str):
        def factory(service=None, options=None):
            if start_error is not None:
                raise start_error
            driver = FakeDriver(browser, options, service, fail_on=fail_on)
            created.append(driver)
            return driver

        return factory

    for name in ("Chrome", "Firefox", "Edge"):
        monkeypatch.setattr(webdriver, name, factory_for(name))
    return created


def require_reachable_base_url(test_config: TestConfiguration) -> None:
    try:
        with request.urlopen(test_config.base_url, timeout=2):
            return
    except (error.URLError, TimeoutError) as exc:
        pytest.skip(f"Target app is not reachable at {test_config.base_url}: {exc}")


@contextmanager
def managed_browser(
    builder: DriverBuilder,
    artifacts: ArtifactManager,
    name: str,
    browser: str | None = None,
) -> Iterator[Any]:
    with ExitStack() as stack:
        try:
            driver = stack.enter_context(managed_session(builder, browser, artifacts, name))
        except DriverError as exc:
            pytest.skip(f"WebDriver could not start for {name}: {exc}")
        yield driver
