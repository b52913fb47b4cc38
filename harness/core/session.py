from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from selenium.common.exceptions import WebDriverException
from selenium.webdriver.remote.webdriver import WebDriver

from harness.core.browser import DriverBuilder
from harness.core.browser_type import BrowserType
from harness.logging.artifacts import ArtifactManager

log = logging.getLogger(__name__)


@contextmanager
def managed_session(
    builder: DriverBuilder,
    browser: str | BrowserType | None = None,
    artifacts: ArtifactManager | None = None,
    name: str = "session",
) -> Iterator[WebDriver]:
    """Builds a session, screenshots it if the body fails, and always quits it."""

    driver = builder.build(browser)
    log.info("Starting session: %s", name)
    try:
        yield driver
    except Exception:
        if artifacts is not None:
            capture_screenshot(driver, artifacts, name)
        raise
    finally:
        driver.quit()
        log.info("Driver quit and disposed: %s", name)


def capture_screenshot(driver: WebDriver, artifacts: ArtifactManager, name: str) -> Path | None:
    """Saves a screenshot; returns its path, or None when the driver cannot take one."""

    path = artifacts.screenshot_path(name)
    try:
        saved = driver.save_screenshot(str(path))
    except WebDriverException as exc:
        log.warning("Failed to capture screenshot for %s: %s", name, exc)
        return None
    if not saved:
        log.warning("Driver did not save a screenshot for %s", name)
        return None
    log.info("Screenshot saved to %s", path)
    return path
