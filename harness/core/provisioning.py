from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod

from webdriver_manager.chrome import ChromeDriverManager
from webdriver_manager.firefox import GeckoDriverManager
from webdriver_manager.microsoft import EdgeChromiumDriverManager

from harness.core.browser_type import BrowserType
from harness.core.exceptions import DriverProvisioningError

log = logging.getLogger(__name__)


class DriverProvisioner(ABC):
    """Makes a native driver binary matching the installed browser available."""

    name = "unknown"

    @abstractmethod
    def install(self, browser_type: BrowserType) -> str | None:
        """Returns the driver executable path, or None to let Selenium locate it."""

        raise NotImplementedError


class WebDriverManagerProvisioner(DriverProvisioner):
    """Downloads drivers through webdriver-manager; cached binaries are reused."""

    name = "webdriver-manager"

    def install(self, browser_type: BrowserType) -> str:
        log.debug("Provisioning %s driver with webdriver-manager", browser_type.display_name)
        try:
            path = self._manager(browser_type).install()
        except Exception as exc:
            raise DriverProvisioningError(
                f"Could not provision a {browser_type.display_name} driver: {exc}"
            ) from exc
        log.debug("%s driver available at %s", browser_type.display_name, path)
        return path

    @staticmethod
    def _manager(browser_type: BrowserType):
        if browser_type is BrowserType.CHROME:
            return ChromeDriverManager()
        if browser_type is BrowserType.FIREFOX:
            return GeckoDriverManager()
        if browser_type is BrowserType.EDGE:
            return EdgeChromiumDriverManager()
        raise DriverProvisioningError(f"No driver manager for browser: {browser_type}")


class SeleniumManagerProvisioner(DriverProvisioner):
    """Defers driver discovery to the Selenium Manager bundled with selenium."""

    name = "selenium-manager"

    def install(self, browser_type: BrowserType) -> None:
        log.debug("Leaving %s driver discovery to Selenium Manager", browser_type.display_name)
        return None


def create_provisioner() -> DriverProvisioner:
    provider = os.getenv("DRIVER_PROVISIONER", WebDriverManagerProvisioner.name).lower()
    if provider == WebDriverManagerProvisioner.name:
        return WebDriverManagerProvisioner()
    if provider == SeleniumManagerProvisioner.name:
        return SeleniumManagerProvisioner()
    raise DriverProvisioningError(f"Unsupported driver provisioner: {provider}")
