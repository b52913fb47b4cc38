from __future__ import annotations

import logging
from typing import Mapping

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver import ChromeOptions, EdgeOptions, FirefoxOptions
from selenium.webdriver.chrome.service import Service as ChromeService
from selenium.webdriver.common.options import ArgOptions
from selenium.webdriver.edge.service import Service as EdgeService
from selenium.webdriver.firefox.service import Service as FirefoxService
from selenium.webdriver.remote.webdriver import WebDriver

from harness.config.schema import TestConfiguration
from harness.core.browser_type import BrowserType
from harness.core.exceptions import (
    DriverConstructionError,
    DriverProvisioningError,
    UnsupportedBrowserError,
)
from harness.core.provisioning import DriverProvisioner, create_provisioner

log = logging.getLogger(__name__)

BROWSER_PARAMETER = "Browser"
CHROMIUM_HEADLESS_ARGUMENT = "--headless=new"
FIREFOX_HEADLESS_ARGUMENT = "-headless"
STABILITY_ARGUMENTS = (
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-extensions",
)
CHROME_ARGUMENTS = STABILITY_ARGUMENTS + (
    "--disable-infobars",
    "--disable-notifications",
)


class DriverBuilder:
    """Creates configured Selenium sessions; the caller owns and quits each one."""

    def __init__(
        self,
        config: TestConfiguration,
        provisioner: DriverProvisioner | None = None,
        parameters: Mapping[str, str] | None = None,
    ) -> None:
        self.config = config
        self.provisioner = provisioner or create_provisioner()
        self.parameters = dict(parameters or {})

    def resolve_browser_name(self, requested_browser: str | BrowserType | None = None) -> str:
        """Explicit request first, then the runner's Browser parameter, then the configured default."""

        if isinstance(requested_browser, BrowserType):
            return requested_browser.value
        if requested_browser:
            return requested_browser
        from_parameters = self.parameters.get(BROWSER_PARAMETER)
        if from_parameters:
            return from_parameters
        return self.config.browser.default_browser

    def build(self, requested_browser: str | BrowserType | None = None) -> WebDriver:
        browser_type = BrowserType.parse(self.resolve_browser_name(requested_browser))
        log.info("Creating %s driver with configuration settings", browser_type.display_name)

        driver_path = self._provision(browser_type)
        options = self.build_options(browser_type)
        driver = self._start(browser_type, options, driver_path)
        try:
            self._apply_configuration(driver)
        except Exception as exc:
            self._discard(driver, browser_type)
            raise DriverConstructionError(
                f"Could not configure {browser_type.display_name} driver: {exc}"
            ) from exc

        log.info("%s driver created successfully", browser_type.display_name)
        return driver

    def build_options(self, browser_type: BrowserType) -> ArgOptions:
        headless = self.config.browser.headless
        if browser_type is BrowserType.CHROME:
            options = ChromeOptions()
            if headless:
                options.add_argument(CHROMIUM_HEADLESS_ARGUMENT)
            for argument in CHROME_ARGUMENTS:
                options.add_argument(argument)
        elif browser_type is BrowserType.EDGE:
            options = EdgeOptions()
            if headless:
                options.add_argument(CHROMIUM_HEADLESS_ARGUMENT)
            for argument in STABILITY_ARGUMENTS:
                options.add_argument(argument)
        elif browser_type is BrowserType.FIREFOX:
            options = FirefoxOptions()
            if headless:
                options.add_argument(FIREFOX_HEADLESS_ARGUMENT)
        else:
            raise UnsupportedBrowserError(f"Unsupported browser type: {browser_type}")
        log.debug("%s options configured: Headless=%s", browser_type.display_name, headless)
        return options

    def _provision(self, browser_type: BrowserType) -> str | None:
        try:
            return self.provisioner.install(browser_type)
        except DriverProvisioningError:
            raise
        except Exception as exc:
            raise DriverProvisioningError(
                f"Could not provision a {browser_type.display_name} driver: {exc}"
            ) from exc

    @staticmethod
    def _start(browser_type: BrowserType, options: ArgOptions, driver_path: str | None) -> WebDriver:
        try:
            if browser_type is BrowserType.CHROME:
                return webdriver.Chrome(service=ChromeService(executable_path=driver_path), options=options)
            if browser_type is BrowserType.EDGE:
                return webdriver.Edge(service=EdgeService(executable_path=driver_path), options=options)
            if browser_type is BrowserType.FIREFOX:
                return webdriver.Firefox(service=FirefoxService(executable_path=driver_path), options=options)
        except (WebDriverException, OSError) as exc:
            raise DriverConstructionError(
                f"Could not start {browser_type.display_name} driver: {exc}"
            ) from exc
        raise UnsupportedBrowserError(f"Unsupported browser type: {browser_type}")

    def _apply_configuration(self, driver: WebDriver) -> None:
        timeout_seconds = self.config.timeouts.default_timeout_seconds
        window_size = self.config.browser.window_size
        log.debug(
            "Applying driver configuration: PageLoad=%ss, WindowSize=%sx%s, Headless=%s",
            timeout_seconds,
            window_size.width,
            window_size.height,
            self.config.browser.headless,
        )
        driver.set_page_load_timeout(timeout_seconds)
        driver.implicitly_wait(0)
        driver.set_window_size(window_size.width, window_size.height)

    @staticmethod
    def _discard(driver: WebDriver, browser_type: BrowserType) -> None:
        try:
            driver.quit()
        except WebDriverException as exc:
            log.warning("Failed to quit partially configured %s driver: %s", browser_type.display_name, exc)
