from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

from harness.config.loader import ConfigLoader
from harness.config.resolver import ConfigurationSection, LayeredConfiguration, build_configuration
from harness.config.schema import (
    AccessibilitySettings,
    AdminCredentials,
    BrowserSettings,
    TestConfiguration,
    TimeoutSettings,
)

log = logging.getLogger(__name__)


class ConfigurationManager:
    """Validated test settings plus raw access to the merged configuration.

    Construction resolves, binds and validates the configuration; any
    ConfigurationError raised here means the test run has no usable settings.
    """

    def __init__(
        self,
        configuration: LayeredConfiguration | None = None,
        *,
        base_path: str | Path | None = None,
        environment: str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        if configuration is None:
            log.debug("Building configuration from multiple sources")
            configuration = build_configuration(base_path, environment=environment, environ=environ)
        self._configuration = configuration
        self._test_config = ConfigLoader.load_section(configuration)

    @property
    def configuration(self) -> LayeredConfiguration:
        return self._configuration

    @property
    def test_config(self) -> TestConfiguration:
        return self._test_config

    @property
    def base_url(self) -> str:
        return self._test_config.base_url

    @property
    def admin_credentials(self) -> AdminCredentials:
        return self._test_config.admin_credentials

    @property
    def timeouts(self) -> TimeoutSettings:
        return self._test_config.timeouts

    @property
    def browser(self) -> BrowserSettings:
        return self._test_config.browser

    @property
    def accessibility(self) -> AccessibilitySettings:
        return self._test_config.accessibility

    def get_value(self, key: str, default: Any = None, value_type: type | None = None) -> Any:
        return self._configuration.get_value(key, default, value_type)

    def get_section(self, key: str) -> ConfigurationSection:
        return self._configuration.get_section(key)

    def section_exists(self, key: str) -> bool:
        return self._configuration.section_exists(key)


@lru_cache(maxsize=1)
def get_configuration_manager() -> ConfigurationManager:
    """Returns the process-wide manager, building it on first use.

    A failed construction is not cached; the error propagates to the caller.
    First use is not interlocked, so initialise it before starting workers.
    """

    return ConfigurationManager()


def reset_configuration_manager() -> None:
    get_configuration_manager.cache_clear()
