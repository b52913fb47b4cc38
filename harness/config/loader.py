from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ValidationError

from harness.config.resolver import LayeredConfiguration, build_configuration
from harness.config.schema import TestConfiguration
from harness.core.exceptions import ConfigInvalidError, ConfigMissingError

log = logging.getLogger(__name__)


class ConfigLoader:
    """Binds the layered configuration onto TestConfiguration and validates it."""

    @staticmethod
    def load(
        path: str | Path | None = None,
        environment: str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> TestConfiguration:
        """Builds the layered configuration rooted at ``path`` and loads it.

        ``path`` may be the settings directory or the base settings file itself.
        """

        root = Path(path) if path is not None else None
        if root is not None and root.suffix == ".json":
            root = root.parent
        configuration = build_configuration(root, environment=environment, environ=environ)
        return ConfigLoader.load_section(configuration)

    @staticmethod
    def load_section(
        configuration: LayeredConfiguration,
        section: str = TestConfiguration.SECTION_NAME,
    ) -> TestConfiguration:
        log.debug("Loading test configuration from section: %s", section)
        node = configuration.get_section(section)
        if not node.exists():
            raise ConfigMissingError(f"Configuration section '{section}' not found")

        payload = align_keys(TestConfiguration, node.to_dict())
        try:
            test_config = TestConfiguration.model_validate(payload)
        except ValidationError as exc:
            violations = [_describe(error) for error in exc.errors()]
            raise ConfigInvalidError(
                f"Configuration validation failed: {', '.join(violations)}",
                violations,
            ) from exc

        log.info("Configuration validation passed successfully")
        log.debug("Base URL: %s", test_config.base_url)
        log.debug("Admin Username: %s", test_config.admin_credentials.username)
        log.debug("Default Timeout: %ss", test_config.timeouts.default_timeout_seconds)
        log.debug("Default Browser: %s", test_config.browser.default_browser)
        return test_config


def align_keys(model: type[BaseModel], data: Any) -> Any:
    """Renames keys to the model's aliases, ignoring case, recursing into nested models."""

    if not isinstance(data, dict):
        return data
    fields: dict[str, tuple[str, Any]] = {}
    for name, info in model.model_fields.items():
        alias = info.alias or name
        fields[alias.casefold()] = (alias, info.annotation)
        fields.setdefault(name.casefold(), (alias, info.annotation))

    aligned: dict[str, Any] = {}
    for key, value in data.items():
        match = fields.get(key.casefold())
        if match is None:
            aligned[key] = value
            continue
        alias, annotation = match
        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            value = align_keys(annotation, value)
        aligned[alias] = value
    return aligned


def _describe(error: dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error["loc"])
    if error["type"] == "value_error":
        message = str(error["ctx"]["error"])
    elif error["type"] == "missing":
        message = f"The {location} field is required"
    else:
        message = error["msg"]
    return f"{location}: {message}" if location else message
