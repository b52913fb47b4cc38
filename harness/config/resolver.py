from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Iterator, Mapping

from pydantic import TypeAdapter, ValidationError

from harness.core.exceptions import ConfigInvalidError, ConfigMissingError

log = logging.getLogger(__name__)

KEY_DELIMITER = ":"
BASE_FILE_NAME = "appsettings.json"
ENV_PREFIX = "TEST_"
ENVIRONMENT_VARIABLE = "TEST_ENVIRONMENT"
DEFAULT_ENVIRONMENT = "Development"


class LayeredConfiguration:
    """Flattened key/value view over ordered sources; later sources win.

    Keys are colon-separated paths such as ``TestConfiguration:Browser:Headless``
    and are matched case-insensitively. A key keeps the casing it was first
    added with.
    """

    def __init__(self) -> None:
        self._source_names: list[str] = []
        self._values: dict[str, tuple[str, Any]] = {}

    @property
    def sources(self) -> list[str]:
        return list(self._source_names)

    def add_source(self, name: str, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            folded = key.casefold()
            existing = self._values.get(folded)
            self._values[folded] = (existing[0] if existing else key, value)
        self._source_names.append(name)
        log.debug("Added configuration source %s with %d keys", name, len(values))

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._values.get(key.casefold())
        return default if entry is None else entry[1]

    def get_value(self, key: str, default: Any = None, value_type: type | None = None) -> Any:
        """Returns the raw value at ``key`` converted to ``value_type``.

        When no type is given the type of ``default`` is used; with neither,
        the stored value is returned as is.
        """

        raw = self.get(key)
        if raw is None:
            return default
        target = value_type or (type(default) if default is not None else None)
        if target is None:
            return raw
        try:
            return TypeAdapter(target).validate_python(raw)
        except ValidationError as exc:
            raise ConfigInvalidError(
                f"Failed to convert configuration value at '{key}' to {target.__name__}"
            ) from exc

    def get_section(self, key: str) -> ConfigurationSection:
        return ConfigurationSection(self, key)

    def section_exists(self, key: str) -> bool:
        return self.get_section(key).exists()

    def child_keys(self, path: str) -> list[str]:
        prefix = path.casefold() + KEY_DELIMITER if path else ""
        depth = path.count(KEY_DELIMITER) + 1 if path else 0
        seen: dict[str, str] = {}
        for folded, (key, _) in self._values.items():
            if folded.startswith(prefix):
                segment = key.split(KEY_DELIMITER)[depth]
                seen.setdefault(segment.casefold(), segment)
        return list(seen.values())

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self._values.values())

    def __len__(self) -> int:
        return len(self._values)


class ConfigurationSection:
    """A node of a LayeredConfiguration addressed by its path."""

    def __init__(self, configuration: LayeredConfiguration, path: str) -> None:
        self.configuration = configuration
        self.path = path

    @property
    def key(self) -> str:
        return self.path.rsplit(KEY_DELIMITER, 1)[-1]

    @property
    def value(self) -> Any:
        return self.configuration.get(self.path)

    def exists(self) -> bool:
        return self.value is not None or bool(self.configuration.child_keys(self.path))

    def get_children(self) -> list[ConfigurationSection]:
        return [
            ConfigurationSection(self.configuration, f"{self.path}{KEY_DELIMITER}{segment}")
            for segment in self.configuration.child_keys(self.path)
        ]

    def to_dict(self) -> dict[str, Any]:
        materialized = _materialize(self)
        return materialized if isinstance(materialized, dict) else {}

    def __getitem__(self, key: str) -> Any:
        return self.configuration.get(f"{self.path}{KEY_DELIMITER}{key}")

    def __repr__(self) -> str:
        return f"ConfigurationSection(path={self.path!r})"


def _materialize(section: ConfigurationSection) -> Any:
    children = section.get_children()
    if not children:
        return section.value
    nested = {child.key: _materialize(child) for child in children}
    if all(key.isdigit() for key in nested):
        return [nested[key] for key in sorted(nested, key=int)]
    return nested


def flatten(payload: Mapping[str, Any] | list[Any], prefix: str = "") -> dict[str, Any]:
    """Flattens nested JSON data into colon-separated keys; list items use their index.

    Scalars are stored as strings, the same form environment variables take,
    and JSON null stays None.
    """

    flat: dict[str, Any] = {}
    items = payload.items() if isinstance(payload, Mapping) else enumerate(payload)
    for name, value in items:
        key = f"{prefix}{KEY_DELIMITER}{name}" if prefix else str(name)
        if isinstance(value, (Mapping, list)):
            flat.update(flatten(value, key))
        else:
            flat[key] = _as_text(value)
    return flat


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def environment_overrides(prefix: str = ENV_PREFIX, environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Maps ``PREFIX_Section__Key`` (or ``PREFIX_Section_Key``) variables to ``Section:Key``."""

    environ = os.environ if environ is None else environ
    overrides: dict[str, str] = {}
    for name, value in environ.items():
        if not name.startswith(prefix):
            continue
        remainder = name[len(prefix):]
        separator = "__" if "__" in remainder else "_"
        segments = [segment for segment in remainder.split(separator) if segment]
        if segments:
            overrides[KEY_DELIMITER.join(segments)] = value
    return overrides


def resolve_base_path(
    filename: str = BASE_FILE_NAME,
    cwd: str | Path | None = None,
    executable_dir: str | Path | None = None,
) -> Path:
    """Picks the directory holding the base settings file.

    Falls back to the working directory with a warning; a missing file is
    reported later when the configuration is built.
    """

    current = Path(cwd) if cwd is not None else Path.cwd()
    if (current / filename).is_file():
        log.debug("Using current directory for configuration: %s", current)
        return current

    executable = Path(executable_dir) if executable_dir is not None else _executable_directory()
    if (executable / filename).is_file():
        log.debug("Using executable directory for configuration: %s", executable)
        return executable

    log.warning("Configuration file not found in expected locations, using current directory: %s", current)
    return current


def build_configuration(
    base_path: str | Path | None = None,
    environment: str | None = None,
    environ: Mapping[str, str] | None = None,
    prefix: str = ENV_PREFIX,
) -> LayeredConfiguration:
    environ = os.environ if environ is None else environ
    root = Path(base_path) if base_path is not None else resolve_base_path()
    environment = environment or environ.get(ENVIRONMENT_VARIABLE) or DEFAULT_ENVIRONMENT
    log.debug("Building configuration from %s (environment: %s)", root, environment)

    configuration = LayeredConfiguration()
    base_file = root / BASE_FILE_NAME
    configuration.add_source(str(base_file), flatten(_read_settings_file(base_file, optional=False)))

    overlay_file = root / f"{Path(BASE_FILE_NAME).stem}.{environment}.json"
    overlay = _read_settings_file(overlay_file, optional=True)
    if overlay is not None:
        configuration.add_source(str(overlay_file), flatten(overlay))

    configuration.add_source(f"environment:{prefix}", environment_overrides(prefix, environ))
    log.debug("Configuration built successfully")
    return configuration


def _read_settings_file(path: Path, optional: bool) -> dict[str, Any] | None:
    if not path.is_file():
        if optional:
            log.debug("Optional settings file not found, skipping: %s", path)
            return None
        raise ConfigMissingError(
            f"The configuration file '{path.name}' was not found and is not optional. "
            f"The expected physical path was '{path}'."
        )
    try:
        with path.open("r", encoding="utf-8-sig") as handle:
            payload = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ConfigInvalidError(f"Could not parse configuration file '{path}': {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigInvalidError(f"Configuration file '{path}' must contain a JSON object")
    return payload


def _executable_directory() -> Path:
    entry = sys.argv[0] if sys.argv and sys.argv[0] else sys.executable
    return Path(entry).resolve().parent
