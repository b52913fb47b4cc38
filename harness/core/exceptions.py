from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when the test configuration cannot be produced."""


class ConfigMissingError(ConfigurationError):
    """Raised when a mandatory settings file or section is absent."""


class ConfigInvalidError(ConfigurationError):
    """Raised when the bound settings fail validation."""

    def __init__(self, message: str, violations: list[str] | None = None) -> None:
        super().__init__(message)
        self.violations = list(violations or [])


class UnsupportedBrowserError(ValueError):
    """Raised when a browser name does not match a supported browser."""


class DriverError(RuntimeError):
    """Raised when a browser session cannot be created."""


class DriverProvisioningError(DriverError):
    """Raised when the native driver binary cannot be provisioned."""


class DriverConstructionError(DriverError):
    """Raised when the automation session fails to start or configure."""
