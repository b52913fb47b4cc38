from __future__ import annotations

from datetime import timedelta
from typing import ClassVar
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_pascal

from harness.core.browser_type import BrowserType

NETWORK_SCHEMES = frozenset({"http", "https", "ftp", "ws", "wss"})


class SettingsModel(BaseModel):
    """Immutable settings node bound from PascalCase configuration keys."""

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True, frozen=True)


class AdminCredentials(SettingsModel):
    username: str
    password: str = Field(repr=False)

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Admin username cannot be empty")
        return value

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Admin password cannot be empty")
        return value


class TimeoutSettings(SettingsModel):
    default_timeout_seconds: int = 10
    polling_interval_milliseconds: int = 500

    @property
    def default_timeout(self) -> timedelta:
        return timedelta(seconds=self.default_timeout_seconds)

    @property
    def polling_interval(self) -> timedelta:
        return timedelta(milliseconds=self.polling_interval_milliseconds)


class WindowSize(SettingsModel):
    width: int = 1920
    height: int = 1080


class BrowserSettings(SettingsModel):
    default_browser: str = "Chrome"
    headless: bool = False
    window_size: WindowSize = Field(default_factory=WindowSize)
    remote_debugging_port: int = 9222

    @property
    def default_browser_type(self) -> BrowserType:
        return BrowserType.parse_or_default(self.default_browser)


class AccessibilitySettings(SettingsModel):
    enable_accessibility_testing: bool = True
    accessibility_tags: tuple[str, ...] = ("wcag2aa",)
    capture_screenshots_on_violations: bool = True
    highlight_violating_elements: bool = True
    fail_on_violations: bool = True


class TestConfiguration(SettingsModel):
    """Root of the typed test settings tree."""

    __test__ = False

    SECTION_NAME: ClassVar[str] = "TestConfiguration"

    base_url: str
    admin_credentials: AdminCredentials
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    accessibility: AccessibilitySettings = Field(default_factory=AccessibilitySettings)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("The BaseUrl field is required")
        parts = urlsplit(value)
        if not parts.scheme or not (parts.netloc or parts.path):
            raise ValueError(f"Invalid BaseUrl: {value}")
        if parts.scheme.lower() in NETWORK_SCHEMES and not parts.netloc:
            raise ValueError(f"Invalid BaseUrl: {value}")
        return value
