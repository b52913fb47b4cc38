from __future__ import annotations

from enum import Enum

from harness.core.exceptions import UnsupportedBrowserError


class BrowserType(Enum):
    """Browsers a test session can be started in."""

    CHROME = "chrome"
    FIREFOX = "firefox"
    EDGE = "edge"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, name: str | None) -> BrowserType:
        """Strictly parses a browser name, ignoring case.

        Raises UnsupportedBrowserError for anything outside the supported set,
        including None and blank input.
        """

        normalized = (name or "").lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise UnsupportedBrowserError(f"Unsupported browser type: {name}")

    @classmethod
    def try_parse(cls, name: str | None) -> tuple[bool, BrowserType]:
        try:
            return True, cls.parse(name)
        except UnsupportedBrowserError:
            return False, cls.CHROME

    @classmethod
    def parse_or_default(cls, name: str | None, default: BrowserType | None = None) -> BrowserType:
        """Parses a browser name, substituting a default when it is not recognised."""

        parsed, browser_type = cls.try_parse(name)
        if parsed:
            return browser_type
        return default or cls.CHROME
