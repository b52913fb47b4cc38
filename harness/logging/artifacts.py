from __future__ import annotations

import re
import shutil
from datetime import UTC, datetime
from pathlib import Path

_UNSAFE_CHARACTERS = re.compile(r"[^A-Za-z0-9_.-]+")


class ArtifactManager:
    """Lays out run logs and failure screenshots under one artifacts root."""

    def __init__(self, root: str | Path = "artifacts") -> None:
        self.root = Path(root)
        self.screenshot_root = self.root / "screenshots"
        self.run_log_root = self.root / "run_logs"
        self._ensure_structure()

    def _ensure_structure(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self.screenshot_root.mkdir(parents=True, exist_ok=True)
        self.run_log_root.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def timestamp() -> str:
        return datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")

    @staticmethod
    def safe_name(name: str) -> str:
        return _UNSAFE_CHARACTERS.sub("_", name).strip("_") or "unnamed"

    def screenshot_path(self, name: str, timestamp: str | None = None) -> Path:
        stamp = timestamp or self.timestamp()
        return self.screenshot_root / f"{stamp}_{self.safe_name(name)}.png"

    def run_log_path(self, timestamp: str | None = None) -> Path:
        stamp = timestamp or self.timestamp()
        return self.run_log_root / f"{stamp}.log"

    def reset(self) -> Path:
        self._ensure_structure()
        for child in self.root.iterdir():
            if child.is_file() and child.name != ".gitkeep":
                child.unlink()
        for directory in (self.screenshot_root, self.run_log_root):
            self._clear_directory(directory)
        return self.root

    @staticmethod
    def _clear_directory(directory: Path) -> None:
        for child in directory.iterdir():
            if child.is_dir():
                shutil.rmtree(child)
            elif child.is_file() and child.name != ".gitkeep":
                child.unlink()
