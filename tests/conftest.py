from __future__ import annotations

import os
from pathlib import Path

import pytest

from harness.config.manager import get_configuration_manager, reset_configuration_manager
from harness.core.browser import BROWSER_PARAMETER
from harness.logging.artifacts import ArtifactManager
from harness.logging.configure import configure_logging


def pytest_addoption(parser):
    parser.addoption(
        "--browser",
        action="store",
        default=None,
        help="Browser for UI sessions (Chrome, Firefox or Edge); overrides the configured default",
    )


@pytest.fixture(scope="session", autouse=True)
def artifact_manager():
    artifacts_root = Path(__file__).resolve().parents[1] / "artifacts"
    manager = ArtifactManager(artifacts_root)
    manager.reset()
    configure_logging(log_file=manager.run_log_path())
    return manager


@pytest.fixture(scope="session")
def runtime_parameters(request) -> dict[str, str]:
    browser = request.config.getoption("--browser") or os.getenv("BROWSER")
    return {BROWSER_PARAMETER: browser} if browser else {}


@pytest.fixture(scope="session")
def configuration_manager():
    return get_configuration_manager()


@pytest.fixture(autouse=True)
def reset_cached_configuration():
    yield
    reset_configuration_manager()
