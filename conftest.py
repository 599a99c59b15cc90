"""
Repository-level pytest configuration.

Why this exists:
  - Configure loguru once for the whole session
  - Expose the repository root to tests that need it
"""

from __future__ import annotations

from pathlib import Path
from typing import Generator

import pytest

from apiharness.framework.logger import init_logger


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _init_logging() -> Generator[None, None, None]:
    """Configure loguru sinks before any test logs."""
    init_logger()
    yield


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "API Test Harness",
        "=" * 60,
        "",
    ]
