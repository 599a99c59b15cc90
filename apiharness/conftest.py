"""
================================================================================
Root Pytest Configuration
================================================================================

Registers project-wide markers and skips suites that need the public API
unless they were explicitly requested.

================================================================================
"""

import os

import pytest


# Truthy values of RUN_EXTERNAL_API_TESTS that enable live API suites
_TRUTHY = {"1", "true", "yes", "on"}


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )

    # Test type markers
    config.addinivalue_line("markers", "smoke: Quick verification tests")
    config.addinivalue_line("markers", "regression: Full regression test suite")
    config.addinivalue_line("markers", "unit: Framework unit tests (no network)")
    config.addinivalue_line("markers", "api: Live API tests")
    config.addinivalue_line("markers", "negative: Error-path tests")
    config.addinivalue_line(
        "markers",
        "requires_external: Tests calling the public API (set RUN_EXTERNAL_API_TESTS=1)",
    )


def pytest_collection_modifyitems(config, items):
    """
    Auto-mark tests by directory and skip live API tests unless enabled.
    """
    run_external = os.environ.get("RUN_EXTERNAL_API_TESTS", "").lower() in _TRUTHY
    skip_external = pytest.mark.skip(
        reason="Live API test; set RUN_EXTERNAL_API_TESTS=1 to run"
    )

    for item in items:
        path = str(item.fspath)
        if f"{os.sep}unit{os.sep}" in path:
            item.add_marker(pytest.mark.unit)
        if f"{os.sep}api_testing{os.sep}" in path:
            item.add_marker(pytest.mark.api)
            item.add_marker(pytest.mark.requires_external)
            if not run_external:
                item.add_marker(skip_external)

