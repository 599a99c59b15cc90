"""
================================================================================
Live API Pytest Configuration
================================================================================

Shared fixtures for the live suites that run against the public
JSONPlaceholder API. Collected only when RUN_EXTERNAL_API_TESTS is set.

Fixtures:
    - config: Resolved environment configuration
    - http_client: Async HTTP client bound to that environment
    - unique_id: Identifier for test isolation
    - post_schema / comment_schema / user_schema: Sample body schemas

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import uuid
from typing import Any, AsyncIterator, Dict

import pytest
from loguru import logger

from apiharness.framework import ConfigLoader, EnvironmentConfig, HttpClient


# =============================================================================
# Session-Scoped Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def config() -> EnvironmentConfig:
    """
    Resolve the environment selected by ENVIRONMENT / TEST_ENV.

    Session-scoped so every suite sees the same settings.
    """
    resolved = ConfigLoader().resolve()
    logger.info(f"Live API tests against {resolved.name}: {resolved.base_url}")
    return resolved


# =============================================================================
# Function-Scoped Fixtures
# =============================================================================

@pytest.fixture
async def http_client(config: EnvironmentConfig) -> AsyncIterator[HttpClient]:
    """
    Provide a fresh HTTP client per test.

    Default headers and authorization changed by one test never leak
    into another.

    Usage:
        async def test_example(http_client):
            response = await http_client.get("/posts/1")
            expect_response(response).to_have_status(200)
    """
    async with HttpClient(config) as client:
        yield client


@pytest.fixture
def unique_id() -> str:
    """Generate unique identifier for test data."""
    return f"autotest_{uuid.uuid4().hex[:8]}"


# =============================================================================
# Schemas
# =============================================================================

@pytest.fixture(scope="session")
def post_schema() -> Dict[str, Any]:
    return {
        "id": "number",
        "userId": "number",
        "title": "string",
        "body": "string",
    }


@pytest.fixture(scope="session")
def comment_schema() -> Dict[str, Any]:
    return {
        "id": "number",
        "postId": "number",
        "name": "string",
        "email": "string",
        "body": "string",
    }


@pytest.fixture(scope="session")
def user_schema() -> Dict[str, Any]:
    """User schema with nested address and company objects."""
    return {
        "id": "number",
        "name": "string",
        "username": "string",
        "email": "string",
        "address": {
            "street": "string",
            "city": "string",
            "zipcode": "string",
            "geo": {"lat": "string", "lng": "string"},
        },
        "company": {"name": "string"},
    }
