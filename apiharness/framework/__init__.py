"""
================================================================================
API Test Harness Framework
================================================================================

Reusable building blocks for HTTP API test suites.

Modules:
    - config_loader: YAML configuration and environment resolution
    - http_client: Async HTTP client with logging hooks and Allure reporting
    - fluent_assertions: Chainable response assertions
    - response_validator: Schema validation collecting all violations
    - wait_helpers: Exponential backoff retry for flaky calls
    - logger: Loguru setup and the logger interface used by the client

Author: Automation Team
License: MIT
================================================================================
"""

from .config_loader import (
    ConfigLoader,
    ConfigurationError,
    EnvironmentConfig,
    RetryPolicy,
    get_current_environment,
    resolve_config,
)
from .fluent_assertions import FluentAssertions, expect_response
from .http_client import (
    ClientSettings,
    HttpClient,
    HttpClientError,
    HttpStatusError,
    TransportFailure,
)
from .logger import Logger, LoguruLogger, init_logger
from .response_snapshot import ResponseSnapshot
from .response_validator import (
    NestedSchema,
    PrimitiveType,
    ResponseAssertionError,
    SchemaError,
    ValidationReport,
    parse_schema,
    validate_response_schema,
    validate_schema,
)
from .wait_helpers import backoff_delays, delay, retry_with_backoff, retry_with_policy

__all__ = [
    "ClientSettings",
    "ConfigLoader",
    "ConfigurationError",
    "EnvironmentConfig",
    "FluentAssertions",
    "HttpClient",
    "HttpClientError",
    "HttpStatusError",
    "Logger",
    "LoguruLogger",
    "NestedSchema",
    "PrimitiveType",
    "ResponseAssertionError",
    "ResponseSnapshot",
    "RetryPolicy",
    "SchemaError",
    "TransportFailure",
    "ValidationReport",
    "backoff_delays",
    "delay",
    "expect_response",
    "get_current_environment",
    "init_logger",
    "parse_schema",
    "resolve_config",
    "retry_with_backoff",
    "retry_with_policy",
    "validate_response_schema",
    "validate_schema",
]
