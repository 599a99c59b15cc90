"""
================================================================================
Configuration Loader & Environment Resolver
================================================================================

YAML-based configuration management with named environment support.

Features:
    - Base configuration plus named environment overrides
      (development, staging, production, ...)
    - Environment selection via ENVIRONMENT / TEST_ENV variables
    - Graceful fallback to the default environment for unknown names
    - Header merge where environment values win on key collision
    - Dot notation path access with environment variable override

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import yaml
from loguru import logger


# Default configuration file path (shipped with the package)
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "config.yaml"

# Environment variables consulted (in order) to pick the active environment
ENVIRONMENT_VARIABLES = ("ENVIRONMENT", "TEST_ENV")
DEFAULT_ENVIRONMENT = "development"

DEFAULT_TIMEOUT_MS = 10000
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_MS = 1000

# Built-in settings used when no YAML settings are supplied
DEFAULT_SETTINGS: Dict[str, Any] = {
    "base_url": "https://jsonplaceholder.typicode.com",
    "headers": {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "User-Agent": "ApiTestHarness/1.0.0",
    },
    "timeout_ms": DEFAULT_TIMEOUT_MS,
    "retry": {
        "attempts": DEFAULT_RETRY_ATTEMPTS,
        "delay_ms": DEFAULT_RETRY_DELAY_MS,
    },
    "default_environment": DEFAULT_ENVIRONMENT,
    "environments": {
        "development": {
            "base_url": "https://jsonplaceholder.typicode.com",
            "timeout_ms": 15000,
        },
        "staging": {
            "base_url": "https://jsonplaceholder-staging.typicode.com",
            "timeout_ms": 10000,
        },
        "production": {
            "base_url": "https://jsonplaceholder.typicode.com",
            "timeout_ms": 5000,
        },
    },
}


class ConfigurationError(Exception):
    """Raised when configuration loading or access fails."""
    pass


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry settings for a call wrapped in retry_with_backoff.

    Attributes:
        max_attempts: Total number of attempts (>= 1)
        initial_delay_ms: Wait after the first failure; doubles each time
    """
    max_attempts: int = DEFAULT_RETRY_ATTEMPTS
    initial_delay_ms: int = DEFAULT_RETRY_DELAY_MS

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.initial_delay_ms < 0:
            raise ValueError(
                f"initial_delay_ms must be >= 0, got {self.initial_delay_ms}"
            )


@dataclass(frozen=True)
class EnvironmentConfig:
    """
    Resolved, immutable configuration for one named environment.

    Attributes:
        name: Environment the values were taken from
        base_url: API base URL
        headers: Default request headers (read-only)
        timeout_ms: Request timeout in milliseconds
        retry: Retry policy for callers that opt into retries
    """
    name: str
    base_url: str
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


def get_current_environment(default: str = DEFAULT_ENVIRONMENT) -> str:
    """
    Return the active environment name.

    The first non-empty value of ENVIRONMENT, TEST_ENV wins; falls back to
    `default` ("development" unless given) when neither is set.
    """
    for variable in ENVIRONMENT_VARIABLES:
        value = os.environ.get(variable, "").strip()
        if value:
            return value
    return default


def resolve_config(
    environment: Optional[str] = None,
    settings: Optional[Mapping[str, Any]] = None,
) -> EnvironmentConfig:
    """
    Merge the base settings with one named environment's overrides.

    Args:
        environment: Environment name. Read from the environment
                     variables when omitted, then from the settings'
                     "default_environment".
        settings: Base settings with an "environments" mapping.
                  Uses DEFAULT_SETTINGS if not specified.

    Returns:
        EnvironmentConfig for the environment, or for the default
        environment when the name is unknown.

    Raises:
        ConfigurationError: If a merged field has an unusable value

    Examples:
        >>> resolve_config("staging").base_url
        'https://jsonplaceholder-staging.typicode.com'

        >>> resolve_config("no-such-env").name
        'development'
    """
    if settings is None:
        settings = DEFAULT_SETTINGS
    default_name = settings.get("default_environment") or DEFAULT_ENVIRONMENT
    if not environment:
        environment = get_current_environment(default_name)

    environments = settings.get("environments") or {}
    name = environment
    if name not in environments:
        name = default_name
    overrides = environments.get(name) or {}

    merged = {**settings, **overrides}
    merged["headers"] = {
        **(settings.get("headers") or {}),
        **(overrides.get("headers") or {}),
    }
    return _build_config(name, merged)


def _build_config(name: str, merged: Mapping[str, Any]) -> EnvironmentConfig:
    """Convert a merged settings mapping into an EnvironmentConfig."""
    try:
        retry = merged.get("retry") or {}
        headers = {str(key): str(value) for key, value in merged["headers"].items()}
        return EnvironmentConfig(
            name=name,
            base_url=str(merged["base_url"]),
            headers=MappingProxyType(headers),
            timeout_ms=int(merged.get("timeout_ms", DEFAULT_TIMEOUT_MS)),
            retry=RetryPolicy(
                max_attempts=int(retry.get("attempts", DEFAULT_RETRY_ATTEMPTS)),
                initial_delay_ms=int(retry.get("delay_ms", DEFAULT_RETRY_DELAY_MS)),
            ),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid configuration for environment '{name}': {e}"
        ) from e


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Deep merges two dictionaries, with override taking precedence.
    """
    result = dict(base)
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class ConfigLoader:
    """
    Configuration loader with YAML and environment variable support.

    Configuration hierarchy (highest to lowest priority):
        1. Environment variables (LOGGING_LEVEL overrides logging.level)
        2. YAML configuration file
        3. Built-in defaults

    Usage:
        >>> config = ConfigLoader()
        >>> config.resolve("staging").timeout_ms
        10000

        >>> config.get("logging.level", "INFO")
        'INFO'
    """

    _instance: Optional["ConfigLoader"] = None

    def __new__(cls, config_path: Optional[Path] = None) -> "ConfigLoader":
        """Singleton pattern - configuration is loaded once per process."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """
        Initialize configuration loader.

        Args:
            config_path: Path to YAML configuration file.
                        Uses DEFAULT_CONFIG_PATH if not specified.
        """
        if getattr(self, "_initialized", False):
            return

        self._config_path = Path(config_path or DEFAULT_CONFIG_PATH)
        self._config: Dict[str, Any] = {}
        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        if not self._config_path.exists():
            logger.warning(
                f"Configuration file not found: {self._config_path}. "
                f"Using defaults and environment variables only."
            )
            self._config = {}
            return

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {e}"
            ) from e

        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"Configuration root must be a mapping, got {type(loaded).__name__}"
            )
        self._config = loaded
        logger.debug(f"Loaded configuration from: {self._config_path}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        First checks environment variables, then YAML config, then default.

        Args:
            key: Dot-notation path (e.g., "logging.level")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        env_key = key.upper().replace(".", "_")
        env_value = os.environ.get(env_key)
        if env_value is not None:
            return self._convert_type(env_value, default)

        value: Any = self._config
        for part in key.split("."):
            if isinstance(value, dict):
                value = value.get(part)
            else:
                value = None

            if value is None:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get entire configuration section.

        Returns:
            Section dictionary or empty dict if not found
        """
        value = self._config.get(section)
        return value if isinstance(value, dict) else {}

    def settings(self) -> Dict[str, Any]:
        """Base API settings: built-in defaults overlaid with the YAML `api` section."""
        return _deep_merge(DEFAULT_SETTINGS, self.get_section("api"))

    def resolve(self, environment: Optional[str] = None) -> EnvironmentConfig:
        """
        Resolve the configuration for a named environment.

        Args:
            environment: Environment name; read from ENVIRONMENT / TEST_ENV
                         when omitted.
        """
        config = resolve_config(environment, self.settings())
        if environment and config.name != environment:
            logger.debug(
                f"Unknown environment '{environment}', "
                f"falling back to '{config.name}'"
            )
        logger.debug(f"Resolved environment '{config.name}' -> {config.base_url}")
        return config

    def reload(self) -> None:
        """
        Reload configuration from file.

        Useful when configuration file has been updated during runtime.
        """
        self._load_config()
        logger.info(f"Configuration reloaded from: {self._config_path}")

    def _convert_type(self, value: str, reference: Any) -> Any:
        """
        Convert string value to match reference type.

        Used for environment variables which are always strings.
        """
        if reference is None:
            return value

        if isinstance(reference, bool):
            return value.lower() in ("true", "1", "yes", "on")
        if isinstance(reference, int):
            try:
                return int(value)
            except ValueError:
                return value
        if isinstance(reference, float):
            try:
                return float(value)
            except ValueError:
                return value

        return value

    @classmethod
    def reset(cls) -> None:
        """
        Reset singleton instance.

        Useful for testing when configuration needs to be reloaded
        with different settings.
        """
        cls._instance = None


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "DEFAULT_ENVIRONMENT",
    "DEFAULT_SETTINGS",
    "EnvironmentConfig",
    "RetryPolicy",
    "get_current_environment",
    "resolve_config",
]
