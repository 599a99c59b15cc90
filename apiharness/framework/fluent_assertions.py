"""
================================================================================
Fluent Assertions Module
================================================================================

Chainable assertions over a single ResponseSnapshot.

Every check returns the same FluentAssertions instance on success and raises
ResponseAssertionError (an AssertionError) naming the expected and actual
values on failure, which aborts the rest of the chain.

Example:
    expect_response(response) \\
        .to_have_status(200) \\
        .and_() \\
        .to_be_object() \\
        .to_match_schema({"id": "number", "title": "string"})

================================================================================
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Iterable, Optional

from loguru import logger

from .response_snapshot import ResponseSnapshot
from .response_validator import (
    NestedSchema,
    ResponseAssertionError,
    parse_schema,
    type_name,
)


def _deep_equal(left: Any, right: Any) -> bool:
    """Structural equality that keeps booleans and numbers apart."""
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        return left.keys() == right.keys() and all(
            _deep_equal(left[key], right[key]) for key in left
        )
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(
            _deep_equal(a, b) for a, b in zip(left, right)
        )
    if isinstance(left, (Mapping, list, tuple)) or isinstance(right, (Mapping, list, tuple)):
        return False
    return left == right


def _deep_includes(actual: Any, expected: Any) -> bool:
    """
    Partial match: objects must contain every expected key with a deep-equal
    value, arrays must contain a deep-equal member, strings a substring.
    """
    if isinstance(actual, Mapping) and isinstance(expected, Mapping):
        return all(
            key in actual and _deep_equal(actual[key], value)
            for key, value in expected.items()
        )
    if isinstance(actual, (list, tuple)):
        return any(_deep_equal(item, expected) for item in actual)
    if isinstance(actual, str) and isinstance(expected, str):
        return expected in actual
    return False


class FluentAssertions:
    """
    Chainable assertion helpers for one HTTP response.

    The wrapped snapshot is never modified; all checks read from it.
    """

    def __init__(self, actual: ResponseSnapshot) -> None:
        """
        Args:
            actual: Response snapshot to assert against
        """
        self.actual = actual

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def to_have_status(self, expected_status: int) -> "FluentAssertions":
        """Assert the status code equals ``expected_status``."""
        if self.actual.status != expected_status:
            self._fail(
                f"Expected status {expected_status}, but got {self.actual.status}",
                expected_status,
                self.actual.status,
            )
        return self

    def to_have_status_in_range(self, min_status: int, max_status: int) -> "FluentAssertions":
        """Assert min_status <= status <= max_status."""
        if not min_status <= self.actual.status <= max_status:
            self._fail(
                f"Expected status between {min_status}-{max_status}, "
                f"but got {self.actual.status}",
                (min_status, max_status),
                self.actual.status,
            )
        return self

    # ------------------------------------------------------------------
    # Body presence
    # ------------------------------------------------------------------

    def to_have_body(self) -> "FluentAssertions":
        """Assert the body is present (not None)."""
        if self.actual.data is None:
            self._fail("Expected response to have a body, but it was empty (None)", "a body", None)
        return self

    def to_have_empty_body(self) -> "FluentAssertions":
        """Assert the body is None, an empty string or an empty array."""
        data = self.actual.data
        empty = data is None or data == "" or (isinstance(data, (list, tuple)) and not data)
        if not empty:
            self._fail(
                f"Expected response body to be empty, but got {data!r}",
                "empty body (None, '' or [])",
                data,
            )
        return self

    # ------------------------------------------------------------------
    # Properties & shape
    # ------------------------------------------------------------------

    def to_have_property(self, name: str) -> "FluentAssertions":
        """Assert the body is an object with key ``name``."""
        data = self.actual.data
        if not isinstance(data, Mapping):
            self._fail(
                f"Expected response body to have property '{name}', "
                f"but body is {type_name(data)}",
                name,
                type_name(data),
            )
        if name not in data:
            self._fail(
                f"Expected response body to have property '{name}', "
                f"found: {sorted(map(str, data.keys()))}",
                name,
                list(data.keys()),
            )
        return self

    def to_have_properties(self, names: Iterable[str]) -> "FluentAssertions":
        """Assert every name is a key of the body; fails on the first missing one."""
        for name in names:
            self.to_have_property(name)
        return self

    def to_match_schema(self, schema: Any) -> "FluentAssertions":
        """
        Shallow structural check against a schema.

        Every top-level schema key must be a property of the body. Keys whose
        schema node is a nested schema must also hold an object. Primitive
        type names are not checked here; use validate_response_schema for a
        full recursive type check.
        """
        root = parse_schema(schema)
        for key, node in root.fields.items():
            self.to_have_property(key)
            if isinstance(node, NestedSchema):
                value = self.actual.data[key]
                if not isinstance(value, Mapping):
                    self._fail(
                        f"Expected property '{key}' to be object, "
                        f"but got {type_name(value)}",
                        "object",
                        type_name(value),
                    )
        return self

    def to_be_array(self) -> "FluentAssertions":
        """Assert the body is an array."""
        if not isinstance(self.actual.data, (list, tuple)):
            self._fail(
                f"Expected response body to be array, but got {type_name(self.actual.data)}",
                "array",
                type_name(self.actual.data),
            )
        return self

    def to_be_object(self) -> "FluentAssertions":
        """Assert the body is an object."""
        if not isinstance(self.actual.data, Mapping):
            self._fail(
                f"Expected response body to be object, but got {type_name(self.actual.data)}",
                "object",
                type_name(self.actual.data),
            )
        return self

    def to_have_length(self, length: int) -> "FluentAssertions":
        """Assert the body is a sequence (array or string) of ``length`` items."""
        data = self.actual.data
        if not isinstance(data, Sequence):
            self._fail(
                f"Expected response body to have length {length}, "
                f"but {type_name(data)} has no length",
                length,
                type_name(data),
            )
        if len(data) != length:
            self._fail(
                f"Expected response body to have length {length}, but got {len(data)}",
                length,
                len(data),
            )
        return self

    # ------------------------------------------------------------------
    # Headers
    # ------------------------------------------------------------------

    def to_have_header(self, name: str, value: Optional[str] = None) -> "FluentAssertions":
        """
        Assert a header is present (case-insensitive name) and, when ``value``
        is given, equals it exactly.
        """
        actual_value = self.actual.header(name)
        if actual_value is None:
            self._fail(
                f"Expected response to have header '{name.lower()}', "
                f"found: {sorted(self.actual.headers)}",
                name.lower(),
                sorted(self.actual.headers),
            )
        if value is not None and actual_value != value:
            self._fail(
                f"Expected header '{name.lower()}' to equal '{value}', but got '{actual_value}'",
                value,
                actual_value,
            )
        return self

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def to_contain(self, expected_data: Any) -> "FluentAssertions":
        """Assert the body deep-includes ``expected_data`` (partial match)."""
        if not _deep_includes(self.actual.data, expected_data):
            self._fail(
                f"Expected response body to contain {expected_data!r}, "
                f"but got {self.actual.data!r}",
                expected_data,
                self.actual.data,
            )
        return self

    def to_equal(self, expected_data: Any) -> "FluentAssertions":
        """Assert the body deep-equals ``expected_data``."""
        if not _deep_equal(self.actual.data, expected_data):
            self._fail(
                f"Expected response body to equal {expected_data!r}, "
                f"but got {self.actual.data!r}",
                expected_data,
                self.actual.data,
            )
        return self

    # ------------------------------------------------------------------
    # Timing
    # ------------------------------------------------------------------

    def to_respond_within(self, max_ms: int) -> "FluentAssertions":
        """
        Assert the response time is below ``max_ms``.

        Skipped when the snapshot carries no timing data.
        """
        elapsed = self.actual.response_time_ms
        if elapsed is None:
            logger.debug("No response time recorded, skipping to_respond_within")
            return self
        if not elapsed < max_ms:
            self._fail(
                f"Expected response within {max_ms}ms, but it took {elapsed}ms",
                max_ms,
                elapsed,
            )
        return self

    # ------------------------------------------------------------------
    # Chaining
    # ------------------------------------------------------------------

    def and_(self) -> "FluentAssertions":
        """No-op for readable chains: ``.to_have_status(200).and_().to_have_body()``."""
        return self

    def unwrap(self) -> ResponseSnapshot:
        """Return the snapshot for custom assertions."""
        return self.actual

    def _fail(self, message: str, expected: Any, actual: Any) -> None:
        logger.debug(f"❌ {message}")
        raise ResponseAssertionError(message, expected=expected, actual=actual)


def expect_response(response: ResponseSnapshot) -> FluentAssertions:
    """Create fluent assertions for a response snapshot."""
    return FluentAssertions(response)


__all__ = [
    "FluentAssertions",
    "ResponseAssertionError",
    "expect_response",
]
