# ================================================================================
# Response Validator
# ================================================================================
#
# This module validates API response bodies against lightweight type schemas.
# A schema maps property names to either a primitive type name or a nested
# schema:
#
#     {"id": "number", "title": "string", "author": {"name": "string"}}
#
# Key Features:
#   - Tagged schema representation (PrimitiveType / NestedSchema)
#   - Collects every violation instead of stopping at the first one
#   - Dotted paths in messages for nested properties
#   - Allure integration for test reporting
#
# ================================================================================

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Union

import allure
from loguru import logger


# Accepted type names and the canonical name each one checks for
TYPE_ALIASES: Dict[str, str] = {
    "string": "string",
    "str": "string",
    "number": "number",
    "float": "number",
    "integer": "integer",
    "int": "integer",
    "boolean": "boolean",
    "bool": "boolean",
    "object": "object",
    "dict": "object",
    "array": "array",
    "list": "array",
    "null": "null",
}


class SchemaError(ValueError):
    """Raised when a schema mapping cannot be parsed."""
    pass


class ResponseAssertionError(AssertionError):
    """
    Raised when a response does not meet an expectation.

    Attributes:
        expected: What the check wanted
        actual: What the response contained
    """

    def __init__(self, message: str, expected: Any = None, actual: Any = None) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


def type_name(value: Any) -> str:
    """Return the JSON type name of a value (string, number, array, ...)."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


@dataclass(frozen=True)
class PrimitiveType:
    """Schema leaf: the property must hold a value of this type."""
    tag: str

    @classmethod
    def from_tag(cls, tag: str, path: str = "") -> "PrimitiveType":
        canonical = TYPE_ALIASES.get(tag.strip().lower())
        if canonical is None:
            where = f" for property '{path}'" if path else ""
            raise SchemaError(
                f"Unknown type '{tag}'{where}. "
                f"Expected one of: {', '.join(sorted(TYPE_ALIASES))}"
            )
        return cls(canonical)

    def matches(self, value: Any) -> bool:
        if self.tag == "string":
            return isinstance(value, str)
        if self.tag == "number":
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        if self.tag == "integer":
            return isinstance(value, int) and not isinstance(value, bool)
        if self.tag == "boolean":
            return isinstance(value, bool)
        if self.tag == "object":
            return isinstance(value, Mapping)
        if self.tag == "array":
            return isinstance(value, (list, tuple))
        return value is None


@dataclass(frozen=True)
class NestedSchema:
    """Schema branch: the property must be an object with these fields."""
    fields: Mapping[str, "SchemaNode"] = field(
        default_factory=lambda: MappingProxyType({})
    )


SchemaNode = Union[PrimitiveType, NestedSchema]


def parse_schema(schema: Any, path: str = "") -> NestedSchema:
    """
    Convert a plain schema mapping into tagged schema nodes.

    Args:
        schema: Mapping of property name to type name or nested mapping.
                An already parsed NestedSchema is returned unchanged.
        path: Dotted path of the schema (used in error messages)

    Returns:
        NestedSchema describing the mapping

    Raises:
        SchemaError: If a key is not a string, a type name is unknown,
                     or a node is neither a type name nor a mapping
    """
    if isinstance(schema, NestedSchema):
        return schema
    if not isinstance(schema, Mapping):
        where = f"'{path}'" if path else "root"
        raise SchemaError(
            f"Schema at {where} must be a mapping, got {type(schema).__name__}"
        )

    fields: Dict[str, SchemaNode] = {}
    for key, node in schema.items():
        if not isinstance(key, str):
            raise SchemaError(f"Schema keys must be strings, got {key!r}")
        full_path = f"{path}.{key}" if path else key

        if isinstance(node, (PrimitiveType, NestedSchema)):
            fields[key] = node
        elif isinstance(node, str):
            fields[key] = PrimitiveType.from_tag(node, full_path)
        elif isinstance(node, Mapping):
            fields[key] = parse_schema(node, full_path)
        else:
            raise SchemaError(
                f"Schema for '{full_path}' must be a type name or a nested "
                f"schema, got {type(node).__name__}"
            )

    return NestedSchema(fields=MappingProxyType(fields))


@dataclass
class ValidationReport:
    """
    Outcome of a schema validation.

    Attributes:
        is_valid: True when no violation was found
        errors: Violations in the order they were found
    """
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    def raise_if_invalid(self) -> None:
        """Raise ResponseAssertionError listing every violation."""
        if self.is_valid:
            return
        details = "\n".join(f"- {error}" for error in self.errors)
        raise ResponseAssertionError(
            f"Schema validation failed ({len(self.errors)} errors):\n{details}",
            expected="no schema violations",
            actual=list(self.errors),
        )


def validate_schema(data: Any, schema: Any) -> ValidationReport:
    """
    Validate an arbitrary value against a schema, collecting all violations.

    Never raises: an unparseable schema is reported as a single error.

    Example:
        >>> validate_schema({"id": 1}, {"id": "number", "title": "string"})
        ValidationReport(is_valid=False, errors=['Missing property: title'])
    """
    try:
        root = parse_schema(schema)
    except SchemaError as e:
        logger.warning(f"Invalid schema: {e}")
        return ValidationReport(is_valid=False, errors=[f"Invalid schema: {e}"])

    errors: List[str] = []
    _validate_object(data, root, "", errors)
    return ValidationReport(is_valid=not errors, errors=errors)


def validate_response_schema(response: Any, schema: Any) -> ValidationReport:
    """
    Validate a response body against a schema.

    Args:
        response: ResponseSnapshot (or any object exposing ``.data``)
        schema: Schema mapping or parsed NestedSchema

    Returns:
        ValidationReport; callers inspect ``is_valid``
    """
    report = validate_schema(getattr(response, "data", None), schema)

    if report.is_valid:
        logger.debug("✅ Response matches schema")
    else:
        logger.warning(
            f"❌ Response schema violations ({len(report.errors)}): "
            f"{'; '.join(report.errors)}"
        )
    _attach_validation_summary(report)
    return report


def _validate_object(
    obj: Any,
    schema: NestedSchema,
    path: str,
    errors: List[str],
) -> None:
    if not isinstance(obj, Mapping):
        obj = {}

    for key, node in schema.fields.items():
        full_path = f"{path}.{key}" if path else key

        if key not in obj:
            errors.append(f"Missing property: {full_path}")
            continue

        value = obj[key]
        if isinstance(node, NestedSchema):
            if not isinstance(value, Mapping):
                errors.append(
                    f"Property {full_path} should be object, got {type_name(value)}"
                )
            else:
                _validate_object(value, node, full_path, errors)
        elif not node.matches(value):
            errors.append(
                f"Property {full_path} should be {node.tag}, got {type_name(value)}"
            )


def _attach_validation_summary(report: ValidationReport) -> None:
    """Attach validation summary to Allure report."""
    summary_lines = [
        f"Valid: {report.is_valid}",
        f"Violations: {len(report.errors)}",
    ]
    if report.errors:
        summary_lines.extend(["", "Details:", "-" * 40])
        summary_lines.extend(f"❌ {error}" for error in report.errors)

    allure.attach(
        "\n".join(summary_lines),
        name="Schema Validation Summary",
        attachment_type=allure.attachment_type.TEXT,
    )


__all__ = [
    "NestedSchema",
    "PrimitiveType",
    "ResponseAssertionError",
    "SchemaError",
    "SchemaNode",
    "ValidationReport",
    "parse_schema",
    "type_name",
    "validate_response_schema",
    "validate_schema",
]
