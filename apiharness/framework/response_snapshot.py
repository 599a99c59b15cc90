"""
Immutable snapshot of one completed HTTP call.

The snapshot is what assertions and schema validation operate on; it is
decoupled from httpx so tests can build one directly.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

import httpx


@dataclass(frozen=True)
class ResponseSnapshot:
    """
    Result of one HTTP call.

    Attributes:
        status: HTTP status code
        data: Decoded body (JSON value, text, or None when empty)
        headers: Response headers keyed by lower-cased name
        response_time_ms: Round-trip time, None when not measured
    """
    status: int
    data: Any = None
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    response_time_ms: Optional[int] = None

    def __post_init__(self) -> None:
        lowered = {str(key).lower(): value for key, value in dict(self.headers).items()}
        object.__setattr__(self, "headers", MappingProxyType(lowered))

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)

    @classmethod
    def from_httpx(
        cls,
        response: httpx.Response,
        response_time_ms: Optional[int] = None,
    ) -> "ResponseSnapshot":
        """Build a snapshot from a fully read httpx response."""
        return cls(
            status=response.status_code,
            data=_decode_body(response),
            headers=dict(response.headers.items()),
            response_time_ms=response_time_ms,
        )


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
        return response.text


__all__ = ["ResponseSnapshot"]
