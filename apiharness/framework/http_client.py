"""
================================================================================
Async HTTP Client with Logging and Allure Integration
================================================================================

A thin async wrapper over httpx featuring:
    - Environment-aware configuration (base URL, timeout, default headers)
    - Request / response logging hooks around every call
    - Authorization and default-header management per client instance
    - Allure reporting with cURL command generation
    - Typed failures for HTTP error statuses and transport errors

Retries are not built in; wrap calls in retry_with_backoff when needed.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import allure
import httpx
from allure_commons.types import AttachmentType

from .config_loader import ConfigLoader, EnvironmentConfig
from .logger import Logger, LoguruLogger
from .response_snapshot import ResponseSnapshot


# Maximum response length to include in Allure reports
MAX_RESPONSE_LENGTH = 3000

SENSITIVE_HEADERS = {"authorization", "x-api-key", "x-app-auth", "cookie", "set-cookie"}
SENSITIVE_FIELDS = ("password", "secret", "token", "api_key", "authorization", "session")
MASK = "***MASKED***"


class HttpClientError(Exception):
    """
    Base exception for HTTP client errors.

    Attributes:
        method: HTTP method of the failed call
        url: Full request URL
        status: Response status, None when no response was obtained
        code: Transport error code, None for HTTP error statuses
        response: Snapshot of the response, None when none was obtained
    """

    def __init__(
        self,
        message: str,
        *,
        method: str,
        url: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        response: Optional[ResponseSnapshot] = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.url = url
        self.status = status
        self.code = code
        self.response = response


class HttpStatusError(HttpClientError):
    """Raised when the server answers with a status outside 200-399."""
    pass


class TransportFailure(HttpClientError):
    """Raised when no response was obtained (DNS, refused connection, timeout)."""

    @property
    def is_timeout(self) -> bool:
        return isinstance(self.__cause__, httpx.TimeoutException)


@dataclass(frozen=True)
class ClientSettings:
    """Point-in-time view of a client's mutable settings."""
    base_url: str
    timeout_ms: int
    headers: Dict[str, str]


class HttpClient:
    """
    Async HTTP client with per-instance defaults and logging hooks.

    The underlying httpx.AsyncClient holds the mutable state (base URL,
    timeout, default headers). Setters change it in place for every
    subsequent call issued by this instance; calls already dispatched keep
    the headers they were built with. Concurrent calls racing a setter get
    whatever is current when they are dispatched, so use one client per
    credential set when calls run concurrently.

    Usage:
        >>> async with HttpClient() as client:
        ...     client.set_authorization("token-123")
        ...     response = await client.get("/posts/1")
        ...     expect_response(response).to_have_status(200)
    """

    def __init__(
        self,
        config: Optional[EnvironmentConfig] = None,
        logger: Optional[Logger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize HTTP client with configuration.

        Args:
            config: Resolved environment configuration.
                    Resolved from ENVIRONMENT / TEST_ENV if None.
            logger: Logger receiving request/response logs. Loguru if None.
            transport: Custom httpx transport (e.g. httpx.MockTransport)
        """
        if config is None:
            config = ConfigLoader().resolve()

        self.config = config
        self.logger: Logger = logger or LoguruLogger()
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout_seconds),
            headers=dict(config.headers),
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def request(
        self,
        method: str,
        url: str,
        body: Any = None,
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
        timeout: Optional[int] = None,
    ) -> ResponseSnapshot:
        """
        Execute an HTTP request.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE, HEAD, OPTIONS)
            url: Request path, relative to the current base URL
            body: Request body. str/bytes are sent as-is, anything else as JSON.
            headers: Extra headers for this call only
            params: Query parameters for this call only
            timeout: Timeout in milliseconds for this call only

        Returns:
            ResponseSnapshot of the completed call

        Raises:
            HttpStatusError: When the status is outside 200-399
            TransportFailure: When no response could be obtained
        """
        method = method.upper()
        content, json_body = _split_body(body)
        request = self._client.build_request(
            method,
            url,
            content=content,
            json=json_body,
            headers=dict(headers) if headers else None,
            params=params,
            timeout=httpx.Timeout(timeout / 1000) if timeout is not None else httpx.USE_CLIENT_DEFAULT,
        )
        self._on_request(request, body)

        started = time.perf_counter()
        try:
            response = await self._client.send(request)
        except httpx.RequestError as e:
            error = TransportFailure(
                f"{method} {request.url} failed: no response received "
                f"({type(e).__name__}: {e})",
                method=method,
                url=str(request.url),
                code=type(e).__name__,
            )
            self._on_response(request, body, error=error, cause=e)
            raise error from e

        elapsed_ms = int(round((time.perf_counter() - started) * 1000))
        snapshot = ResponseSnapshot.from_httpx(response, response_time_ms=elapsed_ms)

        if not 200 <= snapshot.status < 400:
            error = HttpStatusError(
                f"{method} {request.url} failed: expected status 200-399, "
                f"got {snapshot.status}",
                method=method,
                url=str(request.url),
                status=snapshot.status,
                response=snapshot,
            )
            self._on_response(request, body, snapshot, error=error)
            raise error

        self._on_response(request, body, snapshot)
        return snapshot

    async def get(self, url: str, **kwargs: Any) -> ResponseSnapshot:
        """Execute GET request."""
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, body: Any = None, **kwargs: Any) -> ResponseSnapshot:
        """Execute POST request."""
        return await self.request("POST", url, body, **kwargs)

    async def put(self, url: str, body: Any = None, **kwargs: Any) -> ResponseSnapshot:
        """Execute PUT request."""
        return await self.request("PUT", url, body, **kwargs)

    async def patch(self, url: str, body: Any = None, **kwargs: Any) -> ResponseSnapshot:
        """Execute PATCH request."""
        return await self.request("PATCH", url, body, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> ResponseSnapshot:
        """Execute DELETE request."""
        return await self.request("DELETE", url, **kwargs)

    async def head(self, url: str, **kwargs: Any) -> ResponseSnapshot:
        """Execute HEAD request."""
        return await self.request("HEAD", url, **kwargs)

    async def options(self, url: str, **kwargs: Any) -> ResponseSnapshot:
        """Execute OPTIONS request."""
        return await self.request("OPTIONS", url, **kwargs)

    # ------------------------------------------------------------------
    # Instance defaults
    # ------------------------------------------------------------------

    def set_default_headers(self, headers: Mapping[str, str]) -> None:
        """Merge headers into the defaults sent with every call."""
        self._client.headers.update(headers)
        self.logger.debug("Updated default headers", self._redact_headers(dict(headers)))

    def set_authorization(self, token: str, scheme: str = "Bearer") -> None:
        """
        Send ``Authorization: <scheme> <token>`` with every subsequent call.

        Args:
            token: Credential value
            scheme: Authorization scheme (Bearer, Basic, ...)
        """
        self._client.headers["Authorization"] = f"{scheme} {token}"
        self.logger.debug("Set authorization header", {"type": scheme})

    def clear_authorization(self) -> None:
        """Stop sending the Authorization header."""
        self._client.headers.pop("Authorization", None)
        self.logger.debug("Cleared authorization header")

    def set_base_url(self, base_url: str) -> None:
        """Replace the base URL used to resolve relative paths."""
        self._client.base_url = base_url
        self.logger.debug("Updated base URL", {"base_url": base_url})

    def get_config(self) -> ClientSettings:
        """Return the current base URL, timeout and default headers."""
        timeout = self._client.timeout.read
        headers = self._client.headers
        return ClientSettings(
            base_url=str(self._client.base_url).rstrip("/"),
            timeout_ms=int(timeout * 1000) if timeout is not None else 0,
            # raw keeps header names as they were set
            headers={
                key.decode(headers.encoding): value.decode(headers.encoding)
                for key, value in headers.raw
            },
        )

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _on_request(self, request: httpx.Request, body: Any) -> None:
        """Pre-call hook: log the outgoing request."""
        self.logger.debug(
            f"Making {request.method} request to {request.url}",
            {
                "headers": self._redact_headers(dict(request.headers.items())),
                "data": self._redact_body(body),
            },
        )

    def _on_response(
        self,
        request: httpx.Request,
        body: Any,
        snapshot: Optional[ResponseSnapshot] = None,
        error: Optional[HttpClientError] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        """
        Post-call hook: runs once per call, for successes and failures.

        Responses (including HTTP error statuses) are attached to Allure.
        Successes are logged at debug level; failures at error level with
        the failing status, URL and method.
        """
        if snapshot is not None:
            self._log_to_allure(request, body, snapshot)

        if error is None:
            self.logger.debug(
                f"Received {snapshot.status} response from {request.url}",
                {
                    "status": snapshot.status,
                    "headers": self._redact_headers(dict(snapshot.headers)),
                    "data_size": _data_size(snapshot.data),
                },
            )
            return

        self.logger.error(
            f"HTTP Error: {error.status or 'Unknown'}",
            cause or error,
            {
                "url": error.url,
                "method": error.method,
                "status": error.status,
                "code": error.code,
            },
        )

    # ------------------------------------------------------------------
    # Reporting helpers
    # ------------------------------------------------------------------

    def _log_to_allure(
        self,
        request: httpx.Request,
        body: Any,
        snapshot: ResponseSnapshot,
    ) -> None:
        """
        Log HTTP request/response to Allure report.

        Attaches:
            - Request URL with query parameters
            - Request headers and body (redacted)
            - cURL command for reproduction
            - Response status
            - Response body (truncated if too long)
        """
        full_url = str(request.url)
        status_emoji = "✅" if snapshot.status < 400 else "❌"
        step_title = f"{status_emoji} {request.method} {request.url.path} → {snapshot.status}"

        with allure.step(step_title):
            allure.attach(
                full_url,
                name="🔗 Request URL",
                attachment_type=AttachmentType.TEXT,
            )

            safe_headers = self._redact_headers(dict(request.headers.items()))
            allure.attach(
                json.dumps(safe_headers, ensure_ascii=False, indent=2),
                name="📤 Request Headers",
                attachment_type=AttachmentType.JSON,
            )

            safe_body = self._redact_body(body)
            if safe_body is not None:
                allure.attach(
                    json.dumps(safe_body, ensure_ascii=False, indent=2, default=str),
                    name="📤 Request Body",
                    attachment_type=AttachmentType.JSON,
                )

            allure.attach(
                self._build_curl(request.method, full_url, safe_headers, safe_body),
                name="🔧 cURL Command",
                attachment_type=AttachmentType.TEXT,
            )

            allure.attach(
                f"{status_emoji} {snapshot.status} ({snapshot.response_time_ms} ms)",
                name="📥 Response Status",
                attachment_type=AttachmentType.TEXT,
            )

            if isinstance(snapshot.data, str):
                response_content = snapshot.data
            elif snapshot.data is None:
                response_content = "<empty>"
            else:
                response_content = json.dumps(snapshot.data, ensure_ascii=False, indent=2)

            if len(response_content) > MAX_RESPONSE_LENGTH:
                response_content = (
                    f"{response_content[:MAX_RESPONSE_LENGTH]}\n\n"
                    f"... [Truncated, full length: {len(response_content)} chars] ..."
                )

            allure.attach(
                response_content,
                name="📥 Response Body",
                attachment_type=AttachmentType.JSON,
            )

    def _redact_headers(self, headers: Dict[str, Any]) -> Dict[str, Any]:
        """
        Mask sensitive header values before logging.
        """
        return {
            key: MASK if key.lower() in SENSITIVE_HEADERS else value
            for key, value in headers.items()
        }

    def _redact_body(self, payload: Any) -> Any:
        """
        Recursively mask sensitive fields in request bodies.
        """
        if isinstance(payload, dict):
            redacted = {}
            for key, value in payload.items():
                if any(token in str(key).lower() for token in SENSITIVE_FIELDS):
                    redacted[key] = MASK
                else:
                    redacted[key] = self._redact_body(value)
            return redacted
        if isinstance(payload, list):
            return [self._redact_body(item) for item in payload]
        if isinstance(payload, bytes):
            return f"<{len(payload)} bytes>"
        return payload

    def _build_curl(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Any,
    ) -> str:
        """
        Build cURL command for request reproduction.
        """
        parts = [f"curl -X {method}"]

        for key, value in headers.items():
            parts.append(f"-H '{key}: {value}'")

        if body is not None:
            data = body if isinstance(body, str) else json.dumps(body, ensure_ascii=False, default=str)
            parts.append(f"-d '{data}'")

        parts.append(f"'{url}'")

        return " \\\n  ".join(parts)


def _split_body(body: Any):
    """Return (content, json) arguments for httpx.build_request."""
    if body is None:
        return None, None
    if isinstance(body, (str, bytes)):
        return body, None
    return None, body


def _data_size(data: Any) -> int:
    if data is None:
        return 0
    if isinstance(data, str):
        return len(data)
    return len(json.dumps(data, ensure_ascii=False, default=str))


__all__ = [
    "ClientSettings",
    "HttpClient",
    "HttpClientError",
    "HttpStatusError",
    "TransportFailure",
]
