"""Outbound check executor for RouteWatch.

Every request RouteWatch sends to a user-supplied target goes through two
stages:

  prepare_check():
      Sanitizes headers, runs the URL guard and builds the request body. Raises
      a ``CheckRejected`` subclass (carrying the HTTP status the API returns)
      before any connection is opened.

  execute_check():
      Sends the prepared request on the shared httpx.AsyncClient. Redirects are
      followed by hand so the guard sees every hop; a ``Location`` that points
      at an internal address stops the check with ``SecurityDenied``. Connection
      failures raise ``TargetUnavailable``.

Target 4xx/5xx responses are NOT errors here. They are returned in the
CheckOutcome and classified by ``evaluate_run_success()`` /
``evaluate_test_result()``.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

import httpx

from routewatch.config import ChecksConfig, SecurityConfig
from routewatch.constants import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_EXPECTED_STATUS,
    POOL_KEEPALIVE_EXPIRY_S,
    POOL_MAX_CONNECTIONS,
    POOL_MAX_KEEPALIVE,
)
from routewatch.models.route import Route
from routewatch.models.verdict import SecurityVerdict
from routewatch.security import (
    check_resolved_addresses,
    filter_sensitive_headers,
    validate_url_security,
)
from routewatch.utils.logger import get_logger
from routewatch.utils.ulid import generate_ulid

logger = get_logger(__name__)


# ─── Errors ───────────────────────────────────────────────────────────────────


class CheckRejected(Exception):
    """A check refused before any connection was opened."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SecurityDenied(CheckRejected):
    """The URL guard denied the target (or a redirect hop)."""

    status_code = 403

    def __init__(self, verdict: SecurityVerdict) -> None:
        super().__init__(verdict.reason or "")
        self.verdict = verdict


class InvalidRequestBody(CheckRejected):
    status_code = 400


class RequestBodyTooLarge(CheckRejected):
    status_code = 400


class InvalidRequestHeaders(CheckRejected):
    """A header that cannot be sent on the wire (bad name, non-ASCII or control characters)."""

    status_code = 400


class TargetUnavailable(Exception):
    """The target could not be reached. ``reason`` is the short error type."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


# ─── Check types ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CheckSpec:
    """What to send. ``body`` is any JSON value, or raw text for non-JSON types."""

    url: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    content_type: Optional[str] = None
    expected_status_code: Optional[int] = None
    response_time_threshold: Optional[int] = None

    @classmethod
    def from_route(cls, route: Route) -> "CheckSpec":
        body: Any = None
        if route.request_body is not None:
            try:
                body = json.loads(route.request_body)
            except ValueError:
                body = route.request_body
        return cls(
            url=route.url,
            method=route.method,
            headers=route.request_headers,
            body=body,
            content_type=route.content_type,
            expected_status_code=route.expected_status_code,
            response_time_threshold=route.response_time_threshold,
        )


@dataclass(frozen=True)
class PreparedCheck:
    check_id: str
    url: str
    method: str
    headers: httpx.Headers
    content: Optional[bytes]
    expected_status_code: Optional[int]
    response_time_threshold: Optional[int]


@dataclass(frozen=True)
class CheckOutcome:
    """Result of a check that reached its target."""

    check_id: str
    url: str
    method: str
    status_code: int
    response_time_ms: float
    final_url: str
    redirects: int = 0


# ─── Client factory ───────────────────────────────────────────────────────────


def create_http_client(checks: Optional[ChecksConfig] = None) -> httpx.AsyncClient:
    """Create the shared httpx.AsyncClient used for every outbound check.

    Created once at lifespan startup and stored in app.state.http_client.
    ``follow_redirects`` stays False: ``execute_check()`` follows redirects
    itself so each hop can be re-validated.
    """
    checks = checks or ChecksConfig()
    return httpx.AsyncClient(
        limits=httpx.Limits(
            max_connections=POOL_MAX_CONNECTIONS,
            max_keepalive_connections=POOL_MAX_KEEPALIVE,
            keepalive_expiry=POOL_KEEPALIVE_EXPIRY_S,
        ),
        timeout=httpx.Timeout(checks.timeout_s),
        follow_redirects=False,
    )


# ─── Preparation ──────────────────────────────────────────────────────────────


def _is_json_content_type(content_type: str) -> bool:
    return "application/json" in content_type.lower()


def _build_body(spec: CheckSpec, content_type: str) -> Optional[bytes]:
    """Serialise the body for the wire. GET requests never carry one."""
    if spec.method.upper() == "GET" or spec.body is None or spec.body == "":
        return None

    if _is_json_content_type(content_type):
        value = spec.body
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                raise InvalidRequestBody("Invalid JSON in request body")
        return json.dumps(value).encode("utf-8")

    if isinstance(spec.body, str):
        return spec.body.encode("utf-8")
    return json.dumps(spec.body).encode("utf-8")


# RFC 9110 token characters (header names) and field-value characters.
_TOKEN_CHARS = frozenset(
    "!#$%&'*+-.^_`|~0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
)
_FIELD_VALUE_CHARS = frozenset(chr(c) for c in range(0x20, 0x7F)) | {"\t"}


def _build_headers(
    spec: CheckSpec, sanitized: Mapping[str, str], settings: ChecksConfig
) -> httpx.Headers:
    """Default headers overlaid with the sanitized user headers.

    Raises:
        InvalidRequestHeaders: a name is not a token, or a value holds non-ASCII
                               or control characters.
    """
    defaults = {
        "Content-Type": spec.content_type or DEFAULT_CONTENT_TYPE,
        "User-Agent": settings.user_agent,
    }
    for name, value in [*defaults.items(), *sanitized.items()]:
        if not name or not set(name) <= _TOKEN_CHARS or not set(value) <= _FIELD_VALUE_CHARS:
            raise InvalidRequestHeaders(f"Invalid header: {name[:64]!r}")
    headers = httpx.Headers(defaults)
    headers.update(sanitized)
    return headers


def prepare_check(spec: CheckSpec, settings: ChecksConfig) -> PreparedCheck:
    """Validate and assemble an outbound check.

    Order: sanitize headers, guard the URL, then build and size-check the body.

    Raises:
        SecurityDenied:      URL guard denied the target.
        InvalidRequestHeaders: a header cannot be sent as given (see _build_headers).
        InvalidRequestBody:  JSON content type with a body that does not parse.
        RequestBodyTooLarge: serialised body exceeds ``settings.max_body_bytes``.
    """
    sanitized = filter_sensitive_headers(spec.headers or {})

    verdict = validate_url_security(spec.url)
    if not verdict.is_valid:
        raise SecurityDenied(verdict)

    headers = _build_headers(spec, sanitized, settings)

    content = _build_body(spec, headers.get("content-type", DEFAULT_CONTENT_TYPE))
    if content is not None and len(content) > settings.max_body_bytes:
        raise RequestBodyTooLarge("Request body too large")

    return PreparedCheck(
        check_id=generate_ulid(),
        url=spec.url,
        method=spec.method.upper(),
        headers=headers,
        content=content,
        expected_status_code=spec.expected_status_code,
        response_time_threshold=spec.response_time_threshold,
    )


# ─── Execution ────────────────────────────────────────────────────────────────


async def _resolve_and_check(url: httpx.URL) -> None:
    """Deny the hop if its hostname resolves to any non-public address."""
    hostname = url.host
    port = url.port or (443 if url.scheme == "https" else 80)
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(hostname, port)
    except OSError as exc:
        raise TargetUnavailable(type(exc).__name__) from exc
    verdict = check_resolved_addresses(hostname, (info[4][0] for info in infos))
    if not verdict.is_valid:
        raise SecurityDenied(verdict)


async def execute_check(
    client: httpx.AsyncClient,
    prepared: PreparedCheck,
    settings: ChecksConfig,
    security: Optional[SecurityConfig] = None,
) -> CheckOutcome:
    """Send a prepared check and time it.

    The elapsed time covers every hop up to the final response headers.

    Raises:
        SecurityDenied:    a redirect hop (or, with ``resolve_hostnames``, a
                           resolved address) failed the guard.
        TargetUnavailable: any httpx transport failure (connect, read, write,
                           timeout, protocol, proxy) or more than
                           ``settings.max_redirects`` redirects.
    """
    resolve = security is not None and security.resolve_hostnames
    request = client.build_request(
        method=prepared.method,
        url=prepared.url,
        headers=prepared.headers,
        content=prepared.content,
    )
    redirects = 0
    start = time.perf_counter()

    while True:
        if resolve:
            await _resolve_and_check(request.url)
        try:
            response = await client.send(request, stream=True)
        except httpx.TransportError as exc:
            logger.warning(
                "check_target_unavailable",
                url=str(request.url),
                error_type=type(exc).__name__,
            )
            raise TargetUnavailable(type(exc).__name__) from exc
        await response.aclose()

        next_request = response.next_request
        if not response.is_redirect or next_request is None:
            break

        if redirects >= settings.max_redirects:
            logger.warning("check_too_many_redirects", url=prepared.url, redirects=redirects)
            raise TargetUnavailable("TooManyRedirects")

        request = next_request
        verdict = validate_url_security(str(request.url))
        if not verdict.is_valid:
            raise SecurityDenied(verdict)
        redirects += 1

    elapsed_ms = (time.perf_counter() - start) * 1000

    logger.info(
        "check_executed",
        method=prepared.method,
        status_code=response.status_code,
        elapsed_ms=round(elapsed_ms, 2),
        redirects=redirects,
    )
    return CheckOutcome(
        check_id=prepared.check_id,
        url=prepared.url,
        method=prepared.method,
        status_code=response.status_code,
        response_time_ms=elapsed_ms,
        final_url=str(response.request.url),
        redirects=redirects,
    )


# ─── Result classification ────────────────────────────────────────────────────


def evaluate_run_success(status_code: int, expected_status_code: Optional[int], url: str) -> bool:
    """Success rule for saved-route runs.

    Exact expected status (default 200), any 2xx, any 3xx, or 401/403 from a URL
    containing ``/auth/``.
    """
    if status_code == (expected_status_code or DEFAULT_EXPECTED_STATUS):
        return True
    if 200 <= status_code < 400:
        return True
    return "/auth/" in url and status_code in (401, 403)


def evaluate_test_result(prepared: PreparedCheck, outcome: CheckOutcome) -> dict[str, Any]:
    """Build the test-only result payload (camelCase, as returned by the API)."""
    expected = prepared.expected_status_code or DEFAULT_EXPECTED_STATUS
    status_match = outcome.status_code == expected
    threshold = prepared.response_time_threshold
    response_time = round(outcome.response_time_ms)
    within = not threshold or response_time <= threshold
    return {
        "success": status_match and within,
        "url": prepared.url,
        "method": prepared.method,
        "statusCode": outcome.status_code,
        "expectedStatusCode": expected,
        "responseTime": response_time,
        "responseTimeThreshold": threshold,
        "statusMatch": status_match,
        "timeWithinThreshold": within,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
