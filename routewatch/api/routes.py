"""Route management and check endpoints.

  GET    /api/routes              — all routes with uptime metrics
  POST   /api/routes              — create a route, or run a one-off test (testOnly)
  GET    /api/routes/{route_id}   — one route with metrics and recent checks
  DELETE /api/routes/{route_id}   — delete a route and its check logs
  POST   /api/routes/{route_id}/run — run a saved route's check now and record it

Failure mapping:
  - URL guard denial (target or redirect hop) → 403 with X-RouteWatch-Denied
  - Missing fields, bad JSON body, unsendable header, oversized check body → 400
    (checked when a route is saved as well as when it runs)
  - Unknown route → 404
  - Test-only target unreachable → 502 (saved-route runs record a failed log)
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from routewatch.api.schemas import RouteRequest
from routewatch.checks.executor import (
    CheckOutcome,
    CheckRejected,
    CheckSpec,
    SecurityDenied,
    TargetUnavailable,
    evaluate_run_success,
    evaluate_test_result,
    execute_check,
    prepare_check,
)
from routewatch.checks.metrics import compute_route_metrics
from routewatch.config import Config
from routewatch.constants import DEFAULT_MONITORING_INTERVAL
from routewatch.models.responses import (
    CHECK_ID_HEADER,
    build_error_response,
    build_security_denied_response,
    build_target_unavailable_response,
)
from routewatch.models.route import CheckLog, Route
from routewatch.security import filter_sensitive_headers
from routewatch.store.protocol import RouteStore
from routewatch.utils.logger import clear_check_id, get_logger, set_check_id
from routewatch.utils.ulid import generate_ulid

logger = get_logger(__name__)

router = APIRouter(prefix="/api/routes", tags=["routes"])


def _rejection_response(exc: CheckRejected, check_id: Optional[str] = None) -> JSONResponse:
    if isinstance(exc, SecurityDenied):
        return build_security_denied_response(exc.verdict, check_id=check_id)
    return build_error_response(exc.status_code, exc.message)


def _route_not_found() -> JSONResponse:
    return build_error_response(404, "Route not found")


# ─── Listing ──────────────────────────────────────────────────────────────────


@router.get("")
async def list_routes(request: Request) -> list[dict[str, Any]]:
    store: RouteStore = request.app.state.route_store
    now = datetime.now(timezone.utc)
    results = []
    for route in await store.list_routes():
        logs = await store.recent_checks(route.id)
        results.append(compute_route_metrics(route, logs, now))
    return results


@router.get("/{route_id}")
async def get_route(route_id: str, request: Request) -> Response:
    store: RouteStore = request.app.state.route_store
    route = await store.get_route(route_id)
    if route is None:
        return _route_not_found()
    logs = await store.recent_checks(route.id)
    payload = route.to_dict()
    payload.update(compute_route_metrics(route, logs))
    payload["checks"] = [log.to_dict() for log in logs]
    return JSONResponse(content=payload)


# ─── Create / test ────────────────────────────────────────────────────────────


def _spec_from_request(body: RouteRequest) -> CheckSpec:
    return CheckSpec(
        url=body.url or "",
        method=body.method or "GET",
        headers=body.headers or {},
        body=body.body,
        content_type=body.content_type,
        expected_status_code=body.expected_status_code,
        response_time_threshold=body.response_time_threshold,
    )


@router.post("")
async def create_route(body: RouteRequest, request: Request) -> Response:
    """Create a route, or (``testOnly``) check a target once without saving it."""
    if not body.url or not body.method:
        return build_error_response(400, "URL and Method are required")

    if body.test_only:
        return await _test_route(body, request)

    if not body.name or not body.expected_status_code or not body.monitoring_interval:
        return build_error_response(400, "Missing required fields")

    # Same checks a run performs: guard, headers, body
    config: Config = request.app.state.config
    try:
        prepare_check(_spec_from_request(body), config.checks)
    except CheckRejected as exc:
        return _rejection_response(exc)

    route = Route(
        id=generate_ulid(),
        name=body.name,
        description=body.description,
        url=body.url,
        method=body.method.upper(),
        request_headers=filter_sensitive_headers(body.headers or {}),
        request_body=json.dumps(body.body) if body.body not in (None, "") else None,
        content_type=body.content_type,
        expected_status_code=body.expected_status_code,
        response_time_threshold=body.response_time_threshold,
        monitoring_interval=body.monitoring_interval or DEFAULT_MONITORING_INTERVAL,
        retries=body.retries or 0,
        alert_email=body.alert_email,
    )
    store: RouteStore = request.app.state.route_store
    route = await store.create_route(route)
    return JSONResponse(status_code=201, content=route.to_dict())


async def _test_route(body: RouteRequest, request: Request) -> Response:
    config: Config = request.app.state.config
    client: httpx.AsyncClient = request.app.state.http_client

    try:
        prepared = prepare_check(_spec_from_request(body), config.checks)
    except CheckRejected as exc:
        return _rejection_response(exc)

    set_check_id(prepared.check_id)
    try:
        outcome = await execute_check(client, prepared, config.checks, config.security)
    except SecurityDenied as exc:
        return build_security_denied_response(exc.verdict, check_id=prepared.check_id)
    except TargetUnavailable as exc:
        return build_target_unavailable_response(prepared.check_id, exc.reason)
    finally:
        clear_check_id()

    response = JSONResponse(content=evaluate_test_result(prepared, outcome))
    response.headers[CHECK_ID_HEADER] = prepared.check_id
    return response


# ─── Delete ───────────────────────────────────────────────────────────────────


@router.delete("/{route_id}")
async def delete_route(route_id: str, request: Request) -> Response:
    store: RouteStore = request.app.state.route_store
    if not await store.delete_route(route_id):
        return _route_not_found()
    return JSONResponse(content={"success": True, "id": route_id})


# ─── Run ──────────────────────────────────────────────────────────────────────


@router.post("/{route_id}/run")
async def run_route(route_id: str, request: Request) -> Response:
    """Check a saved route now and record the result."""
    store: RouteStore = request.app.state.route_store
    config: Config = request.app.state.config
    client: httpx.AsyncClient = request.app.state.http_client

    route = await store.get_route(route_id)
    if route is None:
        return _route_not_found()

    try:
        prepared = prepare_check(CheckSpec.from_route(route), config.checks)
    except CheckRejected as exc:
        return _rejection_response(exc)

    set_check_id(prepared.check_id)
    outcome: Optional[CheckOutcome] = None
    error: Optional[str] = None
    try:
        outcome = await execute_check(client, prepared, config.checks, config.security)
    except SecurityDenied as exc:
        return build_security_denied_response(exc.verdict, check_id=prepared.check_id)
    except TargetUnavailable as exc:
        error = exc.reason
    finally:
        clear_check_id()

    if outcome is not None:
        is_success = evaluate_run_success(
            outcome.status_code, route.expected_status_code, route.url
        )
        log = CheckLog(
            id=prepared.check_id,
            route_id=route.id,
            is_success=is_success,
            created_at=datetime.now(timezone.utc),
            status_code=outcome.status_code,
            response_time_ms=round(outcome.response_time_ms),
        )
    else:
        log = CheckLog(
            id=prepared.check_id,
            route_id=route.id,
            is_success=False,
            created_at=datetime.now(timezone.utc),
            error=error,
        )
    await store.record_check(log)

    payload = route.to_dict()
    payload["lastResponse"] = {
        "status": log.status_code,
        "success": log.is_success,
        "responseTime": log.response_time_ms,
        "error": log.error,
    }
    response = JSONResponse(content=payload)
    response.headers[CHECK_ID_HEADER] = prepared.check_id
    return response
