"""Per-route health metrics computed from recent check logs."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Sequence

from routewatch.constants import (
    METRICS_RECENT_WINDOW,
    UPTIME_DEGRADED_PCT,
    UPTIME_UP_PCT,
    UPTIME_WATCH_PCT,
)
from routewatch.models.route import CheckLog, Route

STATUS_NOT_MONITORED = "Not monitored"
STATUS_UP = "up"
STATUS_DEGRADED = "degraded"
STATUS_DOWN = "down"


def _uptime(logs: Sequence[CheckLog]) -> float:
    if not logs:
        return 0.0
    return sum(1 for log in logs if log.is_success) / len(logs) * 100


def classify_status(route: Route, logs: Sequence[CheckLog]) -> str:
    """Map recent logs (newest first) to up / degraded / down."""
    if not logs:
        return STATUS_NOT_MONITORED

    last = logs[0]
    if last.response_time_ms is None or not last.is_success:
        return STATUS_DOWN

    uptime = _uptime(logs)
    if uptime >= UPTIME_UP_PCT:
        threshold = route.response_time_threshold
        latency_spike = bool(threshold) and last.response_time_ms > threshold
        return STATUS_DEGRADED if latency_spike else STATUS_UP
    if uptime >= UPTIME_WATCH_PCT:
        recent = logs[:METRICS_RECENT_WINDOW]
        has_recent_issues = any(not log.is_success for log in recent)
        return STATUS_DEGRADED if has_recent_issues else STATUS_UP
    if uptime >= UPTIME_DEGRADED_PCT:
        return STATUS_DEGRADED
    return STATUS_DOWN


def compute_route_metrics(
    route: Route,
    logs: Sequence[CheckLog],
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Summarise a route and its latest logs for the API listing.

    Args:
        route: The monitored route.
        logs:  Most recent check logs, newest first (at most METRICS_LOG_WINDOW).
        now:   Reference time for the 24h window. Defaults to the current UTC time.

    Returns:
        camelCase dict: route identity fields plus ``status``, ``statusCode``,
        ``responseTime``, ``avgResponseTime``, ``lastChecked``, ``uptime``,
        ``recentUptime`` and ``totalChecks``.
    """
    now = now or datetime.now(timezone.utc)
    last = logs[0] if logs else None

    uptime = _uptime(logs)
    total_time = sum(log.response_time_ms or 0 for log in logs)
    avg_response_time = round(total_time / len(logs)) if logs else 0

    cutoff = now - timedelta(hours=24)
    last_day = [log for log in logs if log.created_at >= cutoff]
    recent_uptime = _uptime(last_day) if last_day else uptime

    if last is not None and last.response_time_ms is not None:
        response_time = last.response_time_ms
    else:
        response_time = avg_response_time

    return {
        "id": route.id,
        "name": route.name,
        "url": route.url,
        "method": route.method,
        "status": classify_status(route, logs),
        "statusCode": last.status_code if last else None,
        "responseTime": response_time,
        "avgResponseTime": avg_response_time,
        "lastChecked": last.created_at.isoformat() if last else None,
        "uptime": f"{uptime:.2f}%",
        "recentUptime": f"{recent_uptime:.2f}%",
        "totalChecks": len(logs),
        "expectedStatusCode": route.expected_status_code,
        "description": route.description,
        "isActive": route.is_active,
        "monitoringInterval": route.monitoring_interval,
    }
