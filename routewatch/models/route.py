"""Route and CheckLog dataclasses shared by the store, executor and API.

A Route is a user-registered monitoring target. A CheckLog is the recorded
outcome of one executed check against a route.

``Route.request_headers`` is always the SANITIZED header map — headers are
filtered by ``filter_sensitive_headers()`` before a Route is constructed from
user input, and again before every check.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from routewatch.constants import DEFAULT_MONITORING_INTERVAL


@dataclass
class Route:
    """A monitored HTTP(S) endpoint."""

    id: str
    name: str
    url: str
    method: str
    expected_status_code: Optional[int] = None
    response_time_threshold: Optional[int] = None
    """Maximum acceptable response time in milliseconds."""
    monitoring_interval: int = DEFAULT_MONITORING_INTERVAL
    retries: int = 0
    """Stored for clients; a run always makes a single attempt."""
    alert_email: Optional[str] = None
    description: Optional[str] = None
    request_headers: dict[str, str] = field(default_factory=dict)
    request_body: Optional[str] = None
    """JSON-encoded request body, or None."""
    content_type: Optional[str] = None
    """Content-Type sent with the body. None means application/json."""
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise with the camelCase keys used by the HTTP API."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "url": self.url,
            "method": self.method,
            "requestHeaders": self.request_headers,
            "requestBody": self.request_body,
            "contentType": self.content_type,
            "expectedStatusCode": self.expected_status_code,
            "responseTimeThreshold": self.response_time_threshold,
            "monitoringInterval": self.monitoring_interval,
            "retries": self.retries,
            "alertEmail": self.alert_email,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class CheckLog:
    """Recorded outcome of one check.

    ``status_code`` and ``response_time_ms`` are None when the target could not
    be reached at all; such checks are always ``is_success=False``.
    """

    id: str
    route_id: str
    is_success: bool
    created_at: datetime
    status_code: Optional[int] = None
    response_time_ms: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "statusCode": self.status_code,
            "responseTime": self.response_time_ms,
            "isSuccess": self.is_success,
            "error": self.error,
            "createdAt": self.created_at.isoformat(),
        }
