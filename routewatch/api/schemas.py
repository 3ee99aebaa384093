"""Request models for the /api/routes endpoints.

Field names are snake_case in Python and camelCase on the wire
(``expectedStatusCode``, ``testOnly``, ...). Either spelling is accepted.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class RouteRequest(BaseModel):
    """Request body for POST /api/routes.

    With ``testOnly`` set, the route is checked once and nothing is saved; only
    ``url`` and ``method`` are required. Otherwise ``name``,
    ``expectedStatusCode`` and ``monitoringInterval`` are required too. Those
    checks live in the handler so a missing field yields the API's own 400
    message.

    ``retries`` and ``alertEmail`` are stored and returned as route metadata.
    Checks do not read them: a run is a single attempt and sends no mail.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    method: Optional[str] = None
    headers: Optional[dict[str, str]] = None
    """Object, or a JSON-encoded object. Scalar values are sent as text."""
    body: Any = None
    """Any JSON value. Strings are parsed as JSON when the content type is JSON."""
    content_type: Optional[str] = None
    expected_status_code: Optional[int] = None
    response_time_threshold: Optional[int] = None
    """Maximum acceptable response time in milliseconds."""
    monitoring_interval: Optional[int] = None
    retries: Optional[int] = None
    alert_email: Optional[str] = None
    test_only: bool = False

    @field_validator("headers", mode="before")
    @classmethod
    def _coerce_headers(cls, value: Any) -> Any:
        if isinstance(value, str):
            if not value.strip():
                return None
            try:
                value = json.loads(value)
            except ValueError:
                raise ValueError("headers must be an object or a JSON-encoded object")
        if isinstance(value, dict):
            return {
                str(name): item if isinstance(item, str) else json.dumps(item)
                for name, item in value.items()
                if item is not None
            }
        return value
