"""HTTP response builders for the outbound-check pipeline.

Three failure modes are kept distinct:

  build_security_denied_response():
      HTTP 403 — the URL guard denied the target. The upstream is NEVER called.
      MUST include ``X-RouteWatch-Denied: true``.
      Body: ``{"error": <verdict reason>}`` — the generic message for policy
      denials, ``"Invalid URL: ..."`` for unparsable input.

  build_target_unavailable_response():
      HTTP 502 — the target could not be reached (connect error, timeout,
      protocol error, redirect loop). MUST NOT include ``X-RouteWatch-Denied``:
      an unreachable target is not a security denial.

  build_error_response():
      Any other JSON error (400 malformed body, 404 unknown route, ...).

The 403 body never names the rule that matched.
"""

from __future__ import annotations

from typing import Optional

from fastapi.responses import JSONResponse

from routewatch.models.verdict import DENIED_MESSAGE, SecurityVerdict

DENIED_HEADER = "X-RouteWatch-Denied"
CHECK_ID_HEADER = "X-RouteWatch-Check-ID"


def build_error_response(status_code: int, message: str) -> JSONResponse:
    """Build a JSON error response with the ``{"error": message}`` body."""
    return JSONResponse(status_code=status_code, content={"error": message})


def build_security_denied_response(
    verdict: SecurityVerdict,
    check_id: Optional[str] = None,
) -> JSONResponse:
    """Build the HTTP 403 response for a denied target URL.

    Args:
        verdict:  Denying SecurityVerdict from ``validate_url_security()``.
        check_id: ULID of the attempted check, for log correlation.

    Returns:
        JSONResponse with status_code=403 and ``X-RouteWatch-Denied: true``.
    """
    response = build_error_response(403, verdict.reason or DENIED_MESSAGE)
    response.headers[DENIED_HEADER] = "true"
    if check_id:
        response.headers[CHECK_ID_HEADER] = check_id
    return response


def build_target_unavailable_response(check_id: str, reason: str = "") -> JSONResponse:
    """Build the HTTP 502 response for an unreachable check target.

    Args:
        check_id: ULID of the attempted check.
        reason:   Short reason (e.g. ``"ConnectError"``). MUST NOT contain
                  request headers or body content.

    Returns:
        JSONResponse with status_code=502 and NO ``X-RouteWatch-Denied`` header.
    """
    response = JSONResponse(
        status_code=502,
        content={
            "error": f"Failed to test route: {reason or 'target unavailable'}",
            "success": False,
        },
    )
    response.headers[CHECK_ID_HEADER] = check_id
    return response
