"""Unit tests for routewatch/models/responses.py — error response builders."""

from __future__ import annotations

import json

from routewatch.models.responses import (
    CHECK_ID_HEADER,
    DENIED_HEADER,
    build_error_response,
    build_security_denied_response,
    build_target_unavailable_response,
)
from routewatch.models.verdict import DENIED_MESSAGE, SecurityVerdict


def _body(response) -> dict:
    return json.loads(response.body)


class TestSecurityDenied:
    def test_policy_denial_is_generic(self) -> None:
        response = build_security_denied_response(SecurityVerdict.deny("CLOUD_METADATA"))
        assert response.status_code == 403
        assert response.headers[DENIED_HEADER] == "true"
        assert _body(response) == {"error": DENIED_MESSAGE}
        assert "CLOUD_METADATA" not in response.body.decode()

    def test_malformed_carries_detail(self) -> None:
        response = build_security_denied_response(SecurityVerdict.malformed("URL has no host"))
        assert _body(response) == {"error": "Invalid URL: URL has no host"}

    def test_check_id_header_optional(self) -> None:
        verdict = SecurityVerdict.deny("LOOPBACK")
        assert CHECK_ID_HEADER not in build_security_denied_response(verdict).headers
        with_id = build_security_denied_response(verdict, check_id="01CHECK")
        assert with_id.headers[CHECK_ID_HEADER] == "01CHECK"


class TestTargetUnavailable:
    def test_502_without_denied_header(self) -> None:
        response = build_target_unavailable_response("01CHECK", "ConnectTimeout")
        assert response.status_code == 502
        assert DENIED_HEADER not in response.headers
        assert response.headers[CHECK_ID_HEADER] == "01CHECK"
        assert _body(response) == {"error": "Failed to test route: ConnectTimeout", "success": False}

    def test_default_reason(self) -> None:
        response = build_target_unavailable_response("01CHECK")
        assert _body(response)["error"] == "Failed to test route: target unavailable"


def test_error_response_shape() -> None:
    response = build_error_response(404, "Route not found")
    assert response.status_code == 404
    assert _body(response) == {"error": "Route not found"}
