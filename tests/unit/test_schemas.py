"""Unit tests for routewatch/api/schemas.py — RouteRequest parsing."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from routewatch.api.schemas import RouteRequest


class TestHeaders:
    def test_object_passes_through(self) -> None:
        body = RouteRequest.model_validate({"headers": {"X-A": "1"}})
        assert body.headers == {"X-A": "1"}

    def test_json_encoded_object(self) -> None:
        body = RouteRequest.model_validate({"headers": '{"X-A": "1", "X-B": "two"}'})
        assert body.headers == {"X-A": "1", "X-B": "two"}

    def test_scalar_values_sent_as_text(self) -> None:
        body = RouteRequest.model_validate(
            {"headers": {"X-Retry": 3, "X-Ratio": 0.5, "X-Debug": True, "X-Skip": None}}
        )
        assert body.headers == {"X-Retry": "3", "X-Ratio": "0.5", "X-Debug": "true"}

    @pytest.mark.parametrize("value", ["", "   "])
    def test_blank_string_is_no_headers(self, value: str) -> None:
        assert RouteRequest.model_validate({"headers": value}).headers is None

    @pytest.mark.parametrize("value", ["{not json", '["X-A"]', "42", ["X-A", "1"]])
    def test_non_object_rejected(self, value: object) -> None:
        with pytest.raises(ValidationError):
            RouteRequest.model_validate({"headers": value})


class TestStoredOnlyFields:
    def test_camel_and_snake_case_accepted(self) -> None:
        camel = RouteRequest.model_validate({"retries": 2, "alertEmail": "ops@example.com"})
        snake = RouteRequest.model_validate({"retries": 2, "alert_email": "ops@example.com"})
        assert camel.retries == snake.retries == 2
        assert camel.alert_email == snake.alert_email == "ops@example.com"

    def test_content_type_alias(self) -> None:
        body = RouteRequest.model_validate({"contentType": "text/plain", "testOnly": True})
        assert body.content_type == "text/plain"
        assert body.test_only is True
