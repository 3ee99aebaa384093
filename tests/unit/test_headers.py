"""Tests for filter_sensitive_headers() / is_forbidden_header()."""

from __future__ import annotations

import pytest

from routewatch.security.headers import (
    FORBIDDEN_HEADERS,
    FORBIDDEN_HEADERS_VERSION,
    filter_sensitive_headers,
    is_forbidden_header,
)


class TestReferenceScenarios:
    def test_authorization_stripped_custom_kept(self) -> None:
        result = filter_sensitive_headers({"Authorization": "Bearer x", "X-Custom": "1"})
        assert result == {"X-Custom": "1"}

    def test_aws_prefix_rule(self) -> None:
        assert filter_sensitive_headers({"X-AWS-Token": "abc"}) == {}


class TestExactRules:
    @pytest.mark.parametrize(
        "name",
        ["Authorization", "COOKIE", "set-cookie", "X-Forwarded-For", "X-Real-IP",
         "Forwarded", "X-Api-Key", "api-key", "X-Request-ID", "X-Trace", "x-debug",
         "X-Amz-Security-Token", "WWW-Authenticate", "X-CSRF"],
    )
    def test_forbidden(self, name: str) -> None:
        assert is_forbidden_header(name)

    @pytest.mark.parametrize(
        "name",
        ["X-Trace-Id", "X-Debug-Mode", "X-Request-Id-Extra", "Authorization2",
         "X-Csrf-Foo", "X-Internal-Flag", "X-Secret-Sauce", "Cookie-Jar"],
    )
    def test_exact_rules_do_not_match_longer_names(self, name: str) -> None:
        assert not is_forbidden_header(name)


class TestPrefixRules:
    @pytest.mark.parametrize(
        "name",
        ["Sec-Fetch-Mode", "Proxy-Connection", "CF-Connecting-IP", "X-Amz-Date",
         "x-azure-ref", "X-GCP-Project", "X-Heroku-Dyno", "X-Vercel-Id"],
    )
    def test_prefix_matches(self, name: str) -> None:
        assert is_forbidden_header(name)

    @pytest.mark.parametrize("name", ["secret", "proxy", "cf", "X-Awesome"])
    def test_prefix_requires_dash(self, name: str) -> None:
        assert not is_forbidden_header(name)


class TestFilterBehaviour:
    def test_empty_input(self) -> None:
        assert filter_sensitive_headers({}) == {}

    def test_preserves_casing_value_and_order(self) -> None:
        headers = {"Accept": "a", "Authorization": "b", "X-Tenant": "T-1", "cookie": "c", "X-B": "2"}
        result = filter_sensitive_headers(headers)
        assert list(result.items()) == [("Accept", "a"), ("X-Tenant", "T-1"), ("X-B", "2")]

    def test_input_not_mutated(self) -> None:
        headers = {"Cookie": "a", "Accept": "b"}
        filter_sensitive_headers(headers)
        assert headers == {"Cookie": "a", "Accept": "b"}

    def test_idempotent(self) -> None:
        headers = {"Accept": "*/*", "X-Forwarded-For": "1.2.3.4", "Sec-Ch-Ua": "x", "X-App": "1"}
        once = filter_sensitive_headers(headers)
        assert filter_sensitive_headers(once) == once

    def test_every_table_entry_is_lowercase(self) -> None:
        assert all(rule == rule.lower() for rule in FORBIDDEN_HEADERS)
        assert FORBIDDEN_HEADERS_VERSION == 1
