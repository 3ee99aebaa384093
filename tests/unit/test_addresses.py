"""Tests for numeric host parsing and address classification."""

from __future__ import annotations

import ipaddress

import pytest

from routewatch.security.addresses import (
    InvalidNumericHost,
    classify_address,
    embedded_ipv4,
    parse_numeric_host,
)


class TestParseNumericHost:
    @pytest.mark.parametrize(
        "host,expected",
        [
            ("127.0.0.1", "127.0.0.1"),
            ("0x7f000001", "127.0.0.1"),
            ("2130706433", "127.0.0.1"),
            ("017700000001", "127.0.0.1"),
            ("127.1", "127.0.0.1"),
            ("10.1.2", "10.1.0.2"),
            ("0x0a.0.0.1", "10.0.0.1"),
            ("0300.0250.1.1", "192.168.1.1"),
            ("0x", "0.0.0.0"),
            ("8.8.8.8.", "8.8.8.8"),
            ("0" * 50 + "1", "0.0.0.1"),
            ("0x" + "0" * 50 + "a", "0.0.0.10"),
        ],
    )
    def test_ipv4_forms(self, host: str, expected: str) -> None:
        assert parse_numeric_host(host) == ipaddress.IPv4Address(expected)

    def test_ipv6_bracketed_and_bare(self) -> None:
        assert parse_numeric_host("[::1]") == ipaddress.IPv6Address("::1")
        assert parse_numeric_host("fe80::1") == ipaddress.IPv6Address("fe80::1")

    @pytest.mark.parametrize("host", ["example.com", "1.2.3.4.5", "1..2", "0x7g", "09", "a:b:c"])
    def test_non_numeric_returns_none(self, host: str) -> None:
        assert parse_numeric_host(host) is None

    @pytest.mark.parametrize(
        "host",
        [
            "4294967296", "1.2.3.256", "1.16777216", "256.1",
            "9" * 5000, "1." + "9" * 5000, "0x" + "f" * 5000, "0" + "7" * 5000,
        ],
    )
    def test_out_of_range_raises(self, host: str) -> None:
        with pytest.raises(InvalidNumericHost):
            parse_numeric_host(host)


class TestEmbeddedIPv4:
    @pytest.mark.parametrize(
        "address,expected",
        [
            ("::ffff:10.0.0.1", "10.0.0.1"),
            ("2002:c0a8:0101::", "192.168.1.1"),
            ("64:ff9b::7f00:1", "127.0.0.1"),
            ("::10.0.0.1", "10.0.0.1"),
        ],
    )
    def test_unwrapped(self, address: str, expected: str) -> None:
        assert embedded_ipv4(ipaddress.IPv6Address(address)) == ipaddress.IPv4Address(expected)

    @pytest.mark.parametrize("address", ["::1", "::", "2606:4700::1111"])
    def test_plain_ipv6_has_none(self, address: str) -> None:
        assert embedded_ipv4(ipaddress.IPv6Address(address)) is None

    def test_ipv4_has_none(self) -> None:
        assert embedded_ipv4(ipaddress.IPv4Address("10.0.0.1")) is None


class TestClassifyAddress:
    @pytest.mark.parametrize(
        "address,rule_id",
        [
            ("127.0.0.1", "LOOPBACK"),
            ("0.0.0.0", "UNSPECIFIED_ADDRESS"),
            ("10.1.1.1", "PRIVATE_NETWORK"),
            ("169.254.169.254", "CLOUD_METADATA"),
            ("169.254.1.1", "LINK_LOCAL"),
            ("100.100.100.100", "CARRIER_GRADE_NAT"),
            ("::1", "LOOPBACK"),
            ("::", "UNSPECIFIED_ADDRESS"),
            ("fd00:ec2::254", "CLOUD_METADATA"),
            ("fe80::1%eth0", "LINK_LOCAL"),
            ("::ffff:169.254.169.254", "CLOUD_METADATA"),
        ],
    )
    def test_blocked(self, address: str, rule_id: str) -> None:
        assert classify_address(ipaddress.ip_address(address)) == rule_id

    @pytest.mark.parametrize("address", ["8.8.8.8", "2606:4700:4700::1111", "::ffff:8.8.8.8"])
    def test_public(self, address: str) -> None:
        assert classify_address(ipaddress.ip_address(address)) is None
