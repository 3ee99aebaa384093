"""Numeric-host parsing and address classification for the URL guard.

Hostnames that are IP literals are parsed into ``ipaddress`` objects and checked
by CIDR membership instead of by text pattern. Text patterns miss the alternate
IPv4 spellings that resolvers and HTTP clients still accept:

    0x7f000001      → 127.0.0.1   (single hex number)
    017700000001    → 127.0.0.1   (single octal number)
    2130706433      → 127.0.0.1   (single decimal number)
    127.1           → 127.0.0.1   (short form: last part fills remaining bytes)
    0x7f.0.0.01     → 127.0.0.1   (mixed radix per part)

IPv6 forms that embed an IPv4 address (IPv4-mapped, IPv4-compatible, 6to4,
NAT64) are unwrapped and the embedded address is checked as well.
"""

from __future__ import annotations

import ipaddress
from typing import Optional

from routewatch.security.definitions import (
    BLOCKED_NETWORKS,
    METADATA_ADDRESSES,
    NAT64_PREFIX,
    RULE_CLOUD_METADATA,
    IPAddress,
)

_HEX_DIGITS = frozenset("0123456789abcdef")
_OCT_DIGITS = frozenset("01234567")
_DEC_DIGITS = frozenset("0123456789")

# Any part with more significant digits than these exceeds 0xFFFFFFFF.
_MAX_SIGNIFICANT_DIGITS = {16: 8, 8: 11, 10: 10}
_OUT_OF_RANGE = 2 ** 32


class InvalidNumericHost(ValueError):
    """Raised when a hostname is numeric in form but not a valid IPv4 address."""


def _to_int(digits: str, base: int) -> int:
    significant = digits.lstrip("0")
    if len(significant) > _MAX_SIGNIFICANT_DIGITS[base]:
        return _OUT_OF_RANGE
    return int(significant or "0", base)


def _parse_ipv4_part(part: str) -> Optional[int]:
    """Parse one dot-separated IPv4 part in hex, octal or decimal.

    Returns None if the part is not a number in any of the three radixes.
    Parts too long to fit in 32 bits come back as a value above the range,
    without converting every digit.
    """
    if part[:2] in ("0x", "0X"):
        digits = part[2:].lower()
        if not digits:
            return 0
        if not set(digits) <= _HEX_DIGITS:
            return None
        return _to_int(digits, 16)
    if len(part) > 1 and part[0] == "0":
        if not set(part) <= _OCT_DIGITS:
            return None
        return _to_int(part, 8)
    if not set(part) <= _DEC_DIGITS:
        return None
    return _to_int(part, 10)


def _parse_loose_ipv4(host: str) -> Optional[ipaddress.IPv4Address]:
    """inet_aton-style IPv4 parsing (1 to 4 parts, mixed radix).

    Returns None when ``host`` is not numeric (i.e. it is a DNS name).

    Raises:
        InvalidNumericHost: every part is a number but the value is out of range.
    """
    parts = host.split(".")
    if parts and parts[-1] == "" and len(parts) > 1:
        parts = parts[:-1]
    if not parts or len(parts) > 4 or any(p == "" for p in parts):
        return None

    numbers = [_parse_ipv4_part(p) for p in parts]
    if any(n is None for n in numbers):
        return None

    *leading, last = numbers
    if any(n > 255 for n in leading) or last >= 256 ** (5 - len(numbers)):  # type: ignore[operator]
        raise InvalidNumericHost(f"invalid IPv4 address: {host[:64]!r}")

    value = last
    for index, n in enumerate(leading):
        value += n * 256 ** (3 - index)  # type: ignore[operator]
    return ipaddress.IPv4Address(value)


def parse_numeric_host(host: str) -> Optional[IPAddress]:
    """Return the IP address a hostname denotes, or None for DNS names.

    Accepts bracketed or bare IPv6 literals (with optional zone ID), canonical
    dotted-quad IPv4, and the alternate IPv4 spellings listed in the module
    docstring.

    Raises:
        InvalidNumericHost: numeric in form but out of range (e.g. ``"4294967296"``).
    """
    candidate = host
    if candidate.startswith("[") and candidate.endswith("]"):
        candidate = candidate[1:-1]

    if ":" in candidate:
        try:
            return ipaddress.IPv6Address(candidate)
        except ValueError:
            return None

    try:
        return ipaddress.IPv4Address(candidate)
    except ValueError:
        return _parse_loose_ipv4(candidate)


def embedded_ipv4(address: IPAddress) -> Optional[ipaddress.IPv4Address]:
    """Return the IPv4 address carried inside an IPv6 address, if any."""
    if not isinstance(address, ipaddress.IPv6Address):
        return None
    if address.ipv4_mapped is not None:
        return address.ipv4_mapped
    if address.sixtofour is not None:
        return address.sixtofour
    if address in NAT64_PREFIX:
        return ipaddress.IPv4Address(int(address) & 0xFFFFFFFF)
    value = int(address)
    # IPv4-compatible (::a.b.c.d); ::1 and :: are real IPv6 addresses
    if value >> 32 == 0 and value > 1:
        return ipaddress.IPv4Address(value)
    return None


def classify_address(address: IPAddress) -> Optional[str]:
    """Return the rule ID that blocks ``address``, or None if it is fetchable."""
    candidates: list[IPAddress] = [address]
    inner = embedded_ipv4(address)
    if inner is not None:
        candidates.append(inner)

    for candidate in candidates:
        unscoped = candidate
        if candidate.version == 6 and getattr(candidate, "scope_id", None):
            unscoped = ipaddress.IPv6Address(str(candidate).split("%", 1)[0])
        if unscoped in METADATA_ADDRESSES:
            return RULE_CLOUD_METADATA
        for rule in BLOCKED_NETWORKS:
            if unscoped.version == rule.network.version and unscoped in rule.network:
                return rule.rule_id
    return None
