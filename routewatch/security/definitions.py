"""Rule tables for the outbound URL guard.

All tables are module-level constants built once at import time and never
mutated afterwards, so ``validate_url_security()`` needs no locking.

Textual patterns are pre-compiled with google-re2. The hostname and path of a
candidate URL are attacker-controlled and may be arbitrarily long; re2 matches
in linear time, so no input can trigger catastrophic backtracking.

IMPORT RULES:
  - ``import re2`` ONLY — ``import re`` is PROHIBITED in routewatch/security/.
  - Enforced by tests/security/test_redos_gate.py.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Any, Union

import re2

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


# ---------------------------------------------------------------------------
# Rule IDs (internal only: logged, never returned to callers)
# ---------------------------------------------------------------------------

RULE_MALFORMED_URL = "MALFORMED_URL"
RULE_DISALLOWED_SCHEME = "DISALLOWED_SCHEME"
RULE_LOOPBACK = "LOOPBACK"
RULE_UNSPECIFIED = "UNSPECIFIED_ADDRESS"
RULE_PRIVATE_NETWORK = "PRIVATE_NETWORK"
RULE_LINK_LOCAL = "LINK_LOCAL"
RULE_CARRIER_GRADE_NAT = "CARRIER_GRADE_NAT"
RULE_INTERNAL_DNS_SUFFIX = "INTERNAL_DNS_SUFFIX"
RULE_CLOUD_METADATA = "CLOUD_METADATA"
RULE_SENSITIVE_PORT = "SENSITIVE_PORT"
RULE_SENSITIVE_PATH = "SENSITIVE_PATH"


# ---------------------------------------------------------------------------
# Rule dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GuardPattern:
    """A single compiled textual rule.

    Fields:
        pattern: Pre-compiled re2 pattern object. Compiled at module load time.
        rule_id: Rule identifier recorded on the denying verdict.
        slug:    Kebab-case name used in logs and test IDs.
    """
    pattern: Any           # re2._Regexp, compiled at module load
    rule_id: str
    slug: str


@dataclass(frozen=True)
class NetworkRule:
    """A blocked address range, matched by CIDR membership."""
    network: IPNetwork
    rule_id: str


# ---------------------------------------------------------------------------
# Schemes
# ---------------------------------------------------------------------------

ALLOWED_SCHEMES: frozenset[str] = frozenset({"http", "https"})


# ---------------------------------------------------------------------------
# Hostname literals
# ---------------------------------------------------------------------------

LOOPBACK_HOSTNAMES: frozenset[str] = frozenset({"localhost"})

# Link-local metadata endpoints. Checked before the generic range table so the
# log records the more specific rule.
METADATA_ADDRESSES: frozenset[IPAddress] = frozenset({
    ipaddress.ip_address("169.254.169.254"),   # AWS / GCP / Azure / DigitalOcean IMDS
    ipaddress.ip_address("fd00:ec2::254"),     # AWS IMDS over IPv6
})


# ---------------------------------------------------------------------------
# Address ranges (numeric hostnames only)
# ---------------------------------------------------------------------------

BLOCKED_NETWORKS: tuple[NetworkRule, ...] = (
    NetworkRule(ipaddress.ip_network("0.0.0.0/8"), RULE_UNSPECIFIED),
    NetworkRule(ipaddress.ip_network("127.0.0.0/8"), RULE_LOOPBACK),
    NetworkRule(ipaddress.ip_network("10.0.0.0/8"), RULE_PRIVATE_NETWORK),
    NetworkRule(ipaddress.ip_network("172.16.0.0/12"), RULE_PRIVATE_NETWORK),
    NetworkRule(ipaddress.ip_network("192.168.0.0/16"), RULE_PRIVATE_NETWORK),
    NetworkRule(ipaddress.ip_network("169.254.0.0/16"), RULE_LINK_LOCAL),
    NetworkRule(ipaddress.ip_network("100.64.0.0/10"), RULE_CARRIER_GRADE_NAT),
    NetworkRule(ipaddress.ip_network("::1/128"), RULE_LOOPBACK),
    NetworkRule(ipaddress.ip_network("::/128"), RULE_UNSPECIFIED),
    NetworkRule(ipaddress.ip_network("fc00::/7"), RULE_PRIVATE_NETWORK),
    NetworkRule(ipaddress.ip_network("fe80::/10"), RULE_LINK_LOCAL),
)

# RFC 6052 well-known NAT64 prefix; the low 32 bits carry an IPv4 address.
NAT64_PREFIX: ipaddress.IPv6Network = ipaddress.ip_network("64:ff9b::/96")


# ---------------------------------------------------------------------------
# Hostname patterns (non-numeric hostnames only)
# ---------------------------------------------------------------------------

HOSTNAME_PATTERNS: tuple[GuardPattern, ...] = (
    GuardPattern(
        pattern=re2.compile(r'\.(?:local|internal|private|localhost|corp|home|lan)$'),
        rule_id=RULE_INTERNAL_DNS_SUFFIX,
        slug="internal-dns-suffix",
    ),
    GuardPattern(
        # A "metadata" label followed by a cloud-provider label, anywhere in the host
        pattern=re2.compile(r'(?:^|\.)metadata\.(?:aws|google|azure|do)\.'),
        rule_id=RULE_CLOUD_METADATA,
        slug="cloud-metadata-hostname",
    ),
)


# ---------------------------------------------------------------------------
# Ports
# ---------------------------------------------------------------------------

# FTP, SSH, Telnet, SMTP, HTTP, RPC, MSRPC, NetBIOS, LDAP, SMB, MSSQL, Oracle,
# MySQL, RDP, PostgreSQL, VNC, Redis, Elasticsearch, Memcached, MongoDB.
SENSITIVE_PORTS: frozenset[int] = frozenset({
    21, 22, 23, 25, 80, 111, 135, 137, 139, 389, 445, 1433, 1521,
    3306, 3389, 5432, 5900, 6379, 9200, 11211, 27017,
})


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

PATH_PATTERNS: tuple[GuardPattern, ...] = (
    GuardPattern(
        pattern=re2.compile(r'\.well-known/(?:webfinger|host-meta)'),
        rule_id=RULE_SENSITIVE_PATH,
        slug="well-known-discovery",
    ),
    GuardPattern(
        pattern=re2.compile(r'/\.discovery'),
        rule_id=RULE_SENSITIVE_PATH,
        slug="dot-discovery",
    ),
)


ALL_PATTERNS: tuple[GuardPattern, ...] = HOSTNAME_PATTERNS + PATH_PATTERNS
