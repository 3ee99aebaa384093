"""Outbound URL guard — SSRF protection for user-supplied check targets.

RouteWatch fetches arbitrary user-specified URLs ("run a check", "test a route"),
which makes the server an open proxy unless every target is vetted first.
``validate_url_security()`` is that vetting step.

Rules (any match denies — fail-closed):

  1. Parse as an absolute URL            → "Invalid URL: <detail>" on failure
  2. Scheme other than http / https
  3. Loopback: ``localhost``, 127.0.0.0/8, ::1
  4. Private IPv4: 10/8, 172.16/12, 192.168/16 (+ 0.0.0.0/8)
  5. Link-local IPv4: 169.254/16
  6. Carrier-grade NAT: 100.64/10
  7. Private / local IPv6: fc00::/7, fe80::/10
  8. Internal DNS suffixes: .local .internal .private .localhost .corp .home .lan
  9. Cloud metadata: ``metadata.<aws|google|azure|do>.`` names, 169.254.169.254
 10. Sensitive ports (explicit, non-default): see ``SENSITIVE_PORTS``
 11. Sensitive paths: .well-known/webfinger, .well-known/host-meta, /.discovery

Numeric hostnames (rules 3-7, 9) are parsed into ``ipaddress`` objects, so
alternate spellings like ``0x7f000001`` or ``127.1`` cannot slip through.

Every policy denial returns the same generic message. The specific rule is
logged for operators but never returned, so a client cannot learn which rule
it tripped.

The guard does no network I/O and holds no shared mutable state.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import unquote

import httpx

from routewatch.models.verdict import SecurityVerdict
from routewatch.security.addresses import (
    InvalidNumericHost,
    classify_address,
    parse_numeric_host,
)
from routewatch.security.definitions import (
    ALLOWED_SCHEMES,
    HOSTNAME_PATTERNS,
    LOOPBACK_HOSTNAMES,
    PATH_PATTERNS,
    RULE_DISALLOWED_SCHEME,
    RULE_LOOPBACK,
    RULE_SENSITIVE_PORT,
    SENSITIVE_PORTS,
)
from routewatch.utils.logger import get_logger

logger = get_logger(__name__)


# ─── CandidateURL ─────────────────────────────────────────────────────────────


class InvalidCandidateURL(ValueError):
    """Raised by ``parse_candidate_url()`` when input is not an absolute URL."""


@dataclass(frozen=True)
class CandidateURL:
    """The parts of a user-supplied URL the guard evaluates.

    ``hostname`` is lowercase ASCII (IDNA-encoded), IPv6 literals are unbracketed,
    and a single trailing dot is removed. ``port`` is None when absent or equal
    to the scheme's default port. ``path`` is percent-decoded.
    """

    scheme: str
    hostname: str
    port: Optional[int]
    path: str
    query: str


def parse_candidate_url(raw: str) -> CandidateURL:
    """Parse ``raw`` into a CandidateURL.

    Raises:
        InvalidCandidateURL: unparsable input, or no scheme / host.
    """
    try:
        url = httpx.URL(raw)
        hostname = url.raw_host.decode("ascii")
    except (httpx.InvalidURL, ValueError) as exc:
        raise InvalidCandidateURL(str(exc) or type(exc).__name__) from exc

    if not url.scheme:
        raise InvalidCandidateURL("URL must be absolute (missing scheme)")
    if not hostname:
        raise InvalidCandidateURL("URL has no host")

    # Resolvers see the percent-decoded host
    hostname = unquote(hostname).lower()
    if hostname.endswith(".") and len(hostname) > 1:
        hostname = hostname[:-1]

    return CandidateURL(
        scheme=url.scheme,
        hostname=hostname,
        port=url.port,
        path=url.path,
        query=url.query.decode("ascii", errors="replace"),
    )


# ─── Rule evaluation ──────────────────────────────────────────────────────────


def _host_rule(hostname: str) -> Optional[str]:
    """Return the rule ID that blocks ``hostname``, or None.

    Raises:
        InvalidNumericHost: numeric hostname with an out-of-range value.
    """
    if hostname in LOOPBACK_HOSTNAMES:
        return RULE_LOOPBACK

    address = parse_numeric_host(hostname)
    if address is not None:
        return classify_address(address)

    for entry in HOSTNAME_PATTERNS:
        if entry.pattern.search(hostname):
            return entry.rule_id
    return None


def evaluate_candidate(candidate: CandidateURL) -> SecurityVerdict:
    """Apply every guard rule to an already-parsed URL."""
    if candidate.scheme not in ALLOWED_SCHEMES:
        return SecurityVerdict.deny(RULE_DISALLOWED_SCHEME)

    try:
        rule_id = _host_rule(candidate.hostname)
    except InvalidNumericHost as exc:
        return SecurityVerdict.malformed(str(exc))
    if rule_id is not None:
        return SecurityVerdict.deny(rule_id)

    if candidate.port is not None and candidate.port in SENSITIVE_PORTS:
        return SecurityVerdict.deny(RULE_SENSITIVE_PORT)

    for entry in PATH_PATTERNS:
        if entry.pattern.search(candidate.path):
            return SecurityVerdict.deny(entry.rule_id)

    return SecurityVerdict.allow()


def validate_url_security(url: str) -> SecurityVerdict:
    """Decide whether ``url`` may be fetched by the server.

    Never raises. Unparsable input yields ``"Invalid URL: <detail>"``; every other
    denial yields ``DENIED_MESSAGE``.

    Args:
        url: Candidate target URL, as supplied by the user.

    Returns:
        SecurityVerdict — ``is_valid`` True if no rule matched.
    """
    try:
        candidate = parse_candidate_url(url)
    except InvalidCandidateURL as exc:
        verdict = SecurityVerdict.malformed(str(exc))
        logger.info("outbound_request_denied", rule_id=verdict.rule_id, reason=verdict.reason)
        return verdict

    verdict = evaluate_candidate(candidate)
    if not verdict.is_valid:
        logger.info(
            "outbound_request_denied",
            rule_id=verdict.rule_id,
            host=candidate.hostname,
            port=candidate.port,
        )
    return verdict


def check_resolved_addresses(hostname: str, addresses: Iterable[str]) -> SecurityVerdict:
    """Validate the addresses a hostname resolved to.

    Used only when ``security.resolve_hostnames`` is enabled. Every address must
    be fetchable; an unparsable or empty result denies.

    This narrows but does not close the DNS-rebinding window: the HTTP client
    resolves again when it connects.
    """
    seen = False
    for raw in addresses:
        seen = True
        try:
            address = ipaddress.ip_address(raw.split("%", 1)[0])
        except ValueError:
            return SecurityVerdict.deny("UNPARSABLE_RESOLVED_ADDRESS")
        rule_id = classify_address(address)
        if rule_id is not None:
            logger.info(
                "outbound_request_denied",
                rule_id=rule_id,
                host=hostname,
                resolved=str(address),
            )
            return SecurityVerdict.deny(rule_id)
    if not seen:
        return SecurityVerdict.deny("UNRESOLVED_HOST")
    return SecurityVerdict.allow()
