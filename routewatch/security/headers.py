"""Header sanitization for outbound checks.

User-supplied route headers are filtered twice:

  - ingress: when a route is saved, so forbidden headers are never stored.
  - egress:  before every check, so the request sent to the target never
    carries credentials, client identity, or provider-internal headers.

Both use ``filter_sensitive_headers()``; applying it twice is a no-op.

Matching rules:
  - Header names are case-folded before comparison.
  - A rule ending in ``-`` is a prefix rule (``startswith``).
  - Every other rule matches the full name only (``x-trace`` blocks ``X-Trace``
    but not ``X-Trace-Id``).

FORBIDDEN_HEADERS is a versioned constant. Do not loosen or "improve" entries
silently — changes alter what stored routes send.
"""

from __future__ import annotations

from typing import Mapping

# ─── Constants ────────────────────────────────────────────────────────────────

FORBIDDEN_HEADERS_VERSION: int = 1

FORBIDDEN_HEADERS: tuple[str, ...] = (
    # Authentication headers
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
    "x-csrf-token",

    # Browser-specific authentication
    "www-authenticate",
    "proxy-authenticate",

    # Tracking/identity headers
    "x-forwarded-for",
    "x-real-ip",
    "forwarded",
    "x-forwarded-host",
    "x-forwarded-proto",
    "x-forwarded-ssl",
    "x-correlation-id",
    "fastly-client-ip",
    "true-client-ip",

    # Security policy headers
    "sec-",
    "proxy-",
    "cf-",
    "x-csrf",
    "x-xsrf",
    "strict-transport-security",
    "content-security-policy",
    "x-content-security-policy",
    "x-webkit-csp",

    # Internal/provider secret headers
    "x-api-key",
    "x-internal",
    "x-secret",
    "x-amz-security-token",
    "api-key",
    "x-functions-key",
    "x-goog-authenticated-user-email",
    "x-aws-",
    "x-amz-",
    "x-azure-",
    "x-gcp-",
    "x-heroku-",
    "x-vercel-",

    # Debug and instrumentation headers
    "x-debug",
    "x-runtime",
    "x-request-id",
    "x-trace",
)

_FORBIDDEN_EXACT: frozenset[str] = frozenset(
    rule for rule in FORBIDDEN_HEADERS if not rule.endswith("-")
)
_FORBIDDEN_PREFIXES: tuple[str, ...] = tuple(
    rule for rule in FORBIDDEN_HEADERS if rule.endswith("-")
)


# ─── Public API ───────────────────────────────────────────────────────────────


def is_forbidden_header(name: str) -> bool:
    """Return True if ``name`` matches any forbidden rule (case-insensitive)."""
    lower_name = name.lower()
    return lower_name in _FORBIDDEN_EXACT or lower_name.startswith(_FORBIDDEN_PREFIXES)


def filter_sensitive_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of ``headers`` without forbidden entries.

    Surviving entries keep their original name casing, value and order.
    Values are copied untouched; coercing them to strings is the caller's job.

    Args:
        headers: User-supplied header mapping (any casing, may be empty).

    Returns:
        ``dict[str, str]`` — a new dict; the input is never mutated.
    """
    filtered: dict[str, str] = {}
    for name, value in headers.items():
        if is_forbidden_header(name):
            continue
        filtered[name] = value
    return filtered
