"""RouteWatch outbound-request security.

Public API:
    validate_url_security    — URL guard (SSRF protection), returns SecurityVerdict
    filter_sensitive_headers — strips forbidden headers from a header mapping
    is_forbidden_header      — single-name check against the forbidden table
    check_resolved_addresses — optional post-DNS address check
"""

from routewatch.security.headers import filter_sensitive_headers, is_forbidden_header
from routewatch.security.url_guard import check_resolved_addresses, validate_url_security

__all__ = [
    "validate_url_security",
    "filter_sensitive_headers",
    "is_forbidden_header",
    "check_resolved_addresses",
]
