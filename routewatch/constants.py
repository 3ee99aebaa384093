"""Shared constants for RouteWatch.

All size limits, timeouts and numeric caps used across modules are defined here.
No magic numbers in other modules — import from here.
"""

# ─── Request Size Limits ─────────────────────────────────────────────────────

# Maximum allowed inbound API request body size.
# HTTP 413 is returned for bodies exceeding this limit, before any route handler
# runs (BodySizeLimitMiddleware).
MAX_REQUEST_BODY_BYTES: int = 1_048_576  # 1 MiB

# Maximum serialized body a check may send to its target.
# Enforced by the check executor before the guard-approved request is built.
MAX_CHECK_BODY_BYTES: int = 1_048_576  # 1 MiB

# ─── Outbound Check Defaults ─────────────────────────────────────────────────

# Total timeout for a single outbound check (seconds).
CHECK_TIMEOUT_S: float = 30.0

# Redirect hops followed per check. Every hop is re-validated by the URL guard.
MAX_REDIRECTS: int = 5

# Shared httpx pool sizing for outbound checks.
POOL_MAX_CONNECTIONS: int = 100
POOL_MAX_KEEPALIVE: int = 20
POOL_KEEPALIVE_EXPIRY_S: float = 30.0

# Some targets refuse non-browser agents; checks present a browser-like UA.
DEFAULT_USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
)

DEFAULT_CONTENT_TYPE: str = "application/json"

# ─── Metrics ─────────────────────────────────────────────────────────────────

# Number of most-recent check logs used to compute uptime / status.
METRICS_LOG_WINDOW: int = 100

# Number of most-recent checks inspected for "recent issues".
METRICS_RECENT_WINDOW: int = 5

# Uptime thresholds (percent) for the up / degraded / down classification.
UPTIME_UP_PCT: float = 98.0
UPTIME_WATCH_PCT: float = 90.0
UPTIME_DEGRADED_PCT: float = 75.0

# ─── Route Defaults ──────────────────────────────────────────────────────────

DEFAULT_EXPECTED_STATUS: int = 200
DEFAULT_MONITORING_INTERVAL: int = 5
