"""RouteWatch outbound checks.

  - executor.py — prepare / execute a guarded check, classify its result
  - metrics.py  — uptime and status summaries over recent check logs
"""
