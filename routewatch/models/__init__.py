"""RouteWatch models package.

Shared data contracts used across the guard, executor, store and API:

  - verdict.py   — SecurityVerdict (URL guard result)
  - route.py     — Route, CheckLog
  - responses.py — Response builders for 403 denial, 502 unreachable target, JSON errors
"""
