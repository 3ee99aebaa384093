"""ULID generation utility for RouteWatch.

Provides a single `generate_ulid()` function that returns a 26-character ULID
used as:
  - route IDs and check-log IDs in the route store
  - ``check_id`` in structured log entries and the ``X-RouteWatch-Check-ID``
    response header

ULIDs sort by creation time, so ``ORDER BY id`` on request logs is also
chronological.

Uses the `python-ulid` library — do NOT hand-roll ULID generation.
"""

from __future__ import annotations

from ulid import ULID


def generate_ulid() -> str:
    """Generate a new ULID as a 26-character uppercase string.

    Returns:
        str: Crockford Base32 string, charset ``[0-9A-HJKMNP-TV-Z]``, exactly 26 chars.

    Example::

        check_id = generate_ulid()
        # "01KJ0JRVHYA7KX32VPN5ZSCTMV"
        assert len(check_id) == 26
    """
    return str(ULID())
