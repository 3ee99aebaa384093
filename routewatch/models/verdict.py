"""SecurityVerdict — the outcome of a single URL guard evaluation.

The verdict is the only thing the guard returns; it never raises. A verdict is
immutable once produced, and ``reason`` is populated if and only if the URL was
denied.

Wire shape (``to_dict()``)::

    {"isValid": true}
    {"isValid": false, "error": "Access denied for security reasons: ..."}

``rule_id`` records which guard rule tripped. It is INTERNAL ONLY: it goes to
structured logs for operators and is never serialised to callers, so a client
cannot enumerate which specific rule matched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

# Generic denial message for every policy match. Deliberately non-specific.
DENIED_MESSAGE: str = "Access denied for security reasons: cannot use local or private URLs"

# Prefix for parse failures: the only denial that surfaces parser detail.
INVALID_URL_PREFIX: str = "Invalid URL: "


@dataclass(frozen=True)
class SecurityVerdict:
    """Result of ``validate_url_security()``.

    Fields:
        is_valid: True when the URL may be fetched.
        reason:   Human-readable denial reason. None iff ``is_valid``.
        rule_id:  Guard rule that denied the URL (e.g. ``"PRIVATE_NETWORK"``).
                  Internal only — excluded from ``to_dict()``.
    """

    is_valid: bool
    reason: Optional[str] = None
    rule_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.is_valid and self.reason is not None:
            raise ValueError("an approving verdict must not carry a reason")
        if not self.is_valid and not self.reason:
            raise ValueError("a denying verdict must carry a reason")

    @classmethod
    def allow(cls) -> "SecurityVerdict":
        return cls(is_valid=True)

    @classmethod
    def deny(cls, rule_id: str, reason: str = DENIED_MESSAGE) -> "SecurityVerdict":
        return cls(is_valid=False, reason=reason, rule_id=rule_id)

    @classmethod
    def malformed(cls, detail: str) -> "SecurityVerdict":
        """Denial for input that does not parse as an absolute URL."""
        return cls(
            is_valid=False,
            reason=f"{INVALID_URL_PREFIX}{detail or 'Unknown error'}",
            rule_id="MALFORMED_URL",
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the external ``{"isValid", "error"?}`` shape."""
        if self.is_valid:
            return {"isValid": True}
        return {"isValid": False, "error": self.reason}
