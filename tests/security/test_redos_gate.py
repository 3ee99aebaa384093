"""ReDoS Audit Gate — CI Required Step.

Re2 uses linear-time finite automata. Patterns rejected by re2.compile()
would have exponential worst-case runtime under Python's stdlib ``re`` engine.
Every textual URL guard rule is evaluated against attacker-controlled hosts
and paths, so each one must be a compiled re2 pattern.
"""

from __future__ import annotations

import pytest
import re2

from routewatch.security.definitions import (
    ALL_PATTERNS,
    HOSTNAME_PATTERNS,
    PATH_PATTERNS,
    GuardPattern,
)

_Re2PatternType = type(re2.compile(r"test"))

ALL_GROUPS: dict[str, tuple[GuardPattern, ...]] = {
    "HOSTNAME_PATTERNS": HOSTNAME_PATTERNS,
    "PATH_PATTERNS": PATH_PATTERNS,
}


@pytest.mark.parametrize(
    "group_name,entry",
    [(group_name, entry) for group_name, entries in ALL_GROUPS.items() for entry in entries],
    ids=[
        f"{group_name}::{entry.rule_id}::{entry.slug}"
        for group_name, entries in ALL_GROUPS.items()
        for entry in entries
    ],
)
def test_pattern_is_re2_safe(group_name: str, entry: GuardPattern) -> None:
    """Each pattern was compiled by re2 at module load and can execute a search."""
    assert isinstance(entry.pattern, _Re2PatternType), (
        f"[{group_name}] Pattern for {entry.rule_id!r} (slug={entry.slug!r}) "
        f"is not a compiled re2 pattern — got {type(entry.pattern)}."
    )
    try:
        entry.pattern.search("api.example.com/v1/health")
    except re2.error as e:
        pytest.fail(f"[{group_name}] Pattern for {entry.rule_id!r} raises re2.error on search: {e}")


def test_all_patterns_is_union_of_groups() -> None:
    assert ALL_PATTERNS == HOSTNAME_PATTERNS + PATH_PATTERNS
    assert len(ALL_PATTERNS) >= 4


def test_slugs_are_unique() -> None:
    slugs = [entry.slug for entry in ALL_PATTERNS]
    assert len(slugs) == len(set(slugs))


def test_long_hostile_host_evaluates_linearly() -> None:
    """A pathological host string is matched without backtracking blow-up."""
    hostile = "a." * 20_000 + "metadata." * 5_000 + "x"
    for entry in ALL_PATTERNS:
        entry.pattern.search(hostile)
