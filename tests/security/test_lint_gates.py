"""CI lint gates — grep-based import restrictions.

  - routewatch/security/ never imports stdlib ``re`` (all patterns are re2)
  - routewatch/store/ never imports blocking ``sqlite3`` (aiosqlite only)
  - check execution never enables httpx's automatic redirect following
  - guard and executor code never relies on ``assert`` (stripped under -O)
"""

from __future__ import annotations

import pathlib
import subprocess

PROJECT_ROOT = pathlib.Path(__file__).parent.parent.parent


def _grep(pattern: str, path: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        ["grep", "-rnE", pattern, path],
        capture_output=True,
        text=True,
        cwd=str(PROJECT_ROOT),
    )


def test_no_bare_import_re_in_security_modules() -> None:
    result = _grep(r"^import re$|^from re import|^import re ", "routewatch/security/")
    assert result.returncode != 0, (
        f"LINT GATE FAILURE: bare 'import re' found in routewatch/security/:\n{result.stdout}"
    )


def test_no_sqlite3_in_store_modules() -> None:
    result = _grep(r"^import sqlite3|^from sqlite3 import", "routewatch/store/")
    assert result.returncode != 0, (
        f"LINT GATE FAILURE: blocking sqlite3 import found in routewatch/store/:\n{result.stdout}"
    )


def test_no_automatic_redirect_following() -> None:
    result = _grep(r"follow_redirects\s*=\s*True", "routewatch/")
    assert result.returncode != 0, (
        f"LINT GATE FAILURE: automatic redirects bypass the per-hop URL guard:\n{result.stdout}"
    )


def test_no_assert_in_guard_or_executor() -> None:
    for path in ("routewatch/security/", "routewatch/checks/"):
        result = _grep(r"^\s*assert ", path)
        assert result.returncode != 0, (
            f"LINT GATE FAILURE: assert found in {path} (removed under python -O):\n{result.stdout}"
        )
