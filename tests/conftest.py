"""Root test configuration for RouteWatch.

Keeps every test away from the developer's real config and database: the
default config search path is emptied and ROUTEWATCH_DB_PATH points
into the per-test tmp_path.
"""

import pytest


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Strip RouteWatch env overrides and disable config file discovery."""
    for name in ("ROUTEWATCH_CONFIG", "ROUTEWATCH_PORT", "ROUTEWATCH_DB_PATH"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("routewatch.config.DEFAULT_CONFIG_PATHS", [])
    monkeypatch.setenv("ROUTEWATCH_DB_PATH", str(tmp_path / "routewatch.db"))
