"""RouteStore Protocol — the persistence interface for routes and check logs.

Route and CheckLog are defined in routewatch/models/route.py.

Layout:
    protocol.py      — RouteStore Protocol
    sqlite_backend.py — LocalSQLiteStore (aiosqlite)
    factory.py       — create_route_store()
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from routewatch.constants import METRICS_LOG_WINDOW
from routewatch.models.route import CheckLog, Route


@runtime_checkable
class RouteStore(Protocol):
    """Pluggable route store interface.

    Implementations: LocalSQLiteStore (default).
    Selection via create_route_store() factory (store/factory.py).

    Deleting a route deletes its check logs.
    """

    async def create_route(self, route: Route) -> Route:
        """Persist a new route. Returns it with ``created_at``/``updated_at`` set."""
        ...

    async def get_route(self, route_id: str) -> Optional[Route]:
        ...

    async def list_routes(self) -> list[Route]:
        """All routes, oldest first."""
        ...

    async def delete_route(self, route_id: str) -> bool:
        """Delete a route and its logs. Returns False if it did not exist."""
        ...

    async def record_check(self, log: CheckLog) -> None:
        ...

    async def recent_checks(self, route_id: str, limit: int = METRICS_LOG_WINDOW) -> list[CheckLog]:
        """Most recent check logs for a route, newest first."""
        ...

    async def health_check(self) -> bool:
        """Returns True if the store is operational. Must not raise."""
        ...

    async def close(self) -> None:
        """Clean up connections and resources. Called during graceful shutdown."""
        ...
