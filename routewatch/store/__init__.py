"""RouteWatch route store."""

from routewatch.store.factory import create_route_store
from routewatch.store.protocol import RouteStore
from routewatch.store.sqlite_backend import LocalSQLiteStore

__all__ = ["RouteStore", "LocalSQLiteStore", "create_route_store"]
