"""Route store factory — creates and initializes the configured store.

The only backend is LocalSQLiteStore. Its path comes from ``config.store.path``
(already overridden by ROUTEWATCH_DB_PATH in load_config()).

PRAGMA version guard:
  LocalSQLiteStore.initialize() raises RuntimeError if PRAGMA user_version is
  not 0 (fresh) or 1 (expected). The FastAPI lifespan propagates it to refuse
  startup.
"""

from __future__ import annotations

from routewatch.config import Config
from routewatch.store.protocol import RouteStore
from routewatch.store.sqlite_backend import LocalSQLiteStore
from routewatch.utils.logger import get_logger

logger = get_logger(__name__)


async def create_route_store(config: Config) -> RouteStore:
    """Create and initialize the route store.

    Raises:
        RuntimeError: incompatible schema version (startup refused).
    """
    store = LocalSQLiteStore(db_path=config.store.path)
    await store.initialize()
    logger.info("route_store_selected", backend="LocalSQLiteStore", db_path=config.store.path)
    return store
