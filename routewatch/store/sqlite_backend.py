"""LocalSQLiteStore — aiosqlite-based async route store.

Uses aiosqlite EXCLUSIVELY. The stdlib sqlite3 synchronous module is
PROHIBITED in routewatch/store/ (grep gate in tests/security/test_lint_gates.py).

Features:
  - WAL mode: PRAGMA journal_mode=WAL (concurrent reads while writing)
  - Schema version guard: PRAGMA user_version=1 — RuntimeError on mismatch, refuse startup
  - Foreign keys ON: deleting a route cascades to its request logs
  - Long-lived connection: opened in initialize(), closed in close()
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Optional

import aiosqlite

from routewatch.constants import METRICS_LOG_WINDOW
from routewatch.models.route import CheckLog, Route
from routewatch.utils.logger import get_logger

logger = get_logger(__name__)

# ─── Schema DDL ───────────────────────────────────────────────────────────────

_CREATE_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS routes (
    id                      TEXT PRIMARY KEY,
    name                    TEXT NOT NULL,
    description             TEXT,
    url                     TEXT NOT NULL,
    method                  TEXT NOT NULL,
    request_headers         TEXT NOT NULL DEFAULT '{}',
    request_body            TEXT,
    content_type            TEXT,
    expected_status_code    INTEGER,
    response_time_threshold INTEGER,
    monitoring_interval     INTEGER NOT NULL DEFAULT 5,
    retries                 INTEGER NOT NULL DEFAULT 0,
    alert_email             TEXT,
    is_active               INTEGER NOT NULL DEFAULT 1,
    created_at              TEXT NOT NULL,
    updated_at              TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS request_logs (
    id               TEXT PRIMARY KEY,
    route_id         TEXT NOT NULL REFERENCES routes(id) ON DELETE CASCADE,
    status_code      INTEGER,
    response_time_ms INTEGER,
    is_success       INTEGER NOT NULL,
    error            TEXT,
    created_at       TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_request_logs_route_created
    ON request_logs(route_id, created_at DESC);
"""

_SCHEMA_VERSION = 1


# ─── Row deserialisers ────────────────────────────────────────────────────────


def _row_to_route(row: aiosqlite.Row) -> Route:
    return Route(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        url=row["url"],
        method=row["method"],
        request_headers=json.loads(row["request_headers"] or "{}"),
        request_body=row["request_body"],
        content_type=row["content_type"],
        expected_status_code=row["expected_status_code"],
        response_time_threshold=row["response_time_threshold"],
        monitoring_interval=row["monitoring_interval"],
        retries=row["retries"],
        alert_email=row["alert_email"],
        is_active=bool(row["is_active"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _row_to_check_log(row: aiosqlite.Row) -> CheckLog:
    return CheckLog(
        id=row["id"],
        route_id=row["route_id"],
        is_success=bool(row["is_success"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        status_code=row["status_code"],
        response_time_ms=row["response_time_ms"],
        error=row["error"],
    )


# ─── LocalSQLiteStore ─────────────────────────────────────────────────────────


class LocalSQLiteStore:
    """Async SQLite route store using aiosqlite exclusively.

    Default path: ~/.routewatch/routewatch.db
    Override via: store.path in config or ROUTEWATCH_DB_PATH.
    Or pass db_path explicitly (used in tests).

    Usage:
        store = LocalSQLiteStore(db_path)
        await store.initialize()   # raises RuntimeError on schema version mismatch
        route = await store.create_route(route)
        await store.record_check(log)
        await store.close()
    """

    def __init__(self, db_path: str = "~/.routewatch/routewatch.db") -> None:
        self._db_path: str = os.path.expanduser(db_path)
        self._db: Optional[aiosqlite.Connection] = None

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def initialize(self) -> None:
        """Open the connection, enable WAL and foreign keys, create/verify schema.

        PRAGMA user_version:
          - 0: fresh DB → create schema, set user_version=1
          - 1: compatible schema → no-op
          - other: RuntimeError (the lifespan refuses startup)
        """
        parent_dir = os.path.dirname(self._db_path)
        if parent_dir:
            os.makedirs(parent_dir, exist_ok=True)

        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row

        await self._db.execute("PRAGMA journal_mode=WAL;")
        await self._db.execute("PRAGMA foreign_keys=ON;")

        cursor = await self._db.execute("PRAGMA user_version;")
        row = await cursor.fetchone()
        current_version: int = row[0] if row else 0

        if current_version == 0:
            await self._db.executescript(_CREATE_SCHEMA_SQL)
            # executescript may not honour PRAGMA in all SQLite builds
            await self._db.execute(f"PRAGMA user_version = {_SCHEMA_VERSION};")
            await self._db.commit()
            logger.info(
                "route_store_schema_created",
                db_path=self._db_path,
                schema_version=_SCHEMA_VERSION,
            )
        elif current_version == _SCHEMA_VERSION:
            logger.info(
                "route_store_schema_ok",
                db_path=self._db_path,
                schema_version=current_version,
            )
        else:
            await self._db.close()
            self._db = None
            raise RuntimeError(
                f"Unsupported route store schema version: {current_version}. "
                f"Delete {self._db_path} to reset."
            )

    async def close(self) -> None:
        """Close the aiosqlite connection gracefully."""
        if self._db is not None:
            await self._db.close()
            self._db = None
            logger.debug("route_store_closed", db_path=self._db_path)

    # ── Routes ────────────────────────────────────────────────────────────────

    async def create_route(self, route: Route) -> Route:
        assert self._db is not None, "Database not initialized — call initialize() first"
        now = datetime.now(timezone.utc)
        route.created_at = route.created_at or now
        route.updated_at = now
        await self._db.execute(
            """INSERT INTO routes
               (id, name, description, url, method, request_headers, request_body,
                content_type, expected_status_code, response_time_threshold, monitoring_interval,
                retries, alert_email, is_active, created_at, updated_at)
               VALUES (?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?)""",
            (
                route.id,
                route.name,
                route.description,
                route.url,
                route.method,
                json.dumps(route.request_headers),
                route.request_body,
                route.content_type,
                route.expected_status_code,
                route.response_time_threshold,
                route.monitoring_interval,
                route.retries,
                route.alert_email,
                int(route.is_active),
                route.created_at.isoformat(),
                route.updated_at.isoformat(),
            ),
        )
        await self._db.commit()
        logger.info("route_created", route_id=route.id)
        return route

    async def get_route(self, route_id: str) -> Optional[Route]:
        assert self._db is not None, "Database not initialized"
        cursor = await self._db.execute("SELECT * FROM routes WHERE id = ?", (route_id,))
        row = await cursor.fetchone()
        return _row_to_route(row) if row else None

    async def list_routes(self) -> list[Route]:
        assert self._db is not None, "Database not initialized"
        cursor = await self._db.execute("SELECT * FROM routes ORDER BY created_at, id")
        rows = await cursor.fetchall()
        return [_row_to_route(row) for row in rows]

    async def delete_route(self, route_id: str) -> bool:
        assert self._db is not None, "Database not initialized"
        cursor = await self._db.execute("DELETE FROM routes WHERE id = ?", (route_id,))
        await self._db.commit()
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("route_deleted", route_id=route_id)
        return deleted

    # ── Check logs ────────────────────────────────────────────────────────────

    async def record_check(self, log: CheckLog) -> None:
        assert self._db is not None, "Database not initialized"
        await self._db.execute(
            """INSERT INTO request_logs
               (id, route_id, status_code, response_time_ms, is_success, error, created_at)
               VALUES (?,?,?,?,?,?,?)""",
            (
                log.id,
                log.route_id,
                log.status_code,
                log.response_time_ms,
                int(log.is_success),
                log.error,
                log.created_at.isoformat(),
            ),
        )
        await self._db.commit()

    async def recent_checks(self, route_id: str, limit: int = METRICS_LOG_WINDOW) -> list[CheckLog]:
        assert self._db is not None, "Database not initialized"
        cursor = await self._db.execute(
            """SELECT * FROM request_logs WHERE route_id = ?
               ORDER BY created_at DESC, id DESC LIMIT ?""",
            (route_id, limit),
        )
        rows = await cursor.fetchall()
        return [_row_to_check_log(row) for row in rows]

    async def health_check(self) -> bool:
        """Returns True if the DB connection is alive and queryable."""
        try:
            assert self._db is not None
            await self._db.execute("SELECT 1")
            return True
        except Exception:
            return False
