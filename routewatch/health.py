"""Health endpoint for RouteWatch.

GET /health — 503 before ``app.state.ready`` is set by the lifespan, 200 after.
"""

from __future__ import annotations

import os
from typing import Any

from fastapi import APIRouter, HTTPException, Request

from routewatch.config import Config
from routewatch.constants import POOL_MAX_CONNECTIONS
from routewatch.store.protocol import RouteStore

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    """Primary health check endpoint.

    Response body (200):
        {
          "status": "ok" | "degraded",
          "store": "healthy" | "error",
          "store_path": "/path/to/routewatch.db",
          "connection_pool_size": 100,
          "resolve_hostnames": false
        }
    """
    if not getattr(request.app.state, "ready", False):
        raise HTTPException(status_code=503, detail="RouteWatch is starting up")

    config: Config = request.app.state.config
    store: RouteStore = request.app.state.route_store
    store_ok = await store.health_check()

    return {
        "status": "ok" if store_ok else "degraded",
        "store": "healthy" if store_ok else "error",
        "store_path": os.path.expanduser(config.store.path),
        "connection_pool_size": POOL_MAX_CONNECTIONS,
        "resolve_hostnames": config.security.resolve_hostnames,
    }
