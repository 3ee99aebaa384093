"""Programmatic uvicorn entry point for RouteWatch.

Reads host and port from the loaded config (127.0.0.1:4343 by default) and starts
uvicorn with hardened connection limits.

Usage:
    python -m routewatch.run   # reads .routewatch/config.yaml
    routewatch                 # via pyproject.toml [project.scripts]

Binding server.host: "0.0.0.0" is allowed but logs a SECURITY WARNING at startup
(see routewatch/config.py:load_config).
"""

from __future__ import annotations

import uvicorn

from routewatch.config import load_config
from routewatch.constants import POOL_MAX_CONNECTIONS

# New connections receive HTTP 503 above this limit. Matches the check client pool.
UVICORN_LIMIT_CONCURRENCY: int = POOL_MAX_CONNECTIONS

# OS-level TCP connection backlog queue size.
UVICORN_BACKLOG: int = 50

# HTTP keep-alive timeout in seconds. Low value reduces the Slow Loris window.
UVICORN_TIMEOUT_KEEP_ALIVE: int = 5


def main() -> None:
    """Start the RouteWatch server.

    Raises:
        SystemExit: Propagated from load_config() on config errors.
    """
    config = load_config()

    uvicorn.run(
        "routewatch.main:app",
        host=config.server.host,
        port=config.server.port,
        limit_concurrency=UVICORN_LIMIT_CONCURRENCY,
        backlog=UVICORN_BACKLOG,
        timeout_keep_alive=UVICORN_TIMEOUT_KEEP_ALIVE,
    )


if __name__ == "__main__":
    main()
