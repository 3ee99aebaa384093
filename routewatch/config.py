"""Config loading for RouteWatch.

Reads `.routewatch/config.yaml` (or `~/.routewatch/config.yaml`).
Raises SystemExit on parse errors, missing `version` field or invalid values.
If no config file is found, returns default values (safe to run without config).

Config search order:
  1. `config_path` argument (if provided — for testing or explicit override)
  2. ROUTEWATCH_CONFIG environment variable (if set)
  3. `.routewatch/config.yaml` (working directory — for development)
  4. `~/.routewatch/config.yaml` (home directory — for production deployments)

Environment variable overrides:
  ROUTEWATCH_PORT    — overrides server.port
  ROUTEWATCH_DB_PATH — overrides store.path
  ROUTEWATCH_CONFIG  — sets an explicit config file path to try first

The URL guard and header sanitizer rule tables are NOT configurable. The only
security knob is `security.resolve_hostnames` (off by default).
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Any, NoReturn, Optional

import yaml

from routewatch.constants import (
    CHECK_TIMEOUT_S,
    DEFAULT_USER_AGENT,
    MAX_CHECK_BODY_BYTES,
    MAX_REDIRECTS,
)
from routewatch.utils.logger import get_logger

logger = get_logger(__name__)

# ─── Version constants ────────────────────────────────────────────────────────

SUPPORTED_CONFIG_VERSION = 1

SUPPORTED_VERSIONS: frozenset[int] = frozenset({1})

DEFAULT_CONFIG_PATHS = [
    ".routewatch/config.yaml",
    os.path.expanduser("~/.routewatch/config.yaml"),
]

DEFAULT_DB_PATH = "~/.routewatch/routewatch.db"


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass
class ServerConfig:
    """HTTP binding configuration."""

    host: str = "127.0.0.1"
    port: int = 4343


@dataclass
class StoreConfig:
    """Route store configuration."""

    path: str = DEFAULT_DB_PATH


@dataclass
class ChecksConfig:
    """Outbound check executor settings."""

    timeout_s: float = CHECK_TIMEOUT_S
    max_redirects: int = MAX_REDIRECTS
    max_body_bytes: int = MAX_CHECK_BODY_BYTES
    user_agent: str = DEFAULT_USER_AGENT


@dataclass
class SecurityConfig:
    """Outbound guard options.

    resolve_hostnames: when True, resolve each target hostname before the check
                       and deny if any resolved address is non-public. This
                       narrows, but does not close, the DNS-rebinding window.
    """

    resolve_hostnames: bool = False


@dataclass
class Config:
    """Root configuration object populated from .routewatch/config.yaml.

    All fields have safe defaults — RouteWatch can start without any config file.
    """

    version: int = SUPPORTED_CONFIG_VERSION
    server: ServerConfig = field(default_factory=ServerConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    checks: ChecksConfig = field(default_factory=ChecksConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    path: Optional[str] = None  # Path to the loaded config file

    @classmethod
    def defaults(cls) -> "Config":
        """Return a fully-default Config (no file required)."""
        return cls()

    @classmethod
    def from_dict(cls, raw: dict, path: Optional[str] = None) -> "Config":
        """Construct Config from a parsed YAML dict.

        Merges user-supplied values onto defaults; unknown keys are silently ignored.

        Raises:
            SystemExit(1): On out-of-range checks.* values.
        """
        # ── Server ────────────────────────────────────────────────────────────
        server_raw = raw.get("server") or {}
        server = ServerConfig(
            host=server_raw.get("host", "127.0.0.1"),
            port=server_raw.get("port", 4343),
        )

        # ── Store ─────────────────────────────────────────────────────────────
        store_raw = raw.get("store") or {}
        store = StoreConfig(path=store_raw.get("path", DEFAULT_DB_PATH))

        # ── Checks ────────────────────────────────────────────────────────────
        checks_raw = raw.get("checks") or {}
        checks = ChecksConfig(
            timeout_s=checks_raw.get("timeout_s", CHECK_TIMEOUT_S),
            max_redirects=checks_raw.get("max_redirects", MAX_REDIRECTS),
            max_body_bytes=checks_raw.get("max_body_bytes", MAX_CHECK_BODY_BYTES),
            user_agent=checks_raw.get("user_agent", DEFAULT_USER_AGENT),
        )
        _validate_checks(checks, path)

        # ── Security ──────────────────────────────────────────────────────────
        security_raw = raw.get("security") or {}
        security = SecurityConfig(
            resolve_hostnames=bool(security_raw.get("resolve_hostnames", False)),
        )

        return cls(
            version=raw.get("version", SUPPORTED_CONFIG_VERSION),
            server=server,
            store=store,
            checks=checks,
            security=security,
            path=path,
        )


def _config_error(msg: str) -> NoReturn:
    print(f"CONFIG ERROR: {msg}", file=sys.stderr)
    raise SystemExit(1)


def _validate_checks(checks: ChecksConfig, path: Optional[str]) -> None:
    """Reject nonsensical executor settings at startup."""
    where = path or "config"
    if not isinstance(checks.timeout_s, (int, float)) or checks.timeout_s <= 0:
        _config_error(f"{where}: checks.timeout_s must be a positive number, got {checks.timeout_s!r}")
    if not isinstance(checks.max_redirects, int) or checks.max_redirects < 0:
        _config_error(f"{where}: checks.max_redirects must be >= 0, got {checks.max_redirects!r}")
    if not isinstance(checks.max_body_bytes, int) or checks.max_body_bytes <= 0:
        _config_error(f"{where}: checks.max_body_bytes must be > 0, got {checks.max_body_bytes!r}")


# ─── Config loading ───────────────────────────────────────────────────────────


def load_config(config_path: Optional[str] = None) -> Config:
    """Load and validate RouteWatch configuration.

    If no file is found at any search path, returns default Config (not an error).
    If a file is found but invalid, writes error to stderr and raises SystemExit(1).

    Env overrides (``ROUTEWATCH_PORT``, ``ROUTEWATCH_DB_PATH``) are applied after
    loading, whether or not a file was found.

    Raises:
        SystemExit(1): On YAML parse error, missing ``version`` field, unsupported
                       version, invalid ``checks.*`` values, or invalid
                       ``ROUTEWATCH_PORT``.
    """
    search_paths: list[str] = []
    if config_path:
        search_paths.append(config_path)
    env_config = os.environ.get("ROUTEWATCH_CONFIG")
    if env_config:
        search_paths.append(env_config)
    search_paths.extend(DEFAULT_CONFIG_PATHS)

    found_path: Optional[str] = None
    for candidate in search_paths:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            found_path = expanded
            break

    # ── No config file found ─────────────────────────────────────────────────
    if found_path is None:
        logger.info("No config file found — using defaults", searched=search_paths)
        config = Config.defaults()
        _apply_env_overrides(config)
        return config

    # ── Parse config file ─────────────────────────────────────────────────────
    logger.info("Loading config", path=found_path)

    raw: Any = None
    try:
        with open(found_path) as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        _config_error(
            f"Failed to parse {found_path}: {exc}\n"
            "RouteWatch refuses to start with an invalid config. "
            "Check the YAML syntax and try again."
        )
    except OSError as exc:
        _config_error(f"Could not read {found_path}: {exc}")

    if not isinstance(raw, dict):
        if raw is None:
            _config_error(
                f"{found_path} is missing the required 'version' field.\n"
                "Add 'version: 1' to the top of your config file."
            )
        _config_error(
            f"{found_path} is not a valid YAML mapping.\n"
            "The config file must be a YAML dictionary at the top level."
        )

    # ── Version validation ────────────────────────────────────────────────────
    version = raw.get("version")
    if version is None:
        _config_error(
            f"{found_path} is missing the required 'version' field.\n"
            "Add 'version: 1' to the top of your config file."
        )
    if version not in SUPPORTED_VERSIONS:
        _config_error(
            f"Unsupported config version: {version}. "
            f"Supported versions: {sorted(SUPPORTED_VERSIONS)}."
        )

    config = Config.from_dict(raw, path=found_path)
    _apply_env_overrides(config)

    # ── Security warnings ─────────────────────────────────────────────────────
    if config.server.host == "0.0.0.0":
        logger.warning(
            "SECURITY WARNING: RouteWatch is configured to bind on 0.0.0.0 (all interfaces). "
            "Anyone who can reach this port can make the server fetch URLs. "
            "Recommended: use server.host: '127.0.0.1' behind a reverse proxy."
        )

    logger.info(
        "Config loaded",
        path=found_path,
        version=config.version,
        resolve_hostnames=config.security.resolve_hostnames,
    )
    return config


def _apply_env_overrides(config: Config) -> None:
    """Apply environment variable overrides to a Config object in-place.

    Raises:
        SystemExit(1): If ROUTEWATCH_PORT is set but not a valid integer.
    """
    env_port = os.environ.get("ROUTEWATCH_PORT")
    if env_port is not None:
        try:
            config.server.port = int(env_port)
        except ValueError:
            _config_error(
                f"ROUTEWATCH_PORT environment variable is not a valid integer: '{env_port}'"
            )

    env_db_path = os.environ.get("ROUTEWATCH_DB_PATH")
    if env_db_path:
        config.store.path = env_db_path
