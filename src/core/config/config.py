"""
Static configuration management for the HomeLab bot.

Purpose
-------
Provide one resolved, immutable configuration object built from environment
variables (with `.env` support), sensible defaults, type validation and
bounds checking. The resulting `BotConfig` is passed explicitly into every
component at construction time.

Responsibilities
----------------
- Load configuration from environment variables with .env support
- Parse ints/floats/bools with bounds checking and safe fallbacks
- Group upstream credentials into per-service endpoint records
- Track which values came from the environment versus defaults
- Create required directories (logs, data)

Non-Responsibilities
--------------------
- Runtime settings mutated by admins (dashboard channel, enabled services,
  admin channel); those live in the state repository and are owned by the
  settings services
- Secrets management (use environment variables)

Architecture Notes
------------------
- `Config` is a stateless loader of class methods; `Config.from_env()` returns
  a frozen `BotConfig`
- Any mapping can stand in for the environment, which keeps tests hermetic
- Invalid values log a warning and fall back to the default instead of
  aborting startup; only a missing token is fatal, and only when the bot is
  actually started

Environment Variables
---------------------
Required:
- DISCORD_TOKEN: Bot authentication token

Optional (with defaults):
- COMMAND_PREFIX (";"), ENVIRONMENT ("development"), LOG_LEVEL ("INFO")
- STATE_BACKEND ("json" or "sql"), DATABASE_URL (sqlite+aiosqlite in DATA_DIR)
- DASHBOARD_REFRESH_INTERVAL (10), PRESENCE_REFRESH_INTERVAL (30),
  LIVE_UPDATE_INTERVAL (30), DASHBOARD_STARTUP_DELAY (5)
- ARR_CACHE_TTL (30), DOCKER_CACHE_TTL (15), MEDIA_CACHE_TTL (20),
  DOWNLOADS_CACHE_TTL (10), CLUSTER_CACHE_TTL (30)
- UPSTREAM_TIMEOUT (10), INVITE_EXPIRY_HOURS (24)

See `Config.from_env` for the complete list.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

# ============================================================================
# Enums and Constants
# ============================================================================

PROJECT_ROOT = Path(__file__).resolve().parents[3]


class Environment(Enum):
    """Deployment environment types."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """
        Parse environment string safely with fallback.

        Example
        -------
        >>> Environment.from_string("production") == Environment.PRODUCTION
        True
        >>> Environment.from_string("invalid") == Environment.DEVELOPMENT
        True
        """
        try:
            return cls(value.lower())
        except ValueError:
            logging.warning(f"Unknown environment '{value}', defaulting to development")
            return cls.DEVELOPMENT


class StateBackend(Enum):
    """Where persisted runtime state (pending invites, channel settings) lives."""

    JSON = "json"
    SQL = "sql"


# ============================================================================
# Resolved Configuration Objects
# ============================================================================


@dataclass(frozen=True, slots=True)
class ServiceEndpoint:
    """Connection details for one upstream service."""

    name: str
    url: str = ""
    api_key: str = ""
    username: str = ""
    password: str = ""

    @property
    def configured(self) -> bool:
        return bool(self.url)

    @property
    def base_url(self) -> str:
        return self.url.rstrip("/")


@dataclass(frozen=True, slots=True)
class CacheTTLs:
    """Per-integration cache lifetimes in seconds."""

    arr: float = 30.0
    docker: float = 15.0
    media: float = 20.0
    downloads: float = 10.0
    cluster: float = 30.0


@dataclass(frozen=True, slots=True)
class BotConfig:
    """Resolved configuration for one bot process."""

    discord_token: str = ""
    command_prefix: str = ";"
    environment: Environment = Environment.DEVELOPMENT
    log_level: str = "INFO"
    log_json: Optional[bool] = None
    logs_dir: Path = PROJECT_ROOT / "logs"
    data_dir: Path = PROJECT_ROOT / "data"
    services_file: Optional[Path] = None

    state_backend: StateBackend = StateBackend.JSON
    database_url: str = ""
    database_echo: bool = False

    dashboard_refresh_interval: float = 10.0
    presence_refresh_interval: float = 30.0
    live_update_interval: float = 30.0
    dashboard_startup_delay: float = 5.0
    cache_ttls: CacheTTLs = field(default_factory=CacheTTLs)
    upstream_timeout: float = 10.0
    invite_expiry_hours: int = 24

    seed_dashboard_channel_id: Optional[int] = None
    seed_admin_channel_id: Optional[int] = None
    presence_node: str = "pve"

    radarr: ServiceEndpoint = ServiceEndpoint("radarr")
    sonarr: ServiceEndpoint = ServiceEndpoint("sonarr")
    lidarr: ServiceEndpoint = ServiceEndpoint("lidarr")
    readarr: ServiceEndpoint = ServiceEndpoint("readarr")
    prowlarr: ServiceEndpoint = ServiceEndpoint("prowlarr")
    jellyfin: ServiceEndpoint = ServiceEndpoint("jellyfin")
    plex: ServiceEndpoint = ServiceEndpoint("plex")
    qbittorrent: ServiceEndpoint = ServiceEndpoint("qbittorrent")
    nzbget: ServiceEndpoint = ServiceEndpoint("nzbget")
    proxmox: ServiceEndpoint = ServiceEndpoint("proxmox")
    wizarr: ServiceEndpoint = ServiceEndpoint("wizarr")
    docker_socket_path: str = "/var/run/docker.sock"
    proxmox_verify_ssl: bool = False
    wizarr_plex_server_id: int = 2
    wizarr_jellyfin_server_id: int = 1
    wizarr_invite_days: int = 2

    @property
    def is_production(self) -> bool:
        return self.environment is Environment.PRODUCTION

    @property
    def invite_expiry_seconds(self) -> float:
        return float(self.invite_expiry_hours * 3600)

    @property
    def resolved_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite+aiosqlite:///{self.data_dir / 'homelab.db'}"

    def summary(self) -> Dict[str, Any]:
        """Non-sensitive configuration summary for startup logs."""
        endpoints = (
            self.radarr, self.sonarr, self.lidarr, self.readarr, self.prowlarr,
            self.jellyfin, self.plex, self.qbittorrent, self.nzbget,
            self.proxmox, self.wizarr,
        )
        return {
            "environment": self.environment.value,
            "log_level": self.log_level,
            "state_backend": self.state_backend.value,
            "dashboard_refresh_interval": self.dashboard_refresh_interval,
            "presence_refresh_interval": self.presence_refresh_interval,
            "discord_token_set": bool(self.discord_token),
            "configured_services": [e.name for e in endpoints if e.configured],
        }


# ============================================================================
# Configuration Metrics Tracker
# ============================================================================


class _ConfigLoadMetrics:
    """Tracks which values came from the environment and which failed validation."""

    def __init__(self) -> None:
        self.env_vars_loaded: Dict[str, bool] = {}
        self.validation_errors: Dict[str, str] = {}
        self.last_load: Optional[str] = None

    def record_env_load(self, key: str, from_env: bool) -> None:
        self.env_vars_loaded[key] = from_env

    def record_validation_error(self, key: str, error: str) -> None:
        self.validation_errors[key] = error

    def get_summary(self) -> Dict[str, Any]:
        return {
            "total_configs": len(self.env_vars_loaded),
            "from_environment": sum(1 for v in self.env_vars_loaded.values() if v),
            "validation_errors": len(self.validation_errors),
            "last_load": self.last_load,
        }


# ============================================================================
# Loader
# ============================================================================


class Config:
    """
    Environment loader producing a `BotConfig`.

    Usage
    -----
    >>> config = Config.from_env()
    >>> config.cache_ttls.docker
    15.0
    >>> Config.from_env({"DOCKER_CACHE_TTL": "5"}).cache_ttls.docker
    5.0
    """

    _metrics: Optional[_ConfigLoadMetrics] = None

    # =========================================================================
    # Helper Methods
    # =========================================================================

    @classmethod
    def _warn(cls, key: str, error: str) -> None:
        logging.warning(error)
        if cls._metrics:
            cls._metrics.record_validation_error(key, error)

    @classmethod
    def _safe_int(
        cls,
        env: Mapping[str, str],
        key: str,
        default: int,
        min_val: Optional[int] = None,
        max_val: Optional[int] = None,
    ) -> int:
        """
        Safely parse an integer with bounds checking.

        Example
        -------
        >>> Config._safe_int({"INVITE_EXPIRY_HOURS": "0"}, "INVITE_EXPIRY_HOURS", 24, min_val=1)
        24
        """
        raw_value = env.get(key)
        if cls._metrics:
            cls._metrics.record_env_load(key, raw_value is not None)
        if raw_value is None or raw_value == "":
            return default

        try:
            value = int(raw_value)
        except ValueError:
            cls._warn(key, f"{key}='{raw_value}' is not a valid integer, using default {default}")
            return default

        if min_val is not None and value < min_val:
            cls._warn(key, f"{key}={value} is below minimum {min_val}, using default {default}")
            return default
        if max_val is not None and value > max_val:
            cls._warn(key, f"{key}={value} exceeds maximum {max_val}, using default {default}")
            return default
        return value

    @classmethod
    def _safe_float(
        cls,
        env: Mapping[str, str],
        key: str,
        default: float,
        min_val: Optional[float] = None,
        max_val: Optional[float] = None,
    ) -> float:
        """Safely parse a float (seconds) with bounds checking."""
        raw_value = env.get(key)
        if cls._metrics:
            cls._metrics.record_env_load(key, raw_value is not None)
        if raw_value is None or raw_value == "":
            return default

        try:
            value = float(raw_value)
        except ValueError:
            cls._warn(key, f"{key}='{raw_value}' is not a valid number, using default {default}")
            return default

        if min_val is not None and value < min_val:
            cls._warn(key, f"{key}={value} is below minimum {min_val}, using default {default}")
            return default
        if max_val is not None and value > max_val:
            cls._warn(key, f"{key}={value} exceeds maximum {max_val}, using default {default}")
            return default
        return value

    @classmethod
    def _safe_bool(cls, env: Mapping[str, str], key: str, default: Optional[bool]) -> Optional[bool]:
        """
        Safely parse a boolean.

        Recognizes: true/false, yes/no, 1/0, on/off (case-insensitive).
        """
        raw_value = env.get(key)
        if cls._metrics:
            cls._metrics.record_env_load(key, raw_value is not None)
        if raw_value is None:
            return default

        normalized = raw_value.lower().strip()
        if normalized in {"true", "yes", "1", "on"}:
            return True
        if normalized in {"false", "no", "0", "off"}:
            return False

        cls._warn(key, f"{key}='{raw_value}' is not a valid boolean, using default {default}")
        return default

    @classmethod
    def _safe_str(cls, env: Mapping[str, str], key: str, default: str = "") -> str:
        value = env.get(key)
        if cls._metrics:
            cls._metrics.record_env_load(key, value is not None)
        return value.strip() if value is not None else default

    @classmethod
    def _safe_optional_int(cls, env: Mapping[str, str], key: str) -> Optional[int]:
        """Parse an optional integer (e.g. a channel snowflake); invalid means unset."""
        raw_value = env.get(key)
        if cls._metrics:
            cls._metrics.record_env_load(key, raw_value is not None)
        if not raw_value:
            return None
        try:
            return int(raw_value)
        except ValueError:
            cls._warn(key, f"{key}='{raw_value}' is not a valid integer, ignoring")
            return None

    @classmethod
    def _endpoint(
        cls,
        env: Mapping[str, str],
        name: str,
        secret_key: str = "API_KEY",
    ) -> ServiceEndpoint:
        prefix = name.upper()
        return ServiceEndpoint(
            name=name,
            url=cls._safe_str(env, f"{prefix}_URL"),
            api_key=cls._safe_str(env, f"{prefix}_{secret_key}"),
            username=cls._safe_str(env, f"{prefix}_USERNAME"),
            password=cls._safe_str(env, f"{prefix}_PASSWORD"),
        )

    # =========================================================================
    # Configuration Loading
    # =========================================================================

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> BotConfig:
        """
        Build a `BotConfig` from the process environment (or a given mapping).

        When `env` is omitted the `.env` file is loaded first.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        cls._metrics = _ConfigLoadMetrics()

        data_dir = Path(cls._safe_str(env, "DATA_DIR") or PROJECT_ROOT / "data")
        logs_dir = Path(cls._safe_str(env, "LOGS_DIR") or PROJECT_ROOT / "logs")
        services_file = cls._safe_str(env, "SERVICES_FILE")

        backend_raw = cls._safe_str(env, "STATE_BACKEND", "json").lower()
        try:
            backend = StateBackend(backend_raw)
        except ValueError:
            cls._warn("STATE_BACKEND", f"STATE_BACKEND='{backend_raw}' is not supported, using json")
            backend = StateBackend.JSON

        # REFRESH_INTERVAL is the legacy millisecond presence setting
        legacy_presence_ms = cls._safe_int(env, "REFRESH_INTERVAL", 30_000, min_val=1_000)
        presence_interval = cls._safe_float(
            env,
            "PRESENCE_REFRESH_INTERVAL",
            legacy_presence_ms / 1000.0,
            min_val=5.0,
        )

        log_level = cls._safe_str(env, "LOG_LEVEL", "INFO").upper()
        if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            cls._warn("LOG_LEVEL", f"Invalid LOG_LEVEL '{log_level}', using INFO")
            log_level = "INFO"

        config = BotConfig(
            discord_token=cls._safe_str(env, "DISCORD_TOKEN"),
            command_prefix=cls._safe_str(env, "COMMAND_PREFIX", ";") or ";",
            environment=Environment.from_string(cls._safe_str(env, "ENVIRONMENT", "development")),
            log_level=log_level,
            log_json=cls._safe_bool(env, "LOG_JSON", None),
            logs_dir=logs_dir,
            data_dir=data_dir,
            services_file=Path(services_file) if services_file else None,
            state_backend=backend,
            database_url=cls._safe_str(env, "DATABASE_URL"),
            database_echo=bool(cls._safe_bool(env, "DATABASE_ECHO", False)),
            dashboard_refresh_interval=cls._safe_float(
                env, "DASHBOARD_REFRESH_INTERVAL", 10.0, min_val=1.0
            ),
            presence_refresh_interval=presence_interval,
            live_update_interval=cls._safe_float(env, "LIVE_UPDATE_INTERVAL", 30.0, min_val=5.0),
            dashboard_startup_delay=cls._safe_float(env, "DASHBOARD_STARTUP_DELAY", 5.0, min_val=0.0),
            cache_ttls=CacheTTLs(
                arr=cls._safe_float(env, "ARR_CACHE_TTL", 30.0, min_val=1.0),
                docker=cls._safe_float(env, "DOCKER_CACHE_TTL", 15.0, min_val=1.0),
                media=cls._safe_float(env, "MEDIA_CACHE_TTL", 20.0, min_val=1.0),
                downloads=cls._safe_float(env, "DOWNLOADS_CACHE_TTL", 10.0, min_val=1.0),
                cluster=cls._safe_float(env, "CLUSTER_CACHE_TTL", 30.0, min_val=1.0),
            ),
            upstream_timeout=cls._safe_float(env, "UPSTREAM_TIMEOUT", 10.0, min_val=1.0, max_val=120.0),
            invite_expiry_hours=cls._safe_int(env, "INVITE_EXPIRY_HOURS", 24, min_val=1, max_val=24 * 30),
            seed_dashboard_channel_id=cls._safe_optional_int(env, "DASHBOARD_CHANNEL_ID"),
            seed_admin_channel_id=cls._safe_optional_int(env, "ALERT_CHANNEL_ID"),
            presence_node=cls._safe_str(env, "PRESENCE_NODE", "pve") or "pve",
            radarr=cls._endpoint(env, "radarr"),
            sonarr=cls._endpoint(env, "sonarr"),
            lidarr=cls._endpoint(env, "lidarr"),
            readarr=cls._endpoint(env, "readarr"),
            prowlarr=cls._endpoint(env, "prowlarr"),
            jellyfin=cls._endpoint(env, "jellyfin"),
            plex=cls._endpoint(env, "plex", secret_key="TOKEN"),
            qbittorrent=cls._endpoint(env, "qbittorrent"),
            nzbget=cls._endpoint(env, "nzbget"),
            proxmox=cls._endpoint(env, "proxmox", secret_key="TOKEN"),
            wizarr=cls._endpoint(env, "wizarr"),
            docker_socket_path=cls._safe_str(env, "DOCKER_SOCKET_PATH", "/var/run/docker.sock"),
            proxmox_verify_ssl=bool(cls._safe_bool(env, "PROXMOX_VERIFY_SSL", False)),
            wizarr_plex_server_id=cls._safe_int(env, "WIZARR_PLEX_SERVER_ID", 2, min_val=1),
            wizarr_jellyfin_server_id=cls._safe_int(env, "WIZARR_JELLYFIN_SERVER_ID", 1, min_val=1),
            wizarr_invite_days=cls._safe_int(env, "WIZARR_INVITE_DAYS", 2, min_val=1, max_val=365),
        )

        cls._metrics.last_load = datetime.now(timezone.utc).isoformat()
        return config

    @classmethod
    def prepare_directories(cls, config: BotConfig) -> None:
        """Create the logs and data directories if they do not exist."""
        config.logs_dir.mkdir(parents=True, exist_ok=True)
        config.data_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def get_metrics(cls) -> Optional[_ConfigLoadMetrics]:
        return cls._metrics
