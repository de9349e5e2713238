"""
Configuration management for awaylog.

Handles loading configuration from environment variables (and a local
``.env`` file) and validation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any

from dotenv import load_dotenv


def _get_env_var(name: str, default: str | None = None, required: bool = False) -> str | None:
    """Get environment variable with optional default."""
    value = os.environ.get(name, default)
    if required and not value:
        raise ValueError(f"Required environment variable {name} is not set")
    return value


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _split_csv(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class Config:
    """Service configuration."""

    storage_backend: str = "memory"
    collection: str = "entries"
    redis_url: str = "redis://localhost:6379/0"
    redis_prefix: str = "awaylog"
    data_file: str = "data.json"

    # Admin surface (HTTP Basic). No password means the admin page is closed.
    admin_username: str = "admin"
    admin_password: str | None = None

    cors_origins: tuple[str, ...] = field(default_factory=lambda: ("*",))

    # Single-writer lock around open/close
    lock_ttl: int = 30
    lock_retries: int = 20
    lock_retry_delay: float = 0.05

    # Environment & Logging
    log_level: str = "INFO"
    log_json: bool = False
    env: str = "development"
    host: str = "127.0.0.1"
    port: int = 3001

    def __post_init__(self) -> None:
        if not self.storage_backend:
            raise ValueError("storage_backend is required")
        if not self.collection:
            raise ValueError("collection is required")
        if not 0 < self.port < 65536:
            raise ValueError(f"port out of range: {self.port}")
        if self.lock_ttl <= 0:
            raise ValueError("lock_ttl must be positive")
        if self.lock_retries < 0:
            raise ValueError("lock_retries cannot be negative")

    @classmethod
    def from_env(cls, **overrides: Any) -> Config:
        """Load configuration from environment variables."""
        load_dotenv()

        def pick(key: str, env_name: str, default: Any) -> Any:
            if key in overrides and overrides[key] is not None:
                return overrides[key]
            return _get_env_var(env_name, default=default)

        cors = overrides.get("cors_origins")
        if cors is None:
            cors = _split_csv(_get_env_var("AWAYLOG_CORS_ORIGINS")) or ("*",)

        return cls(
            storage_backend=pick("storage_backend", "AWAYLOG_STORAGE_BACKEND", cls.storage_backend),
            collection=pick("collection", "AWAYLOG_COLLECTION", cls.collection),
            redis_url=pick("redis_url", "AWAYLOG_REDIS_URL", cls.redis_url),
            redis_prefix=pick("redis_prefix", "AWAYLOG_REDIS_PREFIX", cls.redis_prefix),
            data_file=pick("data_file", "AWAYLOG_DATA_FILE", cls.data_file),
            admin_username=pick("admin_username", "AWAYLOG_ADMIN_USERNAME", cls.admin_username),
            admin_password=pick("admin_password", "AWAYLOG_ADMIN_PASSWORD", None),
            cors_origins=tuple(cors),
            lock_ttl=int(pick("lock_ttl", "AWAYLOG_LOCK_TTL", cls.lock_ttl)),
            lock_retries=int(pick("lock_retries", "AWAYLOG_LOCK_RETRIES", cls.lock_retries)),
            lock_retry_delay=float(
                pick("lock_retry_delay", "AWAYLOG_LOCK_RETRY_DELAY", cls.lock_retry_delay)
            ),
            log_level=pick("log_level", "AWAYLOG_LOG_LEVEL", cls.log_level),
            log_json=_parse_bool(pick("log_json", "AWAYLOG_LOG_JSON", cls.log_json)),
            env=pick("env", "AWAYLOG_ENV", cls.env),
            host=pick("host", "AWAYLOG_HOST", cls.host),
            port=int(pick("port", "AWAYLOG_PORT", cls.port)),
        )

    def with_updates(self, **updates: Any) -> Config:
        """Create a new Config with updated values."""
        return replace(self, **updates)

    def masked_admin_password(self) -> str:
        """Return the admin password masked for safe logging."""
        if not self.admin_password:
            return "<unset>"
        if len(self.admin_password) <= 4:
            return "****"
        return self.admin_password[:2] + "..." + self.admin_password[-2:]
