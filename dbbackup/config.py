"""Configuration models and helpers for the backup agent."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

import yaml

CONFIG_FILENAME = "config.yaml"
WILDCARD_NAME = "*"
DEFAULT_PORT = 3306
DEFAULT_HEARTBEAT_TIMEOUT = 10.0


class ConfigError(Exception):
    """Raised when configuration loading or validation fails."""


@dataclass(frozen=True)
class S3Config:
    access_key: str
    access_secret: str
    region: str
    bucket: str
    endpoint_url: Optional[str] = None

    def validate(self) -> None:
        for key in ("access_key", "access_secret", "region", "bucket"):
            if not getattr(self, key):
                raise ConfigError(f"Field 's3_config.{key}' must not be empty.")

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "S3Config":
        if not isinstance(data, dict):
            raise ConfigError("Configuration must contain an 's3_config' section.")
        config = cls(
            access_key=_safe_str(data.get("access_key")),
            access_secret=_safe_str(data.get("access_secret")),
            region=_safe_str(data.get("region")),
            bucket=_safe_str(data.get("bucket")),
            endpoint_url=data.get("endpoint_url") or None,
        )
        config.validate()
        return config


@dataclass(frozen=True)
class DatabaseConfig:
    host: str
    username: str
    password: str
    port: int = DEFAULT_PORT
    name: Optional[str] = None
    names: Tuple[str, ...] = ()
    extra_args: Tuple[str, ...] = ()

    def resolved_names(self) -> Tuple[str, ...]:
        """Return every database name this source expands to.

        The list form comes first and the singular ``name`` is appended to it.
        Duplicates are kept, so a database listed twice is dumped twice.
        """

        if self.name:
            return self.names + (self.name,)
        return self.names

    def validate(self) -> None:
        if not self.host:
            raise ConfigError("Field 'host' must not be empty.")
        if not self.username:
            raise ConfigError(f"Field 'username' for host '{self.host}' must not be empty.")
        if not self.password:
            raise ConfigError(f"Field 'password' for host '{self.host}' must not be empty.")
        if not 0 < self.port < 65536:
            raise ConfigError(f"Port {self.port} for host '{self.host}' is out of range.")
        if any(not name for name in self.names):
            raise ConfigError(f"Field 'names' for host '{self.host}' contains an empty name.")
        if not self.resolved_names():
            raise ConfigError(
                f"Source '{self.host}' must define 'name' or 'names' (use '{WILDCARD_NAME}' for all databases)."
            )

    @classmethod
    def from_dict(cls, data: Dict) -> "DatabaseConfig":
        if not isinstance(data, dict):
            raise ConfigError("Each database entry must be a mapping.")
        names = data.get("names") or []
        if not isinstance(names, list):
            raise ConfigError(f"Field 'names' for host '{data.get('host')}' must be a list.")
        extra_args = data.get("extra_args") or []
        if not isinstance(extra_args, list):
            raise ConfigError(f"Field 'extra_args' for host '{data.get('host')}' must be a list.")
        config = cls(
            host=_safe_str(data.get("host")),
            username=_safe_str(data.get("username")),
            password=_safe_str(data.get("password")),
            port=_safe_int(data.get("port"), default=DEFAULT_PORT),
            name=_safe_str(data.get("name")) or None,
            names=tuple(_safe_str(item) for item in names),
            extra_args=tuple(_safe_str(item) for item in extra_args),
        )
        config.validate()
        return config


@dataclass(frozen=True)
class AppConfig:
    s3: S3Config
    databases: Tuple[DatabaseConfig, ...] = ()
    cron_interval: Optional[str] = None
    heartbeat_uri: Optional[str] = None
    heartbeat_timeout: float = DEFAULT_HEARTBEAT_TIMEOUT
    dump_binary: str = "mysqldump"
    backups_dir: Path = field(default_factory=lambda: Path("backups"))
    temp_dir: Path = field(default_factory=lambda: Path("temp"))

    @property
    def archive_path(self) -> Path:
        return self.temp_dir / "backup.tar.gz"

    @classmethod
    def from_dict(cls, data: Dict) -> "AppConfig":
        if "databases" not in data or not isinstance(data["databases"], list):
            raise ConfigError("Configuration must contain a 'databases' list.")
        timeout = _safe_float(data.get("heartbeat_timeout"), default=DEFAULT_HEARTBEAT_TIMEOUT)
        if timeout <= 0:
            raise ConfigError("Field 'heartbeat_timeout' must be positive.")
        return cls(
            s3=S3Config.from_dict(data.get("s3_config")),
            databases=tuple(DatabaseConfig.from_dict(item) for item in data["databases"]),
            cron_interval=_safe_str(data.get("cron_interval")) or None,
            heartbeat_uri=_safe_str(data.get("heartbeat_uri")) or None,
            heartbeat_timeout=timeout,
            dump_binary=_safe_str(data.get("dump_binary")) or "mysqldump",
            backups_dir=Path(data.get("backups_dir") or "backups"),
            temp_dir=Path(data.get("temp_dir") or "temp"),
        )


# ---------------------------------------------------------------------------
def _safe_str(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise ConfigError(f"Value '{value}' must be a scalar.")
    return str(value)


def _safe_int(value, default: Optional[int] = None) -> Optional[int]:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ConfigError(f"Value '{value}' cannot be converted to an integer.")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Value '{value}' cannot be converted to an integer.")


def _safe_float(value, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Value '{value}' cannot be converted to a number.")


# ---------------------------------------------------------------------------
def load_config(path: Path = Path(CONFIG_FILENAME)) -> AppConfig:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration file '{path}': {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Cannot parse configuration file '{path}': {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file '{path}' must contain a mapping.")
    return AppConfig.from_dict(data)


__all__ = [
    "AppConfig",
    "ConfigError",
    "DatabaseConfig",
    "S3Config",
    "WILDCARD_NAME",
    "load_config",
]
