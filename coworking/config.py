"""Configuration management for the coworking booking service."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .errors import ConfigurationError

MIN_BCRYPT_ROUNDS = 10

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


@dataclass(frozen=True)
class Settings:
    """Runtime settings shared by the HTTP service and the CLI."""

    database_path: Path
    token_secret: str
    token_ttl_minutes: int = 60 * 24
    bcrypt_rounds: int = 12
    host: str = "127.0.0.1"
    port: int = 5000

    def __post_init__(self) -> None:
        if not self.token_secret:
            raise ConfigurationError(
                "A token signing secret is required. Set COWORKING_TOKEN_SECRET or token_secret in the config file."
            )
        if self.bcrypt_rounds < MIN_BCRYPT_ROUNDS:
            raise ConfigurationError(f"bcrypt_rounds must be at least {MIN_BCRYPT_ROUNDS}")
        if self.token_ttl_minutes <= 0:
            raise ConfigurationError("token_ttl_minutes must be positive")

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw dictionary data."""

        unknown = set(data) - {"database_path", "token_secret", "token_ttl_minutes", "bcrypt_rounds", "host", "port"}
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        return Settings(
            database_path=resolve_database_path(
                str(data["database_path"]) if data.get("database_path") else None,
                base_path=base_path,
            ),
            token_secret=str(data.get("token_secret") or ""),
            token_ttl_minutes=_as_int(data.get("token_ttl_minutes"), 60 * 24, "token_ttl_minutes"),
            bcrypt_rounds=_as_int(data.get("bcrypt_rounds"), 12, "bcrypt_rounds"),
            host=str(data.get("host") or "127.0.0.1"),
            port=_as_int(data.get("port"), 5000, "port"),
        )


def _as_int(value: object, default: int, name: str) -> int:
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return default
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid integer value {value!r} for {name}") from exc


def resolve_database_path(value: Optional[str], *, base_path: Path | None = None) -> Path:
    """Resolve the on-disk path for the booking database."""

    if not value:
        return (_PROJECT_ROOT / "data" / "coworking.sqlite3").resolve(strict=False)
    candidate = Path(value).expanduser()
    if not candidate.is_absolute() and base_path is not None:
        candidate = base_path / candidate
    return candidate.resolve(strict=False)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the optional YAML configuration file."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    return (_PROJECT_ROOT / "config" / "coworking.yaml").resolve(strict=False)


def _load_yaml(config_path: Path) -> Dict[str, object]:
    if not config_path.exists():
        return {}
    with config_path.open("r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Configuration file {config_path} is not valid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration file {config_path} must contain a mapping")
    return raw


_ENV_KEYS = {
    "COWORKING_DB_PATH": "database_path",
    "COWORKING_TOKEN_SECRET": "token_secret",
    "COWORKING_TOKEN_TTL_MINUTES": "token_ttl_minutes",
    "COWORKING_BCRYPT_ROUNDS": "bcrypt_rounds",
    "COWORKING_HOST": "host",
    "COWORKING_PORT": "port",
}


def load_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    **overrides: object,
) -> Settings:
    """Load settings from the YAML file, then the environment, then ``overrides``."""

    env = os.environ if environ is None else environ
    path = config_path or resolve_config_path(env.get("COWORKING_CONFIG"))
    data = _load_yaml(path)

    for env_name, key in _ENV_KEYS.items():
        value = env.get(env_name)
        if value is None or value.strip() == "":
            continue
        if key == "database_path":
            # Environment paths are relative to the working directory, not the config file.
            value = str(Path(value).expanduser().resolve(strict=False))
        data[key] = value
    data.update({key: value for key, value in overrides.items() if value is not None})

    return Settings.from_dict(data, base_path=path.parent)


def with_overrides(settings: Settings, **changes: object) -> Settings:
    return replace(settings, **{key: value for key, value in changes.items() if value is not None})


__all__ = [
    "MIN_BCRYPT_ROUNDS",
    "Settings",
    "load_settings",
    "resolve_config_path",
    "resolve_database_path",
    "with_overrides",
]
