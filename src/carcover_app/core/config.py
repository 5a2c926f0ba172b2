"""Configuration loader for database, encryption, and owner settings."""

from __future__ import annotations

import os
import secrets
import sys
from dataclasses import dataclass
from pathlib import Path

import yaml

from carcover_app.core.crypto import CryptoService


@dataclass(frozen=True)
class DatabaseConfig:
    path: str
    key_env: str
    allow_sqlite_fallback: bool


@dataclass(frozen=True)
class EncryptionConfig:
    key_env: str


@dataclass(frozen=True)
class LoggingConfig:
    retention_days: int


@dataclass(frozen=True)
class OwnerConfig:
    identity: str


@dataclass(frozen=True)
class AppConfig:
    database: DatabaseConfig
    encryption: EncryptionConfig
    logging: LoggingConfig
    owner: OwnerConfig


DEFAULT_CONFIG_REL_PATH = Path("config/carcover.yaml")
DEFAULT_DB_KEY_ENV = "CARCOVER_DB_KEY"
DEFAULT_ENCRYPTION_KEY_ENV = "CARCOVER_ENCRYPTION_KEY"
RUNTIME_ENV_REL_PATH = Path("config/runtime.env")
ENV_FORMATS = ("shell", "shell-export")
_RUNTIME_ENV_LOADED = False


def _project_root() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[3]


def _env_files() -> list[Path]:
    """Key files read at startup, first match wins per variable."""
    paths = [
        Path.cwd() / ".env.local",
        _project_root() / ".env.local",
        _project_root() / RUNTIME_ENV_REL_PATH,
    ]
    return list(dict.fromkeys(path.resolve() for path in paths))


def parse_env_line(raw_line: str) -> tuple[str, str] | None:
    """Parse ``NAME=value`` or ``export NAME='value'``; comments yield None."""
    line = raw_line.strip()
    if not line or line.startswith("#"):
        return None
    if line.startswith("export "):
        line = line[len("export ") :]
    name, sep, value = line.partition("=")
    name = name.strip()
    if not sep or not name:
        return None
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        value = value[1:-1]
    return name, value


def render_env_line(name: str, value: str, env_format: str = "shell") -> str:
    prefix = "export " if env_format == "shell-export" else ""
    return f"{prefix}{name}='{value}'"


def generate_runtime_keys(config: AppConfig) -> dict[str, str]:
    """Fresh SQLCipher and AES-GCM keys keyed by the configured env names."""
    return {
        config.database.key_env: secrets.token_urlsafe(48),
        config.encryption.key_env: CryptoService.generate_base64_key(),
    }


def write_env_file(path: Path, keys: dict[str, str], env_format: str = "shell") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [render_env_line(name, value, env_format) for name, value in keys.items()]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def _load_env_files() -> None:
    global _RUNTIME_ENV_LOADED
    if _RUNTIME_ENV_LOADED:
        return
    for path in _env_files():
        if not path.is_file():
            continue
        for line in path.read_text(encoding="utf-8").splitlines():
            parsed = parse_env_line(line)
            if parsed:
                os.environ.setdefault(*parsed)
    _RUNTIME_ENV_LOADED = True


def ensure_runtime_keys(config: AppConfig) -> None:
    """Load the configured keys, generating config/runtime.env on first start.

    Keys are never generated for a database file that already exists.
    """
    _load_env_files()
    names = (config.database.key_env, config.encryption.key_env)
    if all(os.getenv(name) for name in names):
        return

    runtime_env = _project_root() / RUNTIME_ENV_REL_PATH
    db_path = Path(config.database.path)
    if not db_path.is_absolute():
        db_path = Path.cwd() / db_path
    if db_path.exists() and not runtime_env.exists():
        raise RuntimeError(
            f"Runtime key file is missing while database {db_path} exists. "
            f"Restore {RUNTIME_ENV_REL_PATH} or set {'/'.join(names)}."
        )

    keys = generate_runtime_keys(config)
    for name in names:
        if os.getenv(name):
            keys[name] = os.environ[name]
        else:
            os.environ[name] = keys[name]
    write_env_file(runtime_env, keys)


def resolve_default_config_path() -> Path:
    """Resolve configuration path for source and packaged execution."""
    env_path = os.getenv("CARCOVER_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    candidates = [Path.cwd() / DEFAULT_CONFIG_REL_PATH, _project_root() / DEFAULT_CONFIG_REL_PATH]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return candidates[0]


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load the app configuration from YAML."""
    path = config_path or resolve_default_config_path()
    with path.open("r", encoding="utf-8") as file:
        raw = yaml.safe_load(file) or {}

    try:
        owner_identity = str(raw["owner"]["identity"]).strip()
        return AppConfig(
            database=DatabaseConfig(
                path=str(raw["db"]["path"]),
                key_env=str(raw["db"].get("key_env", DEFAULT_DB_KEY_ENV)),
                allow_sqlite_fallback=bool(raw["db"].get("allow_sqlite_fallback", False)),
            ),
            encryption=EncryptionConfig(
                key_env=str(raw["encryption"].get("key_env", DEFAULT_ENCRYPTION_KEY_ENV)),
            ),
            logging=LoggingConfig(
                retention_days=int(raw.get("logging", {}).get("retention_days", 1095)),
            ),
            owner=OwnerConfig(identity=owner_identity),
        )
    except (KeyError, TypeError) as error:
        raise RuntimeError(f"Invalid configuration file {path}: missing {error}") from error


def get_required_env(name: str) -> str:
    """Return a required environment variable or raise a clear error."""
    _load_env_files()
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Required environment variable is missing: {name}")
    return value
