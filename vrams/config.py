"""Configuration for the application service.

Settings are resolved with the following precedence (highest first):
- environment variables
- optional text files under `config/`
- `vrams_config.json` at the project root
- development defaults

Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from vrams.logic.draft_store import DEFAULT_DRAFT_KEY, DEFAULT_FINGERPRINT_KEY


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("vrams_config.json")
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class DatabaseConfig(BaseModel):
    dsn: str
    auto_apply_migrations: bool = Field(default=True)

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class UploadConfig(BaseModel):
    root_dir: str
    base_url: str

    @field_validator("base_url")
    @classmethod
    def base_url_must_be_http(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("uploads.base_url must start with http:// or https://")
        return v


class DraftConfig(BaseModel):
    draft_key: str = Field(default=DEFAULT_DRAFT_KEY, min_length=1)
    fingerprint_key: str = Field(default=DEFAULT_FINGERPRINT_KEY, min_length=1)


class AppConfig(BaseModel):
    database: DatabaseConfig
    uploads: UploadConfig
    drafts: DraftConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def _truthy(text: object) -> bool:
    return str(text).strip().lower() in {"1", "true", "yes", "on"}


def load_config() -> AppConfig:
    """Load and validate configuration.

    Raises pydantic.ValidationError after logging it when a value is invalid.
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    dsn = (
        _env("VRAMS_DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
        or "sqlite+pysqlite:///:memory:"
    )
    auto_migrate = (
        _env("VRAMS_AUTO_APPLY_MIGRATIONS")
        or _read_config_file("database.auto_apply_migrations")
        or _base("database.auto_apply_migrations", "true")
    )

    upload_dir = _env("VRAMS_UPLOAD_DIR") or _read_config_file("uploads.dir") or _base("uploads.root_dir", "uploads")
    upload_base = (
        _env("VRAMS_UPLOAD_BASE_URL")
        or _read_config_file("uploads.base_url")
        or _base("uploads.base_url", "http://localhost:8000/uploads")
    )

    draft_key = _env("VRAMS_DRAFT_KEY") or _read_config_file("drafts.key") or _base("drafts.draft_key", DEFAULT_DRAFT_KEY)
    fingerprint_key = (
        _env("VRAMS_FINGERPRINT_KEY")
        or _read_config_file("drafts.fingerprint_key")
        or _base("drafts.fingerprint_key", DEFAULT_FINGERPRINT_KEY)
    )

    try:
        return AppConfig(
            database=DatabaseConfig(dsn=dsn, auto_apply_migrations=_truthy(auto_migrate)),
            uploads=UploadConfig(root_dir=str(upload_dir), base_url=str(upload_base)),
            drafts=DraftConfig(draft_key=str(draft_key), fingerprint_key=str(fingerprint_key)),
        )
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "UploadConfig",
    "DraftConfig",
    "load_config",
]
