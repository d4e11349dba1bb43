"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

import yaml
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"

# Values shipped in .env templates that mean "not filled in yet"
PLACEHOLDER_MARKERS = ("your-project", "your-anon-key", "placeholder")


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


class CacheConfig(BaseSettings):
    list_fresh_seconds: float = 5 * 60
    list_retain_seconds: float = 10 * 60
    detail_fresh_seconds: float = 5 * 60
    detail_retain_seconds: float = 10 * 60
    owner_fresh_seconds: float = 2 * 60
    owner_retain_seconds: float = 10 * 60


class StorageConfig(BaseSettings):
    accepted_types: list[str] = Field(default_factory=lambda: [
        "image/jpeg", "image/png", "image/webp",
    ])
    avatar_max_bytes: int = 2 * 1024 * 1024
    property_image_max_bytes: int = 5 * 1024 * 1024
    max_property_images: int = 5
    avatar_bucket: str = "avatars"
    property_bucket: str = "property-images"
    local_upload_dir: str = "data/uploads"


class Settings(BaseSettings):
    supabase_url: str = ""
    supabase_anon_key: str = ""
    app_url: str = "http://localhost:8000"
    log_level: str = "INFO"
    properties_per_page: int = 9
    # Operations allowed to fall back to the sample dataset when Supabase errors
    fallback_on_remote_error: list[str] = Field(default_factory=list)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def get_settings() -> Settings:
    """Build Settings by merging YAML defaults with env overrides.

    Not cached: the Supabase readiness check reads it on every operation.
    """
    y = _load_yaml()
    overrides = {}
    if "cache" in y:
        overrides["cache"] = CacheConfig(**y["cache"])
    if "storage" in y:
        overrides["storage"] = StorageConfig(**y["storage"])
    for key in ("app_url", "log_level", "properties_per_page",
                "fallback_on_remote_error"):
        if key in y:
            overrides[key] = y[key]
    return Settings(**overrides)


def is_backend_configured(settings: Settings) -> bool:
    """True when both Supabase values are set and not template placeholders."""
    url = settings.supabase_url.strip()
    key = settings.supabase_anon_key.strip()
    if not url or not key:
        return False
    for marker in PLACEHOLDER_MARKERS:
        if marker in url or marker in key:
            return False
    return True
