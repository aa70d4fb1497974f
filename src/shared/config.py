"""Shared configuration management using pydantic-settings."""
from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

from src.shared.constants import ENTRY_COLLECTION, MAX_ALTERNATIVES, MAX_SESSIONS

_DEFAULT_SEED = str(Path(__file__).resolve().parent.parent / "catalog" / "data" / "databases.yaml")


class SharedConfig(BaseSettings):
    """Base configuration shared across all services."""
    log_level: str = Field(default="info", validation_alias="LOG_LEVEL")
    database_path: str = Field(
        default="./data/catalog.db", validation_alias="DATABASE_PATH"
    )
    storage_backend: str = Field(
        default="sqlite",
        pattern=r"^(sqlite|memory)$",
        validation_alias="STORAGE_BACKEND",
    )
    entry_collection: str = Field(
        default=ENTRY_COLLECTION, validation_alias="ENTRY_COLLECTION"
    )

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }


class CatalogConfig(SharedConfig):
    """Configuration for the Catalog service."""
    seed_catalog: str = Field(default=_DEFAULT_SEED, validation_alias="SEED_CATALOG")
    seed_on_startup: bool = Field(default=True, validation_alias="SEED_ON_STARTUP")


class ConsultantConfig(CatalogConfig):
    """Configuration for the Consultant service."""
    response_delay_ms: int = Field(
        default=0, ge=0, le=10_000, validation_alias="RESPONSE_DELAY_MS"
    )
    max_alternatives: int = Field(
        default=MAX_ALTERNATIVES, ge=0, le=10, validation_alias="MAX_ALTERNATIVES"
    )
    max_sessions: int = Field(
        default=MAX_SESSIONS, ge=1, validation_alias="MAX_SESSIONS"
    )
