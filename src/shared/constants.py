"""Shared constants used by the catalog and consultant services."""
from __future__ import annotations

# Application version
VERSION: str = "1.0.0"

# Port numbers
CATALOG_PORT: int = 8001
CONSULTANT_PORT: int = 8002

# Service names
CATALOG_SERVICE_NAME: str = "catalog"
CONSULTANT_SERVICE_NAME: str = "consultant"

# Database settings
DB_BUSY_TIMEOUT_MS: int = 30000

# Blob map layout
ENTRY_COLLECTION: str = "databases"
ENTRY_SUFFIX: str = ".md"
USERNAME_KEY: str = "profile/github_username"

# Catalog defaults
DEFAULT_POPULARITY: int = 50
DEFAULT_LISTING_LIMIT: int = 3
MAX_ALTERNATIVES: int = 3
MAX_SESSIONS: int = 1000
