"""Shared utility functions."""
import re
from datetime import datetime, timezone


def now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def create_slug(name: str) -> str:
    """Lowercase *name* and collapse every non-alphanumeric run into a hyphen.

    "Amazon DynamoDB" -> "amazon-dynamodb", "C++ Store!" -> "c-store"
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower())
    return slug.strip("-")
