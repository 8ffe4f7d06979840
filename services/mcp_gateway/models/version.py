"""
Update check models.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class VersionDescriptor(BaseModel):
    """Result of one poll of the remote "latest version" descriptor."""

    current_version: str
    latest_version: str
    download_url: Optional[str] = None
    release_notes: Optional[str] = None


class UpdateCheckResult(BaseModel):
    """Outcome of a single update check."""

    has_update: bool = False
    current_version: str
    latest_version: Optional[str] = None
    descriptor: Optional[VersionDescriptor] = None
    skipped: bool = False
    error: Optional[str] = None
    checked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
