"""
Maintenance models: one row of the site_maintenance table.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TITLE = "Site Under Maintenance"
DEFAULT_MESSAGE = (
    "We are currently performing scheduled maintenance to improve your experience. "
    "Please check back shortly."
)


class MaintenanceRecord(BaseModel):
    """Replaced wholesale on every refresh, never patched."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    is_enabled: bool = False
    title: str = Field(default="", alias="maintenance_title")
    message: str = Field(default="", alias="maintenance_message")
    estimated_completion: Optional[datetime] = None
    contact_info: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def display_title(self) -> str:
        return self.title or DEFAULT_TITLE

    @property
    def display_message(self) -> str:
        return self.message or DEFAULT_MESSAGE


class MonitorState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CHECKING = "checking"
    KNOWN = "known"


class MaintenanceStatus(BaseModel):
    """Snapshot handed to listeners after each applied refresh."""

    model_config = ConfigDict(frozen=True)

    state: MonitorState
    enabled: bool = False
    record: Optional[MaintenanceRecord] = None
    should_redirect: bool = False
