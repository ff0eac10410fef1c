"""Pydantic schemas for Events Service.

Events are owned by the calendar screens; this package only reads them.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class Event(BaseModel):
    """Read-only view of a document in the ``events`` collection."""

    id: str
    title: str = ""
    date: Optional[str] = None
    time: Optional[str] = None
    type: Optional[str] = None

    # Calendar-specific fields (location, signInEnabled, ...) pass through
    model_config = ConfigDict(extra="allow")

    @field_validator("title", mode="before")
    @classmethod
    def title_or_blank(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("date", "time", "type", mode="before")
    @classmethod
    def optional_text(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        if hasattr(v, "isoformat"):
            return v.isoformat()
        return str(v)

    @classmethod
    def from_document(cls, record: dict[str, Any]) -> "Event":
        return cls.model_validate(record)
