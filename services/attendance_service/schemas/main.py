from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from libs.common.datetime_utils import to_iso
from services.attendance_service.models.enums import AttendanceStatus


def attendance_key(event_id: str, member_id: str) -> str:
    """Document id of the single record for an (event, member) pair."""
    return f"{event_id}_{member_id}"


class AttendanceRecord(BaseModel):
    member_id: str
    event_id: str
    status: AttendanceStatus
    recorded_at: str
    recorded_by: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("recorded_at", mode="before")
    @classmethod
    def timestamp_text(cls, v: Any) -> Any:
        if isinstance(v, datetime):
            return to_iso(v)
        return v

    @property
    def key(self) -> str:
        return attendance_key(self.event_id, self.member_id)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_document(cls, record: dict[str, Any]) -> "AttendanceRecord":
        return cls.model_validate(record)


class AttendanceSummary(BaseModel):
    """Per-status counts for one event."""

    event_id: str
    present: int = 0
    absent: int = 0
    called_in: int = 0
    excused: int = 0

    @property
    def total(self) -> int:
        return self.present + self.absent + self.called_in + self.excused

    def count(self, status: AttendanceStatus) -> int:
        return getattr(self, status.value)

