"""Member profile documents as stored in the ``users`` collection.

Field names on the wire are camelCase (``displayName``, ``isActive`` ...);
Python attributes are snake_case. Documents written by roster imports or older
app versions may omit fields or store nulls, so reads are lenient.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from libs.auth.roles import HangarRole, role_display_name, security_level
from libs.common.datetime_utils import to_iso

ALL_ROLES = "all"

_TEXT_FIELDS = (
    "display_name",
    "email",
    "phone",
    "address",
    "emergency_contact",
    "emergency_phone",
    "join_date",
    "notes",
    "profile_photo",
)


class MemberBase(BaseModel):
    display_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    emergency_contact: str = ""
    emergency_phone: str = ""
    join_date: str = ""
    notes: str = ""
    profile_photo: str = ""
    is_active: bool = True

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def text_or_blank(cls, v: Any) -> str:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @field_validator("is_active", mode="before")
    @classmethod
    def active_unless_false(cls, v: Any) -> Any:
        # Only an explicit false deactivates a profile
        return True if v is None else v


class MemberForm(MemberBase):
    """Editable profile fields submitted by the member manager."""

    role: HangarRole = HangarRole.GUEST

    model_config = ConfigDict(extra="ignore")

    @field_validator("display_name", "email")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return v.strip()


class MemberProfile(MemberBase):
    """A persisted profile, tagged with its store-assigned id."""

    id: str
    role: str = HangarRole.GUEST.value
    created_at: Optional[str] = None
    created_by: Optional[str] = None
    updated_at: Optional[str] = None
    updated_by: Optional[str] = None

    model_config = ConfigDict(extra="allow")

    @field_validator("role", mode="before")
    @classmethod
    def role_tag(cls, v: Any) -> str:
        if v is None or v == "":
            return HangarRole.GUEST.value
        if isinstance(v, HangarRole):
            return v.value
        return str(v)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def timestamp_text(cls, v: Any) -> Any:
        if isinstance(v, datetime):
            return to_iso(v)
        return v

    @property
    def is_valid(self) -> bool:
        return bool(self.display_name.strip()) and bool(self.email.strip())

    @property
    def security_level(self) -> int:
        return security_level(self.role)

    @property
    def role_name(self) -> str:
        return role_display_name(self.role)

    @classmethod
    def from_document(cls, record: dict[str, Any]) -> "MemberProfile":
        return cls.model_validate(record)


class DirectoryStats(BaseModel):
    total: int
    active: int
    leadership: int


class ImportResult(BaseModel):
    index: int
    success: bool
    member_id: Optional[str] = None
    display_name: Optional[str] = None
    error: Optional[str] = None
