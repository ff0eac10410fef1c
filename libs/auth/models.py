from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from libs.auth.roles import HangarRole, security_level


class Actor(BaseModel):
    """
    The authenticated identity performing an operation.

    Passed explicitly into every operation that needs authorization; nothing
    reads an ambient session. ``role`` is kept as the raw tag so that an
    unrecognized value still reaches the gate (and resolves to level 0).
    """

    uid: str
    email: Optional[EmailStr] = None
    role: str = HangarRole.GUEST.value
    display_name: Optional[str] = Field(default=None, alias="displayName")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("role", mode="before")
    @classmethod
    def role_tag(cls, v):
        if isinstance(v, HangarRole):
            return v.value
        return v if v is not None else HangarRole.GUEST.value

    @property
    def security_level(self) -> int:
        return security_level(self.role)

    @property
    def audit_label(self) -> str:
        """Value written to createdBy/updatedBy/recordedBy."""
        return self.email or self.uid or "Unknown"
