"""Members Service schemas package.

Re-exports all schemas so that
``from services.members_service.schemas import MemberProfile`` works.
"""

from services.members_service.schemas.member import (  # noqa: F401
    ALL_ROLES,
    DirectoryStats,
    ImportResult,
    MemberBase,
    MemberForm,
    MemberProfile,
)
