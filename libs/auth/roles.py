"""Hangar role model.

Hangar leadership (Leadmen):
- Governor, Historian (level 4): senior leadership
- Assistant Governor, Keyman, Assistant Keyman, Beam Man (level 3)

General membership:
- Member (level 2)
- Candidate, Initiate (level 1)
- Guest (level 0)

System administration:
- Sudo Admin: technical administrator outside the hangar hierarchy. It sits at
  level 4 for level checks; full system management is a separate capability
  (see ``libs.auth.gate.can_manage_system``), never a level.

Every lookup accepts an arbitrary tag. Unrecognized tags resolve to level 0
and "Unknown" display metadata instead of raising.
"""

import enum
from typing import NamedTuple, Optional, Union


class HangarRole(str, enum.Enum):
    GUEST = "guest"
    CANDIDATE = "candidate"
    INITIATE = "initiate"
    MEMBER = "member"
    ASSISTANT_GOVERNOR = "assistant_governor"
    KEYMAN = "keyman"
    ASSISTANT_KEYMAN = "assistant_keyman"
    BEAM_MAN = "beam_man"
    GOVERNOR = "governor"
    HISTORIAN = "historian"
    SUDO_ADMIN = "sudo_admin"


RoleTag = Union[HangarRole, str, None]

MIN_SECURITY_LEVEL = 0
MAX_SECURITY_LEVEL = 4


class RoleInfo(NamedTuple):
    level: int
    display_name: str
    color: str
    icon: str


ROLE_TABLE: dict[HangarRole, RoleInfo] = {
    HangarRole.GUEST: RoleInfo(0, "Guest", "#999999", "eye-outline"),
    HangarRole.CANDIDATE: RoleInfo(1, "Candidate", "#FFA500", "person-add-outline"),
    HangarRole.INITIATE: RoleInfo(1, "Initiate", "#FF8C00", "school-outline"),
    HangarRole.MEMBER: RoleInfo(2, "Member", "#228B22", "person-outline"),
    HangarRole.ASSISTANT_GOVERNOR: RoleInfo(
        3, "Assistant Governor", "#4682B4", "ribbon-outline"
    ),
    HangarRole.KEYMAN: RoleInfo(3, "Keyman", "#1E90FF", "key-outline"),
    HangarRole.ASSISTANT_KEYMAN: RoleInfo(
        3, "Assistant Keyman", "#6495ED", "keypad-outline"
    ),
    HangarRole.BEAM_MAN: RoleInfo(3, "Beam Man", "#0000CD", "construct-outline"),
    HangarRole.GOVERNOR: RoleInfo(4, "Governor", "#8B4513", "star-outline"),
    HangarRole.HISTORIAN: RoleInfo(4, "Historian", "#7B68EE", "book-outline"),
    HangarRole.SUDO_ADMIN: RoleInfo(
        4, "System Administrator", "#ff0000", "shield-checkmark-outline"
    ),
}

UNKNOWN_ROLE = RoleInfo(MIN_SECURITY_LEVEL, "Unknown", "#999999", "help-outline")

LEVEL_3_LEADMEN = frozenset(
    {
        HangarRole.ASSISTANT_GOVERNOR,
        HangarRole.KEYMAN,
        HangarRole.ASSISTANT_KEYMAN,
        HangarRole.BEAM_MAN,
    }
)
LEVEL_4_LEADMEN = frozenset({HangarRole.GOVERNOR, HangarRole.HISTORIAN})
LEADMEN_ROLES = LEVEL_3_LEADMEN | LEVEL_4_LEADMEN


def parse_role(role: RoleTag) -> Optional[HangarRole]:
    """Map a raw tag onto the enumeration, or ``None`` when unrecognized."""
    if isinstance(role, HangarRole):
        return role
    if not isinstance(role, str):
        return None
    try:
        return HangarRole(role)
    except ValueError:
        return None


def role_info(role: RoleTag) -> RoleInfo:
    parsed = parse_role(role)
    if parsed is None:
        return UNKNOWN_ROLE
    return ROLE_TABLE[parsed]


def security_level(role: RoleTag) -> int:
    return role_info(role).level


def role_display_name(role: RoleTag) -> str:
    return role_info(role).display_name


def role_color(role: RoleTag) -> str:
    return role_info(role).color


def role_icon(role: RoleTag) -> str:
    return role_info(role).icon


def is_leadman(role: RoleTag) -> bool:
    return parse_role(role) in LEADMEN_ROLES


def is_level3_leadman(role: RoleTag) -> bool:
    return parse_role(role) in LEVEL_3_LEADMEN


def is_level4_leadman(role: RoleTag) -> bool:
    return parse_role(role) in LEVEL_4_LEADMEN


def assignable_roles() -> list[HangarRole]:
    """Roles that can be granted through profile forms (never Sudo Admin)."""
    return [role for role in HangarRole if role is not HangarRole.SUDO_ADMIN]
