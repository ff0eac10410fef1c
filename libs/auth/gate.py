"""Authorization gate.

Ordinary privilege tiers are compared by security level, which is monotonic:
a role that passes level ``n`` passes every level below it. Full system
administration is a named capability held only by the Sudo Admin tag and is
never reachable through the level ordering.

The ``can_*`` / ``has_*`` predicates are pure. The ``require_*`` helpers raise
``PermissionDenied`` and are what the service layer calls before any write.
"""

from typing import TYPE_CHECKING, Optional

from libs.auth.models import Actor
from libs.auth.roles import HangarRole, RoleTag, parse_role, security_level
from libs.common.config import get_settings
from libs.common.errors import PermissionDenied
from libs.common.logging import get_logger

if TYPE_CHECKING:
    from libs.auth.access_log import AccessLog

logger = get_logger(__name__)

LEADERSHIP_LEVEL = 3
SENIOR_LEADERSHIP_LEVEL = 4
MEMBER_LEVEL = 2


def has_security_level(role: RoleTag, required_level: int) -> bool:
    return security_level(role) >= required_level


def has_role(role: RoleTag, required_role: RoleTag) -> bool:
    """True when ``role`` sits at or above the level of ``required_role``."""
    return security_level(role) >= security_level(required_role)


def can_manage_system(role: RoleTag) -> bool:
    return parse_role(role) is HangarRole.SUDO_ADMIN


def can_manage_users(role: RoleTag) -> bool:
    return can_manage_system(role)


def can_manage_events(role: RoleTag) -> bool:
    return has_security_level(role, LEADERSHIP_LEVEL) or can_manage_system(role)


def can_view_member_data(role: RoleTag) -> bool:
    return has_security_level(role, LEADERSHIP_LEVEL) or can_manage_system(role)


def can_access_member_resources(role: RoleTag) -> bool:
    return has_security_level(role, MEMBER_LEVEL) or can_manage_system(role)


def can_access_leadership_features(role: RoleTag) -> bool:
    return has_security_level(role, LEADERSHIP_LEVEL) or can_manage_system(role)


def can_access_senior_leadership(role: RoleTag) -> bool:
    return has_security_level(role, SENIOR_LEADERSHIP_LEVEL) or can_manage_system(
        role
    )


def is_sudo_admin_email(email: Optional[str]) -> bool:
    if not email:
        return False
    return email.strip().lower() in get_settings().SUDO_ADMIN_EMAILS


def require_security_level(
    actor: Optional[Actor],
    required_level: int,
    *,
    resource: str,
    access_log: Optional["AccessLog"] = None,
) -> Actor:
    """Raise ``PermissionDenied`` unless the actor holds ``required_level``."""
    granted = actor is not None and has_security_level(actor.role, required_level)
    if access_log is not None:
        access_log.record(
            resource=resource,
            actor=actor,
            granted=granted,
            reason="level_ok" if granted else f"level_below_{required_level}",
            metadata={"required_level": required_level},
        )
    if not granted:
        logger.warning(
            "Denied %s: actor=%s role=%s required_level=%d",
            resource,
            actor.audit_label if actor else None,
            actor.role if actor else None,
            required_level,
            extra={"resource": resource},
        )
        raise PermissionDenied(
            "Leadership privileges required"
            if required_level >= LEADERSHIP_LEVEL
            else "Insufficient permissions",
            required_level=required_level,
        )
    return actor


def require_system_admin(
    actor: Optional[Actor],
    *,
    resource: str,
    access_log: Optional["AccessLog"] = None,
) -> Actor:
    """Raise ``PermissionDenied`` unless the actor holds the Sudo Admin tag."""
    granted = actor is not None and can_manage_system(actor.role)
    if access_log is not None:
        access_log.record(
            resource=resource,
            actor=actor,
            granted=granted,
            reason="sudo_admin" if granted else "sudo_admin_required",
        )
    if not granted:
        logger.warning(
            "Denied %s: actor=%s role=%s requires sudo admin",
            resource,
            actor.audit_label if actor else None,
            actor.role if actor else None,
            extra={"resource": resource},
        )
        raise PermissionDenied(
            "Insufficient permissions - Sudo Admin required",
            capability="manage_system",
        )
    return actor
