"""In-memory monitor of access decisions.

Every gate check made with a log attached is recorded here so a system
administrator can see who reached (or was refused) which resource. The log is
bounded, newest first, and lives for the process only.

Usage:
    log = AccessLog()
    require_security_level(actor, 3, resource="Member Manager", access_log=log)
    stats = log.statistics(admin_actor)
"""

import uuid
from collections import Counter, deque
from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from libs.auth.gate import can_manage_system
from libs.auth.models import Actor
from libs.auth.roles import security_level
from libs.common.config import get_settings
from libs.common.datetime_utils import as_utc, utc_now
from libs.common.errors import PermissionDenied
from libs.common.logging import get_logger

logger = get_logger(__name__)

DEFAULT_QUERY_LIMIT = 100
RECENT_ACTIVITY_LIMIT = 20


class AccessEvent(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    resource: str
    user_email: Optional[str] = None
    user_role: Optional[str] = None
    user_level: int = 0
    granted: bool
    reason: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utc_now)

    @field_validator("timestamp")
    @classmethod
    def timestamp_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class AccessEventFilters(BaseModel):
    user_email: Optional[str] = None
    resource: Optional[str] = None
    user_role: Optional[str] = None
    granted: Optional[bool] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    limit: int = DEFAULT_QUERY_LIMIT

    # Naive bounds are read as UTC so they compare with stored timestamps
    @field_validator("date_from", "date_to")
    @classmethod
    def bound_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return None if v is None else as_utc(v)


class AccessStatistics(BaseModel):
    total_events: int
    access_granted: int
    access_denied: int
    unique_users: int
    unique_resources: int
    role_breakdown: dict[str, int]
    denial_reasons: dict[str, int]
    recent_activity: list[AccessEvent]


class AccessLog:
    def __init__(self, max_entries: Optional[int] = None):
        if max_entries is None:
            max_entries = get_settings().ACCESS_LOG_MAX_ENTRIES
        self._events: deque[AccessEvent] = deque(maxlen=max_entries)

    def __len__(self) -> int:
        return len(self._events)

    def record(
        self,
        *,
        resource: str,
        actor: Optional[Actor],
        granted: bool,
        reason: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> AccessEvent:
        role = actor.role if actor else None
        event = AccessEvent(
            resource=resource,
            user_email=actor.audit_label if actor else None,
            user_role=role,
            user_level=security_level(role),
            granted=granted,
            reason=reason,
            metadata=metadata or {},
        )
        self._events.appendleft(event)
        if event.user_level >= 4:
            logger.info(
                "Senior access event: resource=%s user=%s role=%s granted=%s reason=%s",
                resource,
                event.user_email,
                role,
                granted,
                reason,
            )
        return event

    # -- administrator views -------------------------------------------------

    def _require_admin(self, actor: Actor) -> None:
        if not can_manage_system(actor.role):
            raise PermissionDenied(
                "Insufficient permissions - Sudo Admin required",
                capability="manage_system",
            )

    def events(
        self, actor: Actor, filters: Optional[AccessEventFilters] = None
    ) -> list[AccessEvent]:
        self._require_admin(actor)
        filters = filters or AccessEventFilters()

        selected = list(self._events)
        if filters.user_email:
            needle = filters.user_email.lower()
            selected = [
                e for e in selected if e.user_email and needle in e.user_email.lower()
            ]
        if filters.resource:
            needle = filters.resource.lower()
            selected = [e for e in selected if needle in e.resource.lower()]
        if filters.user_role:
            selected = [e for e in selected if e.user_role == filters.user_role]
        if filters.granted is not None:
            selected = [e for e in selected if e.granted == filters.granted]
        if filters.date_from:
            selected = [e for e in selected if e.timestamp >= filters.date_from]
        if filters.date_to:
            selected = [e for e in selected if e.timestamp <= filters.date_to]

        selected.sort(key=lambda e: e.timestamp, reverse=True)
        return selected[: filters.limit]

    def statistics(self, actor: Actor) -> AccessStatistics:
        self._require_admin(actor)

        granted = sum(1 for e in self._events if e.granted)
        denial_reasons = Counter(e.reason for e in self._events if not e.granted)
        roles = Counter(e.user_role or "unknown" for e in self._events)
        since = utc_now() - timedelta(hours=24)
        recent = [e for e in self._events if e.timestamp > since]

        return AccessStatistics(
            total_events=len(self._events),
            access_granted=granted,
            access_denied=len(self._events) - granted,
            unique_users=len({e.user_email for e in self._events}),
            unique_resources=len({e.resource for e in self._events}),
            role_breakdown=dict(roles),
            denial_reasons=dict(denial_reasons),
            recent_activity=recent[:RECENT_ACTIVITY_LIMIT],
        )

    def clear(self, actor: Actor) -> int:
        self._require_admin(actor)
        cleared = len(self._events)
        self._events.clear()
        self.record(
            resource="Access Monitor - Log Cleared",
            actor=actor,
            granted=True,
            reason="admin_log_cleared",
            metadata={"cleared_count": cleared},
        )
        logger.info("Access log cleared by %s (%d events)", actor.audit_label, cleared)
        return cleared

    def export(
        self, actor: Actor, filters: Optional[AccessEventFilters] = None
    ) -> dict[str, Any]:
        selected = self.events(actor, filters)
        return {
            "exported_at": utc_now(),
            "exported_by": actor.audit_label,
            "filters": (filters or AccessEventFilters()).model_dump(),
            "total_events": len(self._events),
            "exported_events": len(selected),
            "events": [e.model_dump() for e in selected],
        }
