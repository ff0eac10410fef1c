"""Attendance Service models package."""

from services.attendance_service.models.enums import (
    STATUS_DISPLAY,
    AttendanceStatus,
    parse_status,
    status_color,
    status_icon,
)

__all__ = [
    "STATUS_DISPLAY",
    "AttendanceStatus",
    "parse_status",
    "status_color",
    "status_icon",
]
