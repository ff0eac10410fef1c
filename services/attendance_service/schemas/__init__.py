"""Attendance Service schemas package."""

from services.attendance_service.schemas.main import (
    AttendanceRecord,
    AttendanceSummary,
    attendance_key,
)

__all__ = [
    "AttendanceRecord",
    "AttendanceSummary",
    "attendance_key",
]
