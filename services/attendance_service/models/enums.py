"""Enum definitions for attendance records."""

import enum
from typing import NamedTuple, Optional, Union


class AttendanceStatus(str, enum.Enum):
    """Mutually exclusive outcomes; any status may replace any other."""

    PRESENT = "present"
    ABSENT = "absent"
    CALLED_IN = "called_in"
    EXCUSED = "excused"


class StatusDisplay(NamedTuple):
    color: str
    icon: str


STATUS_DISPLAY: dict[AttendanceStatus, StatusDisplay] = {
    AttendanceStatus.PRESENT: StatusDisplay("#10dc60", "checkmark-circle-outline"),
    AttendanceStatus.CALLED_IN: StatusDisplay("#3880ff", "call-outline"),
    AttendanceStatus.EXCUSED: StatusDisplay("#ffce00", "information-circle-outline"),
    AttendanceStatus.ABSENT: StatusDisplay("#f04141", "close-circle-outline"),
}

UNKNOWN_STATUS_DISPLAY = StatusDisplay("#999", "help-circle-outline")


def parse_status(value: Union[AttendanceStatus, str, None]) -> Optional[AttendanceStatus]:
    if isinstance(value, AttendanceStatus):
        return value
    try:
        return AttendanceStatus(value)
    except ValueError:
        return None


def status_color(value: Union[AttendanceStatus, str, None]) -> str:
    status = parse_status(value)
    return STATUS_DISPLAY[status].color if status else UNKNOWN_STATUS_DISPLAY.color


def status_icon(value: Union[AttendanceStatus, str, None]) -> str:
    status = parse_status(value)
    return STATUS_DISPLAY[status].icon if status else UNKNOWN_STATUS_DISPLAY.icon
