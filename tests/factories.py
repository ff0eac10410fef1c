"""
Document factories for creating valid test data.

Every factory returns the dict that would sit in the store. Override any field
via kwargs.

Usage:
    store.seed("users", "m1", member_document(displayName="Jane Doe"))
"""

import uuid

from libs.common.datetime_utils import utc_now_iso


def _unique_email() -> str:
    return f"test-{uuid.uuid4().hex[:8]}@orlandohangar.org"


def member_document(**overrides) -> dict:
    now = utc_now_iso()
    defaults = {
        "displayName": "Test Member",
        "email": _unique_email(),
        "phone": "",
        "address": "",
        "emergencyContact": "",
        "emergencyPhone": "",
        "role": "member",
        "joinDate": "2024-01-15",
        "notes": "",
        "profilePhoto": "",
        "isActive": True,
        "createdAt": now,
        "createdBy": "seed@orlandohangar.org",
        "updatedAt": now,
        "updatedBy": "seed@orlandohangar.org",
    }
    defaults.update(overrides)
    return defaults


def event_document(**overrides) -> dict:
    defaults = {
        "title": "Monthly Hangar Meeting",
        "date": "2024-03-12",
        "time": "19:00",
        "type": "meeting",
    }
    defaults.update(overrides)
    return defaults


def attendance_document(event_id: str, member_id: str, **overrides) -> dict:
    defaults = {
        "memberId": member_id,
        "eventId": event_id,
        "status": "present",
        "recordedAt": utc_now_iso(),
        "recordedBy": "keyman@orlandohangar.org",
    }
    defaults.update(overrides)
    return defaults
