"""Events Service schemas package."""

from services.events_service.schemas.main import Event

__all__ = ["Event"]
