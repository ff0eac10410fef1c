"""Joined refresh of the member directory and the event catalog."""

import asyncio
from typing import Optional

from pydantic import BaseModel, ConfigDict

from libs.common.errors import StoreError
from libs.common.logging import get_logger
from services.events_service.services.catalog import EventCatalog
from services.members_service.services.member_service import MemberDirectory

logger = get_logger(__name__)


class RefreshOutcome(BaseModel):
    members_loaded: Optional[int] = None
    events_loaded: Optional[int] = None
    errors: dict[str, StoreError] = {}

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def ok(self) -> bool:
        return not self.errors


async def refresh(directory: MemberDirectory, catalog: EventCatalog) -> RefreshOutcome:
    """
    Reload profiles and events concurrently and wait for both.

    A failure in one load does not cancel the other; each failed load keeps
    its previous cache and is reported in ``errors``. Anything that is not a
    store failure is re-raised once both loads have settled.
    """
    members_result, events_result = await asyncio.gather(
        directory.load_all(), catalog.load_all(), return_exceptions=True
    )

    outcome = RefreshOutcome()
    for name, result in (("members", members_result), ("events", events_result)):
        if isinstance(result, StoreError):
            outcome.errors[name] = result
        elif isinstance(result, BaseException):
            raise result
        elif name == "members":
            outcome.members_loaded = len(result)
        else:
            outcome.events_loaded = len(result)

    if outcome.errors:
        logger.warning("Refresh finished with failures: %s", sorted(outcome.errors))
    return outcome
