"""Attendance ledger: one record per (event, member) pair.

Records live in the ``attendance`` collection under the deterministic key
``"{event_id}_{member_id}"`` and are written with a full replace, so a repeat
write is harmless and a new status simply supersedes the old one. No history
is kept.
"""

from typing import Optional, Union

from pydantic import ValidationError as SchemaValidationError

from libs.auth.access_log import AccessLog
from libs.auth.gate import LEADERSHIP_LEVEL, require_security_level
from libs.auth.models import Actor
from libs.common.datetime_utils import utc_now_iso
from libs.common.errors import StoreError, ValidationError
from libs.common.logging import get_logger
from libs.store.base import ATTENDANCE_COLLECTION, DocumentStore, check_document_id
from libs.store.cache import ResponseSequencer
from services.attendance_service.models import AttendanceStatus, parse_status
from services.attendance_service.schemas import (
    AttendanceRecord,
    AttendanceSummary,
    attendance_key,
)

logger = get_logger(__name__)


class AttendanceLedger:
    def __init__(
        self,
        store: DocumentStore,
        *,
        access_log: Optional[AccessLog] = None,
    ):
        self.store = store
        self.access_log = access_log
        self._records: dict[str, AttendanceRecord] = {}
        self._sequencer = ResponseSequencer()

    def __len__(self) -> int:
        return len(self._records)

    async def record_status(
        self,
        actor: Actor,
        member_id: str,
        event_id: str,
        status: Union[AttendanceStatus, str],
    ) -> AttendanceRecord:
        """Write the status for one member at one event (idempotent replace)."""
        require_security_level(
            actor,
            LEADERSHIP_LEVEL,
            resource="Member Manager - Attendance",
            access_log=self.access_log,
        )
        parsed = parse_status(status)
        if parsed is None:
            raise ValidationError(
                f"Unknown attendance status: {status!r}", field="status"
            )
        check_document_id(member_id, field="member_id")
        check_document_id(event_id, field="event_id")

        record = AttendanceRecord(
            member_id=member_id,
            event_id=event_id,
            status=parsed,
            recorded_at=utc_now_iso(),
            recorded_by=actor.audit_label,
        )
        await self.store.set_document(
            ATTENDANCE_COLLECTION, record.key, record.to_document()
        )
        self._records[record.key] = record
        logger.info(
            "Attendance %s=%s recorded by %s",
            record.key,
            parsed.value,
            actor.audit_label,
            extra={
                "collection": ATTENDANCE_COLLECTION,
                "doc_id": record.key,
                "actor": actor.audit_label,
            },
        )
        return record

    def get_status(self, member_id: str, event_id: str) -> Optional[AttendanceRecord]:
        """Cached record for the pair; never goes to the store."""
        return self._records.get(attendance_key(event_id, member_id))

    async def load_all(self) -> list[AttendanceRecord]:
        """
        Replace the cache with every stored record.

        The previous cache survives a store failure. Documents that do not
        parse as attendance records are skipped and logged.
        """
        ticket = self._sequencer.issue()
        try:
            documents = await self.store.get_all(ATTENDANCE_COLLECTION)
        except StoreError as exc:
            logger.warning(
                "Failed to load attendance (keeping %d cached): %s",
                len(self._records),
                exc.message,
            )
            raise

        records: dict[str, AttendanceRecord] = {}
        for document in documents:
            try:
                record = AttendanceRecord.from_document(document)
            except SchemaValidationError:
                logger.warning(
                    "Skipping malformed attendance document %s", document.get("id")
                )
                continue
            records[record.key] = record

        if not self._sequencer.accept(ticket):
            logger.info("Discarding stale attendance response #%d", ticket)
            return list(self._records.values())

        self._records = records
        logger.info("Loaded %d attendance records", len(records))
        return list(records.values())

    def records_for_event(self, event_id: str) -> list[AttendanceRecord]:
        return [r for r in self._records.values() if r.event_id == event_id]

    def history_for_member(self, member_id: str) -> list[AttendanceRecord]:
        records = [r for r in self._records.values() if r.member_id == member_id]
        return sorted(records, key=lambda r: r.recorded_at, reverse=True)

    def summarize(self, event_id: str) -> AttendanceSummary:
        summary = AttendanceSummary(event_id=event_id)
        for record in self.records_for_event(event_id):
            field = record.status.value
            setattr(summary, field, getattr(summary, field) + 1)
        return summary
