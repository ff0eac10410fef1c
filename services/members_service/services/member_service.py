"""Member directory: load, filter and mutate member profiles.

Reads are trusted to have passed the caller's gate; every write re-checks the
actor's level before touching the store. The in-memory list is owned by one
``MemberDirectory`` and is only replaced wholesale (reload) or patched by id
(after a successful save).
"""

from datetime import date
from typing import Any, Iterable, Optional, Union

from pydantic import ValidationError as SchemaValidationError

from libs.auth.access_log import AccessLog
from libs.auth.gate import (
    LEADERSHIP_LEVEL,
    can_manage_system,
    is_sudo_admin_email,
    require_security_level,
    require_system_admin,
)
from libs.auth.models import Actor
from libs.auth.roles import HangarRole, parse_role, security_level
from libs.common.datetime_utils import utc_now_iso
from libs.common.errors import (
    DocumentNotFound,
    PermissionDenied,
    StoreError,
    ValidationError,
)
from libs.common.logging import get_logger
from libs.store.base import USERS_COLLECTION, DocumentStore, check_document_id
from libs.store.cache import ResponseSequencer
from services.members_service.schemas import (
    ALL_ROLES,
    DirectoryStats,
    ImportResult,
    MemberForm,
    MemberProfile,
)

logger = get_logger(__name__)

ORDER_FIELD = "displayName"

FormInput = Union[MemberForm, dict[str, Any]]


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def filter_members(
    members: Iterable[MemberProfile],
    search_text: Optional[str] = "",
    role_filter: Optional[str] = ALL_ROLES,
) -> list[MemberProfile]:
    """
    Case-insensitive substring match on display name or email, intersected
    with an exact role match unless ``role_filter`` is ``"all"``.
    """
    needle = (search_text or "").lower()
    match_all_roles = role_filter is None or role_filter == ALL_ROLES

    selected = []
    for member in members:
        matches_search = (
            needle in member.display_name.lower() or needle in member.email.lower()
        )
        matches_role = match_all_roles or member.role == role_filter
        if matches_search and matches_role:
            selected.append(member)
    return selected


def directory_stats(members: Iterable[MemberProfile]) -> DirectoryStats:
    members = list(members)
    return DirectoryStats(
        total=len(members),
        active=sum(1 for m in members if m.is_active),
        leadership=sum(1 for m in members if m.security_level >= LEADERSHIP_LEVEL),
    )


def _parse_form(form: FormInput) -> MemberForm:
    if isinstance(form, MemberForm):
        return form
    try:
        return MemberForm.model_validate(form)
    except SchemaValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(
            f"Invalid member data: {first.get('msg')}", field=field or None
        ) from exc


def _log_context(member_id: str, actor: Actor) -> dict[str, str]:
    return {
        "collection": USERS_COLLECTION,
        "doc_id": member_id,
        "actor": actor.audit_label,
    }


def _check_required(form: MemberForm) -> None:
    if not form.display_name or not form.email:
        raise ValidationError(
            "Please fill in required fields (Name and Email)",
            field="displayName" if not form.display_name else "email",
        )


# ---------------------------------------------------------------------------
# Directory
# ---------------------------------------------------------------------------


class MemberDirectory:
    def __init__(
        self,
        store: DocumentStore,
        *,
        access_log: Optional[AccessLog] = None,
    ):
        self.store = store
        self.access_log = access_log
        self._members: list[MemberProfile] = []
        self._sequencer = ResponseSequencer()

    @property
    def members(self) -> list[MemberProfile]:
        return list(self._members)

    # -- reads ---------------------------------------------------------------

    async def load_all(self) -> list[MemberProfile]:
        """
        Reload every profile ordered by display name.

        On a store failure the previous list is kept and the error is raised.
        A response older than one already applied is discarded.
        """
        ticket = self._sequencer.issue()
        try:
            records = await self.store.query_collection(USERS_COLLECTION, ORDER_FIELD)
        except StoreError as exc:
            logger.warning(
                "Failed to load members (keeping %d cached): %s",
                len(self._members),
                exc.message,
            )
            raise

        members: list[MemberProfile] = []
        for record in records:
            try:
                members.append(MemberProfile.from_document(record))
            except SchemaValidationError:
                logger.warning(
                    "Skipping malformed member document %s",
                    record.get("id"),
                    extra={"collection": USERS_COLLECTION, "doc_id": record.get("id")},
                )
        if not self._sequencer.accept(ticket):
            logger.info("Discarding stale member list response #%d", ticket)
            return self.members

        self._members = members
        logger.info("Loaded %d members", len(members))
        return self.members

    async def get(self, member_id: str) -> MemberProfile:
        check_document_id(member_id, field="member_id")
        record = await self.store.get_document(USERS_COLLECTION, member_id)
        try:
            return MemberProfile.from_document(record)
        except SchemaValidationError as exc:
            raise ValidationError(
                f"Stored member {member_id} is malformed: {exc.errors()[0]['msg']}",
                field="member_id",
            ) from exc

    def filter(
        self, search_text: Optional[str] = "", role_filter: Optional[str] = ALL_ROLES
    ) -> list[MemberProfile]:
        return filter_members(self._members, search_text, role_filter)

    def stats(self, members: Optional[Iterable[MemberProfile]] = None) -> DirectoryStats:
        return directory_stats(self._members if members is None else members)

    async def resolve_role(self, uid: str, email: Optional[str] = None) -> str:
        """
        Role of a signed-in identity: configured sudo admin emails first, then
        the ``role`` field of the user's profile, else Guest.
        """
        if is_sudo_admin_email(email):
            return HangarRole.SUDO_ADMIN.value
        try:
            record = await self.store.get_document(USERS_COLLECTION, uid)
        except DocumentNotFound:
            logger.info("No profile for %s; resolving as guest", email or uid)
            return HangarRole.GUEST.value
        return record.get("role") or HangarRole.GUEST.value

    # -- writes --------------------------------------------------------------

    async def save(
        self,
        actor: Actor,
        form_data: FormInput,
        existing_id: Optional[str] = None,
    ) -> str:
        """
        Create (no ``existing_id``) or update a profile and return its id.

        Order of checks: required fields, then the actor's level, then the
        Sudo Admin grant guard. Nothing is written if any of them fails.
        """
        form = _parse_form(form_data)
        _check_required(form)
        require_security_level(
            actor,
            LEADERSHIP_LEVEL,
            resource="Member Manager - Save",
            access_log=self.access_log,
        )

        if existing_id is None:
            payload = form.model_dump(by_alias=True, mode="json")
            if not payload.get("joinDate"):
                payload["joinDate"] = date.today().isoformat()
        else:
            check_document_id(existing_id, field="existing_id")
            # Only the fields the caller supplied are overwritten
            payload = form.model_dump(by_alias=True, mode="json", exclude_unset=True)
            payload["displayName"] = form.display_name
            payload["email"] = form.email

        if "role" in payload:
            self._guard_role_grant(actor, payload["role"])
            payload["securityLevel"] = security_level(payload["role"])

        now = utc_now_iso()
        payload["updatedAt"] = now
        payload["updatedBy"] = actor.audit_label

        if existing_id is None:
            payload["createdAt"] = now
            payload["createdBy"] = actor.audit_label
            member_id = await self.store.create_document(USERS_COLLECTION, payload)
            logger.info(
                "Member %s added by %s",
                member_id,
                actor.audit_label,
                extra=_log_context(member_id, actor),
            )
        else:
            member_id = existing_id
            await self.store.update_document(USERS_COLLECTION, member_id, payload)
            logger.info(
                "Member %s updated by %s",
                member_id,
                actor.audit_label,
                extra=_log_context(member_id, actor),
            )

        self._merge_cached(member_id, payload)
        return member_id

    async def set_active(self, actor: Actor, member_id: str, active: bool) -> None:
        """Deactivate or reactivate a profile. There is no hard delete."""
        check_document_id(member_id, field="member_id")
        require_security_level(
            actor,
            LEADERSHIP_LEVEL,
            resource="Member Manager - Activation",
            access_log=self.access_log,
        )
        payload = {
            "isActive": bool(active),
            "updatedAt": utc_now_iso(),
            "updatedBy": actor.audit_label,
        }
        await self.store.update_document(USERS_COLLECTION, member_id, payload)
        logger.info(
            "Member %s %s by %s",
            member_id,
            "reactivated" if active else "deactivated",
            actor.audit_label,
        )
        self._merge_cached(member_id, payload)

    async def update_role(
        self, actor: Actor, member_id: str, new_role: Union[HangarRole, str]
    ) -> None:
        """Change a member's role. Sudo Admin only; Sudo Admin itself is never granted."""
        check_document_id(member_id, field="member_id")
        require_system_admin(
            actor, resource="User Manager - Role Change", access_log=self.access_log
        )

        role = parse_role(new_role)
        if role is None:
            raise ValidationError("Invalid role specified", field="role")
        if role is HangarRole.SUDO_ADMIN:
            raise ValidationError(
                "Sudo admin status is granted by configuration and cannot be assigned",
                field="role",
            )

        payload = {
            "role": role.value,
            "securityLevel": security_level(role),
            "updatedAt": utc_now_iso(),
            "updatedBy": actor.audit_label,
        }
        await self.store.update_document(USERS_COLLECTION, member_id, payload)
        logger.info(
            "Member %s role set to %s by %s", member_id, role.value, actor.audit_label
        )
        self._merge_cached(member_id, payload)

    async def import_members(
        self, actor: Actor, rows: Iterable[FormInput]
    ) -> list[ImportResult]:
        """
        Create one profile per roster row. Each row stands alone: a row that
        fails validation or the write is reported and the batch continues.
        """
        require_system_admin(
            actor, resource="Member Data Importer", access_log=self.access_log
        )

        results: list[ImportResult] = []
        for index, row in enumerate(rows):
            display_name = row.get("displayName") if isinstance(row, dict) else None
            try:
                form = _parse_form(row)
                display_name = form.display_name
                _check_required(form)
                payload = form.model_dump(by_alias=True, mode="json")
                payload["securityLevel"] = security_level(payload["role"])
                now = utc_now_iso()
                payload.update(
                    createdAt=now,
                    createdBy=actor.audit_label,
                    updatedAt=now,
                    updatedBy=actor.audit_label,
                )
                member_id = await self.store.create_document(
                    USERS_COLLECTION, payload
                )
            except (ValidationError, StoreError) as exc:
                logger.warning("Roster row %d not imported: %s", index, exc.message)
                results.append(
                    ImportResult(
                        index=index,
                        success=False,
                        display_name=display_name,
                        error=exc.message,
                    )
                )
                continue

            self._merge_cached(member_id, payload)
            results.append(
                ImportResult(
                    index=index,
                    success=True,
                    member_id=member_id,
                    display_name=display_name,
                )
            )

        imported = sum(1 for r in results if r.success)
        logger.info(
            "Roster import by %s: %d of %d rows imported",
            actor.audit_label,
            imported,
            len(results),
        )
        return results

    # -- internals -----------------------------------------------------------

    def _guard_role_grant(self, actor: Actor, role: str) -> None:
        if parse_role(role) is HangarRole.SUDO_ADMIN and not can_manage_system(
            actor.role
        ):
            raise PermissionDenied(
                "Only a system administrator can grant Sudo Admin",
                capability="manage_system",
            )

    def _merge_cached(self, member_id: str, payload: dict[str, Any]) -> None:
        """Overwrite-by-id merge of a successful write into the cached list."""
        for index, cached in enumerate(self._members):
            if cached.id == member_id:
                merged = cached.model_dump(by_alias=True)
                merged.update(payload)
                self._members[index] = MemberProfile.from_document(merged)
                break
        else:
            if "displayName" not in payload:
                return
            self._members.append(
                MemberProfile.from_document({**payload, "id": member_id})
            )
        self._members.sort(key=lambda m: m.display_name)
