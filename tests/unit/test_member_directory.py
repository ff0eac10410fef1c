"""Unit tests for MemberDirectory.

Tests drive the directory against the in-memory store double. No network.
"""

import asyncio

import pytest

from libs.common.errors import (
    DocumentNotFound,
    PermissionDenied,
    StoreUnavailable,
    ValidationError,
)
from services.members_service.schemas import MemberProfile
from services.members_service.services.member_service import (
    MemberDirectory,
    directory_stats,
    filter_members,
)
from tests.factories import member_document
from tests.fakes import FakeDocumentStore


@pytest.fixture
def directory(store, access_log):
    return MemberDirectory(store, access_log=access_log)


def _seed_roster(store):
    store.seed(
        "users",
        "m1",
        member_document(displayName="Charlie Baker", email="charlie@mail.com"),
    )
    store.seed(
        "users",
        "m2",
        member_document(
            displayName="Alice Smith", email="alice@mail.com", role="keyman"
        ),
    )
    store.seed(
        "users",
        "m3",
        member_document(
            displayName="Bob Jones",
            email="bob@mail.com",
            role="governor",
            isActive=False,
        ),
    )


def _profile(doc_id, **fields):
    return MemberProfile.from_document(member_document(id=doc_id, **fields))


# ---------------------------------------------------------------------------
# load_all
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_load_all_orders_by_display_name(store, directory):
    _seed_roster(store)

    members = await directory.load_all()

    assert [m.display_name for m in members] == [
        "Alice Smith",
        "Bob Jones",
        "Charlie Baker",
    ]
    assert [m.id for m in members] == ["m2", "m3", "m1"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_load_all_store_id_wins(store, directory):
    store.seed("users", "real-id", member_document(id="stale-id"))

    members = await directory.load_all()

    assert members[0].id == "real-id"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_load_all_empty_collection(directory):
    assert await directory.load_all() == []
    assert directory.members == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_load_all_tolerates_sparse_documents(store, directory):
    store.seed("users", "m9", {"displayName": "Roster Import", "role": None})

    [member] = await directory.load_all()

    assert member.email == ""
    assert member.role == "guest"
    assert member.is_active is True
    assert not member.is_valid


@pytest.mark.asyncio
@pytest.mark.unit
async def test_load_all_skips_malformed_profiles(store, directory):
    store.seed("users", "m1", member_document(displayName="Alice"))
    store.seed("users", "m2", member_document(displayName="Bob", isActive="maybe"))

    members = await directory.load_all()

    assert [m.id for m in members] == ["m1"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_malformed_profile_is_validation_error(store, directory):
    store.seed("users", "m2", member_document(isActive="maybe"))

    with pytest.raises(ValidationError) as exc_info:
        await directory.get("m2")

    assert exc_info.value.field == "member_id"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_load_failure_keeps_previous_list(store, directory):
    _seed_roster(store)
    await directory.load_all()

    store.fail_with = StoreUnavailable("offline")
    with pytest.raises(StoreUnavailable):
        await directory.load_all()

    assert len(directory.members) == 3


class GatedStore(FakeDocumentStore):
    """Holds the first query open until ``gate`` is set."""

    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()
        self._held = False

    async def query_collection(self, collection, order_by):
        records = await super().query_collection(collection, order_by)
        if not self._held:
            self._held = True
            await self.gate.wait()
        return records


@pytest.mark.asyncio
@pytest.mark.unit
async def test_late_older_response_does_not_overwrite_newer():
    store = GatedStore()
    store.seed("users", "m1", member_document(displayName="Old Name"))
    directory = MemberDirectory(store)

    slow = asyncio.create_task(directory.load_all())
    await asyncio.sleep(0)
    store.collections["users"]["m1"]["displayName"] = "New Name"
    await directory.load_all()
    store.gate.set()
    await slow

    assert [m.display_name for m in directory.members] == ["New Name"]


# ---------------------------------------------------------------------------
# filter / stats
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestFilterMembers:
    """Pure filtering over a fixed list."""

    members = [
        _profile("1", displayName="Alice Smith", email="alice@mail.com", role="member"),
        _profile("2", displayName="Bob", email="SMITH.bob@mail.com", role="keyman"),
        _profile("3", displayName="Carol", email="carol@mail.com", role="member"),
    ]

    def test_search_is_case_insensitive_on_name_or_email(self):
        result = filter_members(self.members, "smith", "all")
        assert [m.id for m in result] == ["1", "2"]

    def test_role_filter_intersects_search(self):
        result = filter_members(self.members, "smith", "member")
        assert [m.id for m in result] == ["1"]

    def test_role_only_filter(self):
        result = filter_members(self.members, "", "member")
        assert [m.id for m in result] == ["1", "3"]

    def test_empty_search_and_all_roles_is_identity(self):
        assert filter_members(self.members, "", "all") == self.members
        assert filter_members(self.members, None, None) == self.members

    def test_result_is_a_subset(self):
        for search in ("a", "mail", "zzz"):
            for role in ("all", "member", "keyman", "governor"):
                result = filter_members(self.members, search, role)
                assert all(m in self.members for m in result)

    def test_stats(self):
        members = self.members + [
            _profile("4", displayName="Dan", role="governor", isActive=False)
        ]
        stats = directory_stats(members)
        assert (stats.total, stats.active, stats.leadership) == (4, 3, 2)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_directory_filter_and_stats(store, directory):
    _seed_roster(store)
    await directory.load_all()

    assert [m.id for m in directory.filter("BOB")] == ["m3"]
    stats = directory.stats()
    assert (stats.total, stats.active, stats.leadership) == (3, 2, 2)


# ---------------------------------------------------------------------------
# save
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_save_creates_profile(store, directory, keyman):
    await directory.load_all()

    member_id = await directory.save(
        keyman,
        {"displayName": "  Jane Doe ", "email": "jane@mail.com", "role": "member"},
    )

    stored = store.collections["users"][member_id]
    assert stored["displayName"] == "Jane Doe"
    assert stored["role"] == "member"
    assert stored["securityLevel"] == 2
    assert stored["isActive"] is True
    assert stored["createdBy"] == keyman.email
    assert stored["updatedBy"] == keyman.email
    assert stored["joinDate"]
    assert [m.id for m in directory.members] == [member_id]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_save_new_member_appears_in_sorted_position(store, directory, keyman):
    _seed_roster(store)
    await directory.load_all()

    await directory.save(keyman, {"displayName": "Betty", "email": "betty@mail.com"})

    assert [m.display_name for m in directory.members] == [
        "Alice Smith",
        "Betty",
        "Bob Jones",
        "Charlie Baker",
    ]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_save_requires_leadership(
    store, directory, member, access_log, sudo_admin
):
    with pytest.raises(PermissionDenied):
        await directory.save(
            member, {"displayName": "Jane Doe", "email": "jane@mail.com"}
        )

    assert store.writes() == []
    assert access_log.events(sudo_admin)[0].granted is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_candidate_cannot_update_existing_profile(store, directory, candidate):
    _seed_roster(store)
    before = store.collections["users"]["m1"].copy()

    with pytest.raises(PermissionDenied):
        await directory.save(
            candidate,
            {"displayName": "Charlie Baker", "email": "charlie@mail.com"},
            existing_id="m1",
        )

    assert store.writes() == []
    assert store.collections["users"]["m1"] == before


@pytest.mark.asyncio
@pytest.mark.unit
async def test_save_validates_before_checking_permission(store, directory, guest):
    with pytest.raises(ValidationError) as exc_info:
        await directory.save(guest, {"displayName": "   ", "email": "jane@mail.com"})

    assert exc_info.value.message == "Please fill in required fields (Name and Email)"
    assert store.writes() == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_save_rejects_unknown_role(store, directory, keyman):
    with pytest.raises(ValidationError) as exc_info:
        await directory.save(
            keyman, {"displayName": "Jane", "email": "j@mail.com", "role": "pilot"}
        )

    assert exc_info.value.field == "role"
    assert store.writes() == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_save_update_overwrites_only_supplied_fields(store, directory, governor):
    _seed_roster(store)
    await directory.load_all()

    returned = await directory.save(
        governor,
        {"displayName": "Alice Smith", "email": "alice@mail.com", "phone": "555-0100"},
        existing_id="m2",
    )

    assert returned == "m2"
    stored = store.collections["users"]["m2"]
    assert stored["phone"] == "555-0100"
    assert stored["role"] == "keyman"
    assert stored["updatedBy"] == governor.email
    assert stored["createdBy"] == "seed@orlandohangar.org"
    cached = next(m for m in directory.members if m.id == "m2")
    assert cached.phone == "555-0100"
    assert cached.role == "keyman"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_save_deactivates_and_reactivates(store, directory, keyman):
    _seed_roster(store)
    await directory.load_all()
    form = {"displayName": "Charlie Baker", "email": "charlie@mail.com"}

    await directory.save(keyman, {**form, "isActive": False}, existing_id="m1")
    assert store.collections["users"]["m1"]["isActive"] is False
    assert directory.stats().active == 1

    await directory.save(keyman, {**form, "isActive": True}, existing_id="m1")
    assert store.collections["users"]["m1"]["isActive"] is True
    assert directory.stats().active == 2


@pytest.mark.asyncio
@pytest.mark.unit
async def test_save_role_change_updates_security_level(store, directory, keyman):
    _seed_roster(store)

    await directory.save(
        keyman,
        {
            "displayName": "Charlie Baker",
            "email": "charlie@mail.com",
            "role": "beam_man",
        },
        existing_id="m1",
    )

    assert store.collections["users"]["m1"]["securityLevel"] == 3


@pytest.mark.asyncio
@pytest.mark.unit
async def test_save_missing_document_leaves_cache_unchanged(store, directory, keyman):
    _seed_roster(store)
    await directory.load_all()
    before = directory.members

    with pytest.raises(DocumentNotFound):
        await directory.save(
            keyman,
            {"displayName": "Ghost", "email": "ghost@mail.com"},
            existing_id="missing",
        )

    assert directory.members == before


@pytest.mark.asyncio
@pytest.mark.unit
async def test_save_store_failure_propagates(store, directory, keyman):
    store.fail_with = StoreUnavailable("offline")

    with pytest.raises(StoreUnavailable):
        await directory.save(keyman, {"displayName": "Jane", "email": "j@mail.com"})

    assert directory.members == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_only_sudo_admin_grants_sudo_admin(
    store, directory, governor, sudo_admin
):
    form = {"displayName": "Ops", "email": "ops@mail.com", "role": "sudo_admin"}

    with pytest.raises(PermissionDenied):
        await directory.save(governor, form)
    assert store.writes() == []

    member_id = await directory.save(sudo_admin, form)
    assert store.collections["users"][member_id]["securityLevel"] == 4


# ---------------------------------------------------------------------------
# set_active / update_role
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_set_active_toggles_flag(store, directory, keyman, member):
    _seed_roster(store)
    await directory.load_all()

    await directory.set_active(keyman, "m1", False)

    assert store.collections["users"]["m1"]["isActive"] is False
    assert directory.stats().active == 1

    with pytest.raises(PermissionDenied):
        await directory.set_active(member, "m1", True)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_role_requires_sudo_admin(store, directory, governor, sudo_admin):
    _seed_roster(store)

    with pytest.raises(PermissionDenied):
        await directory.update_role(governor, "m1", "keyman")

    await directory.update_role(sudo_admin, "m1", "historian")

    stored = store.collections["users"]["m1"]
    assert stored["role"] == "historian"
    assert stored["securityLevel"] == 4


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize("role", ["pilot", "sudo_admin"])
async def test_update_role_rejects_unassignable(store, directory, sudo_admin, role):
    _seed_roster(store)

    with pytest.raises(ValidationError):
        await directory.update_role(sudo_admin, "m1", role)

    assert store.writes() == []


# ---------------------------------------------------------------------------
# get / resolve_role
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_single_profile(store, directory):
    _seed_roster(store)

    profile = await directory.get("m2")

    assert profile.display_name == "Alice Smith"
    assert profile.role_name == "Keyman"

    with pytest.raises(ValidationError):
        await directory.get("users/m2")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_resolve_role(store, directory):
    _seed_roster(store)

    assert await directory.resolve_role("m2", "alice@mail.com") == "keyman"
    assert await directory.resolve_role("nobody", "new@mail.com") == "guest"
    assert await directory.resolve_role("m1", "ROOT@orlandohangar.org") == "sudo_admin"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_resolve_role_store_failure_propagates(store, directory):
    store.fail_with = StoreUnavailable("offline")

    with pytest.raises(StoreUnavailable):
        await directory.resolve_role("m1", "charlie@mail.com")


# ---------------------------------------------------------------------------
# import_members
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_import_reports_each_row(store, directory, sudo_admin):
    rows = [
        {"displayName": "Dana", "email": "dana@mail.com", "role": "candidate"},
        {"displayName": "", "email": "blank@mail.com"},
        {"displayName": "Eve", "email": "eve@mail.com", "role": "pilot"},
        {"displayName": "Finn", "email": "finn@mail.com"},
    ]

    results = await directory.import_members(sudo_admin, rows)

    assert [r.success for r in results] == [True, False, False, True]
    assert results[1].error == "Please fill in required fields (Name and Email)"
    assert results[2].display_name == "Eve"
    assert len(store.collections["users"]) == 2
    assert [m.display_name for m in directory.members] == ["Dana", "Finn"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_import_requires_sudo_admin(store, directory, governor):
    with pytest.raises(PermissionDenied):
        await directory.import_members(
            governor, [{"displayName": "Dana", "email": "dana@mail.com"}]
        )
    assert store.writes() == []
