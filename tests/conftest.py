import pytest

from libs.auth.access_log import AccessLog
from libs.auth.models import Actor
from libs.auth.roles import HangarRole
from tests.fakes import FakeDocumentStore, make_actor


@pytest.fixture
def store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def access_log() -> AccessLog:
    return AccessLog(max_entries=50)


@pytest.fixture
def guest() -> Actor:
    return make_actor(HangarRole.GUEST)


@pytest.fixture
def candidate() -> Actor:
    return make_actor(HangarRole.CANDIDATE)


@pytest.fixture
def member() -> Actor:
    return make_actor(HangarRole.MEMBER)


@pytest.fixture
def keyman() -> Actor:
    return make_actor(HangarRole.KEYMAN)


@pytest.fixture
def governor() -> Actor:
    return make_actor(HangarRole.GOVERNOR)


@pytest.fixture
def sudo_admin() -> Actor:
    return make_actor(HangarRole.SUDO_ADMIN, email="root@orlandohangar.org")
