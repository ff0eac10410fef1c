"""Tests for process-wide store client selection."""

import pytest

from libs.common.config import Settings
from libs.store.factory import build_document_store, resolve_store_client
from libs.store.rest import RestDocumentStore


def _settings(**overrides) -> Settings:
    values = {
        "STORE_CLIENT": "auto",
        "GOOGLE_APPLICATION_CREDENTIALS": None,
        "K_SERVICE": None,
        "FIRESTORE_EMULATOR_HOST": None,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.mark.unit
def test_auto_without_credentials_uses_rest():
    assert resolve_store_client(_settings()) == "rest"


@pytest.mark.unit
def test_auto_with_service_account_uses_native():
    settings = _settings(GOOGLE_APPLICATION_CREDENTIALS="/secrets/sa.json")
    assert resolve_store_client(settings) == "native"


@pytest.mark.unit
def test_auto_on_managed_runtime_uses_native():
    assert resolve_store_client(_settings(K_SERVICE="hangar-api")) == "native"


@pytest.mark.unit
def test_explicit_choice_wins():
    settings = _settings(STORE_CLIENT="rest", K_SERVICE="hangar-api")
    assert resolve_store_client(settings) == "rest"


@pytest.mark.unit
def test_build_rest_store_from_settings():
    settings = _settings(
        STORE_CLIENT="rest",
        FIRESTORE_PROJECT_ID="orlando-hangar",
        FIRESTORE_REST_URL="https://firestore.example.com/v1/",
        STORE_PAGE_SIZE=50,
    )

    store = build_document_store(settings)

    assert isinstance(store, RestDocumentStore)
    assert store.page_size == 50
    assert store.documents_url == (
        "https://firestore.example.com/v1/projects/orlando-hangar"
        "/databases/(default)/documents"
    )
