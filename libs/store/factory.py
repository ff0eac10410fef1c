"""Process-wide selection of the document store client.

The backend is chosen once from the environment and cached; services receive
the instance by injection and never branch on which client is active.
"""

from functools import lru_cache

from libs.common.config import Settings, get_settings
from libs.common.logging import get_logger
from libs.store.base import DocumentStore

logger = get_logger(__name__)


def resolve_store_client(settings: Settings) -> str:
    """Return ``"rest"`` or ``"native"`` for the configured environment."""
    if settings.STORE_CLIENT != "auto":
        return settings.STORE_CLIENT
    if settings.GOOGLE_APPLICATION_CREDENTIALS or settings.K_SERVICE:
        return "native"
    return "rest"


def build_document_store(settings: Settings) -> DocumentStore:
    client = resolve_store_client(settings)
    if client == "native":
        from libs.store.native import NativeDocumentStore

        store: DocumentStore = NativeDocumentStore(
            project_id=settings.FIRESTORE_PROJECT_ID,
            database=settings.FIRESTORE_DATABASE,
            timeout=settings.STORE_TIMEOUT,
        )
    else:
        from libs.store.rest import RestDocumentStore, rest_base_url

        store = RestDocumentStore(
            project_id=settings.FIRESTORE_PROJECT_ID,
            database=settings.FIRESTORE_DATABASE,
            api_key=settings.FIRESTORE_API_KEY,
            base_url=rest_base_url(settings),
            timeout=settings.STORE_TIMEOUT,
            page_size=settings.STORE_PAGE_SIZE,
        )
    logger.info(
        "Document store: %s client for project %s",
        store.name,
        settings.FIRESTORE_PROJECT_ID,
        extra={"store_client": store.name},
    )
    return store


@lru_cache
def get_document_store() -> DocumentStore:
    """
    Return the process-wide document store, cached.
    """
    return build_document_store(get_settings())
