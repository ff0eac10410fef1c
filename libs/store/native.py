"""Document store client over the native Firestore SDK (gRPC).

Used where the process runs with service-account credentials. Mirrors the
REST client's contract exactly; only the call shapes differ.
"""

import inspect
from typing import Any, Optional

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore

from libs.common.config import get_settings
from libs.common.errors import (
    DocumentNotFound,
    StoreError,
    StorePermissionDenied,
    StoreUnavailable,
)
from libs.common.logging import get_logger
from libs.store.base import DocumentStore, Record, check_update_fields, merge_id

logger = get_logger(__name__)


def _translate(exc: Exception, operation: str) -> StoreError:
    """Map google.api_core errors onto the store error taxonomy."""
    message = getattr(exc, "message", None) or str(exc)
    status_code = getattr(exc, "code", None)
    if not isinstance(status_code, int):
        status_code = None

    logger.warning("Document store error during %s: %s", operation, message)
    if isinstance(exc, google_exceptions.NotFound):
        return DocumentNotFound(message)
    if isinstance(
        exc, (google_exceptions.PermissionDenied, google_exceptions.Unauthenticated)
    ):
        return StorePermissionDenied(message, status_code=status_code)
    if isinstance(
        exc,
        (
            google_exceptions.ServiceUnavailable,
            google_exceptions.DeadlineExceeded,
            google_exceptions.RetryError,
        ),
    ):
        return StoreUnavailable(message, status_code=status_code)
    return StoreError(message, status_code=status_code)


class NativeDocumentStore(DocumentStore):
    """Async Firestore SDK client implementing the document store contract."""

    name = "native"

    def __init__(
        self,
        *,
        client: Optional[Any] = None,
        project_id: Optional[str] = None,
        database: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.timeout = timeout if timeout is not None else settings.STORE_TIMEOUT
        self._client = client or firestore.AsyncClient(
            project=project_id or settings.FIRESTORE_PROJECT_ID,
            database=database or settings.FIRESTORE_DATABASE,
        )

    @staticmethod
    def _to_record(snapshot: Any) -> Record:
        return merge_id(snapshot.id, snapshot.to_dict())

    async def _stream(self, query: Any, operation: str) -> list[Record]:
        try:
            return [
                self._to_record(snapshot)
                async for snapshot in query.stream(timeout=self.timeout)
            ]
        except google_exceptions.GoogleAPIError as exc:
            raise _translate(exc, operation) from exc

    # =========================================================================
    # Reads
    # =========================================================================

    async def query_collection(self, collection: str, order_by: str) -> list[Record]:
        query = self._client.collection(collection).order_by(
            order_by, direction=firestore.Query.ASCENDING
        )
        return await self._stream(query, f"query {collection}")

    async def get_all(self, collection: str) -> list[Record]:
        return await self._stream(
            self._client.collection(collection), f"list {collection}"
        )

    async def get_document(self, collection: str, doc_id: str) -> Record:
        try:
            snapshot = await self._client.collection(collection).document(doc_id).get(
                timeout=self.timeout
            )
        except google_exceptions.GoogleAPIError as exc:
            raise _translate(exc, f"get {collection}/{doc_id}") from exc
        if not snapshot.exists:
            raise DocumentNotFound(f"No document at {collection}/{doc_id}")
        return self._to_record(snapshot)

    # =========================================================================
    # Writes
    # =========================================================================

    async def create_document(self, collection: str, data: Record) -> str:
        try:
            _, reference = await self._client.collection(collection).add(
                data, timeout=self.timeout
            )
        except google_exceptions.GoogleAPIError as exc:
            raise _translate(exc, f"create in {collection}") from exc
        logger.debug("Created %s/%s via SDK", collection, reference.id)
        return reference.id

    async def update_document(
        self, collection: str, doc_id: str, data: Record
    ) -> None:
        check_update_fields(data)
        reference = self._client.collection(collection).document(doc_id)
        try:
            # update() fails with NotFound when the document does not exist
            await reference.update(data, timeout=self.timeout)
        except google_exceptions.GoogleAPIError as exc:
            raise _translate(exc, f"update {collection}/{doc_id}") from exc

    async def set_document(self, collection: str, key: str, data: Record) -> None:
        reference = self._client.collection(collection).document(key)
        try:
            await reference.set(data, timeout=self.timeout)
        except google_exceptions.GoogleAPIError as exc:
            raise _translate(exc, f"set {collection}/{key}") from exc

    async def aclose(self) -> None:
        close = getattr(self._client, "close", None)
        if close is not None:
            result = close()
            if inspect.isawaitable(result):
                await result
