"""Document store client over the Firestore REST API.

This is the lightweight backend: plain HTTPS/JSON through httpx, no gRPC, no
service-account credentials. Requests authenticate with the project API key
and, when available, the signed-in user's ID token.
"""

from typing import Any, Optional
from urllib.parse import quote

import httpx

from libs.common.config import Settings, get_settings
from libs.common.errors import (
    DocumentNotFound,
    StoreError,
    StorePermissionDenied,
    StoreUnavailable,
)
from libs.common.logging import get_logger
from libs.store.base import DocumentStore, Record, check_update_fields, merge_id
from libs.store.codec import (
    decode_fields,
    document_id,
    encode_fields,
    field_path,
)

logger = get_logger(__name__)


def rest_base_url(settings: Settings) -> str:
    """API root for the configured project, or the local emulator when set."""
    if settings.FIRESTORE_EMULATOR_HOST:
        return f"http://{settings.FIRESTORE_EMULATOR_HOST}/v1"
    return settings.FIRESTORE_REST_URL


def _collection_path(collection: str) -> str:
    return "/" + quote(collection, safe="")


def _document_path(collection: str, doc_id: str) -> str:
    # Ids may hold "#", "?" or "%", which would otherwise end the path
    return f"{_collection_path(collection)}/{quote(doc_id, safe='')}"


class RestDocumentStore(DocumentStore):
    """Async Firestore REST client implementing the document store contract."""

    name = "rest"

    def __init__(
        self,
        *,
        project_id: Optional[str] = None,
        database: Optional[str] = None,
        api_key: Optional[str] = None,
        id_token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        page_size: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.project_id = project_id or settings.FIRESTORE_PROJECT_ID
        self.database = database or settings.FIRESTORE_DATABASE
        self.api_key = api_key if api_key is not None else settings.FIRESTORE_API_KEY
        self.id_token = id_token
        self.timeout = timeout if timeout is not None else settings.STORE_TIMEOUT
        self.page_size = page_size or settings.STORE_PAGE_SIZE
        self._transport = transport

        base_url = base_url or rest_base_url(settings)
        self.documents_url = (
            f"{base_url.rstrip('/')}/projects/{self.project_id}"
            f"/databases/{self.database}/documents"
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.id_token:
            headers["Authorization"] = f"Bearer {self.id_token}"
        return headers

    def _params(self, extra: Optional[list[tuple[str, str]]] = None):
        params: list[tuple[str, str]] = list(extra or [])
        if self.api_key:
            params.append(("key", self.api_key))
        return params

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[list[tuple[str, str]]] = None,
        json_data: Any = None,
    ) -> Any:
        """Make one request and translate failures into StoreError."""
        url = f"{self.documents_url}{path}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method,
                    url,
                    headers=self._headers(),
                    params=self._params(params),
                    json=json_data,
                )
        except httpx.TransportError as exc:
            logger.warning("Document store unreachable: %s %s (%s)", method, path, exc)
            raise StoreUnavailable(f"Document store unreachable: {exc}") from exc

        if response.is_success:
            return response.json() if response.content else {}

        raise self._error_for(response, method, path)

    @staticmethod
    def _error_for(response: httpx.Response, method: str, path: str) -> StoreError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if isinstance(body, list):
            body = body[0] if body else {}
        error = body.get("error", {}) if isinstance(body, dict) else {}
        message = error.get("message") or response.reason_phrase or "Unknown store error"
        status_code = response.status_code

        logger.warning(
            "Document store error: %s %s -> %s %s",
            method,
            path,
            status_code,
            error.get("status"),
        )
        if status_code == 404:
            return DocumentNotFound(message, response_data=error)
        if status_code in (401, 403):
            return StorePermissionDenied(
                message, status_code=status_code, response_data=error
            )
        if status_code in (502, 503, 504):
            return StoreUnavailable(
                message, status_code=status_code, response_data=error
            )
        return StoreError(message, status_code=status_code, response_data=error)

    @staticmethod
    def _to_record(document: dict[str, Any]) -> Record:
        return merge_id(
            document_id(document["name"]), decode_fields(document.get("fields", {}))
        )

    # =========================================================================
    # Reads
    # =========================================================================

    async def query_collection(self, collection: str, order_by: str) -> list[Record]:
        body = {
            "structuredQuery": {
                "from": [{"collectionId": collection}],
                "orderBy": [
                    {
                        "field": {"fieldPath": field_path(order_by)},
                        "direction": "ASCENDING",
                    }
                ],
            }
        }
        rows = await self._request("POST", ":runQuery", json_data=body)
        # runQuery streams one entry per result; entries without a document
        # only carry progress metadata.
        return [self._to_record(row["document"]) for row in rows if "document" in row]

    async def get_all(self, collection: str) -> list[Record]:
        records: list[Record] = []
        page_token: Optional[str] = None
        while True:
            params = [("pageSize", str(self.page_size))]
            if page_token:
                params.append(("pageToken", page_token))
            data = await self._request(
                "GET", _collection_path(collection), params=params
            )
            records.extend(self._to_record(doc) for doc in data.get("documents", []))
            page_token = data.get("nextPageToken")
            if not page_token:
                return records

    async def get_document(self, collection: str, doc_id: str) -> Record:
        document = await self._request("GET", _document_path(collection, doc_id))
        return self._to_record(document)

    # =========================================================================
    # Writes
    # =========================================================================

    async def create_document(self, collection: str, data: Record) -> str:
        document = await self._request(
            "POST",
            _collection_path(collection),
            json_data={"fields": encode_fields(data)},
        )
        new_id = document_id(document["name"])
        logger.debug("Created %s/%s via REST", collection, new_id)
        return new_id

    async def update_document(
        self, collection: str, doc_id: str, data: Record
    ) -> None:
        check_update_fields(data)
        params = [("updateMask.fieldPaths", field_path(key)) for key in data]
        params.append(("currentDocument.exists", "true"))
        await self._request(
            "PATCH",
            _document_path(collection, doc_id),
            params=params,
            json_data={"fields": encode_fields(data)},
        )

    async def set_document(self, collection: str, key: str, data: Record) -> None:
        # A PATCH without an update mask replaces the whole document and
        # creates it when missing.
        await self._request(
            "PATCH",
            _document_path(collection, key),
            json_data={"fields": encode_fields(data)},
        )
