"""Document store contract.

One operation set over the remote document database regardless of which
client backs it. Concrete clients live in ``libs.store.rest`` (HTTP/JSON) and
``libs.store.native`` (SDK); ``libs.store.factory`` picks one per process.

Records returned by reads are plain dicts with the store-assigned document id
under ``"id"``. Every operation raises ``StoreError`` (or a subclass) on
failure and never retries.
"""

import abc
from typing import Any, Optional

from libs.common.errors import ValidationError

USERS_COLLECTION = "users"
EVENTS_COLLECTION = "events"
ATTENDANCE_COLLECTION = "attendance"

ID_FIELD = "id"

Record = dict[str, Any]


def merge_id(doc_id: str, data: Optional[Record]) -> Record:
    """Tag a document's fields with its id; the store id always wins."""
    record = dict(data or {})
    record[ID_FIELD] = doc_id
    return record


def check_document_id(value: str, *, field: str = "id") -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", field=field)
    if "/" in value:
        raise ValidationError(f"{field} must not contain '/'", field=field)
    return value


def check_update_fields(data: Record) -> Record:
    # An empty partial update would wipe the document over REST
    if not data:
        raise ValidationError("update requires at least one field", field="data")
    return data


class DocumentStore(abc.ABC):
    """Capability-uniform access to the remote document collections."""

    name: str = "abstract"

    @abc.abstractmethod
    async def query_collection(self, collection: str, order_by: str) -> list[Record]:
        """Full collection ordered ascending by ``order_by``."""

    @abc.abstractmethod
    async def get_all(self, collection: str) -> list[Record]:
        """Full collection, store order."""

    @abc.abstractmethod
    async def get_document(self, collection: str, doc_id: str) -> Record:
        """Single document; ``DocumentNotFound`` when absent."""

    @abc.abstractmethod
    async def create_document(self, collection: str, data: Record) -> str:
        """Insert with a store-assigned id and return that id."""

    @abc.abstractmethod
    async def update_document(
        self, collection: str, doc_id: str, data: Record
    ) -> None:
        """
        Overwrite only the supplied fields; ``DocumentNotFound`` when absent.

        An empty ``data`` is rejected with ``ValidationError``.
        """

    @abc.abstractmethod
    async def set_document(self, collection: str, key: str, data: Record) -> None:
        """Replace-or-create the document stored at a caller-chosen key."""

    async def aclose(self) -> None:
        """Release client resources. Default: nothing to release."""
