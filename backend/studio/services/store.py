"""Record store abstraction with in-memory and Firestore backends.

Records are plain dicts keyed by their wire (camelCase) field names. The
store owns ``id``, ``createdAt`` and ``updatedAt``.
"""
import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from google.api_core.exceptions import AlreadyExists

from studio.core.errors import DuplicateRecordError, RecordNotFoundError
from studio.core.logging import setup_logging

logger = setup_logging("store")

TEMPLATES = "templates"
GENERATION_REQUESTS = "generation_requests"
IMAGE_MODELS = "image_models"

Record = dict[str, Any]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class RecordStore(Protocol):
    """CRUD over named collections."""

    def create(self, collection: str, data: Record) -> Record:
        """Insert a record. Raises DuplicateRecordError if its id is taken."""
        ...

    def get(self, collection: str, record_id: str) -> Optional[Record]: ...

    def list(self, collection: str, status: Optional[str] = None) -> list[Record]: ...

    def update(self, collection: str, record_id: str, patch: Record) -> Record: ...

    def delete(self, collection: str, record_id: str) -> None: ...


class InMemoryRecordStore:
    """Process-local store. Returns copies so callers never share state."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Record]] = {}

    def create(self, collection: str, data: Record) -> Record:
        now = _now()
        record = copy.deepcopy(data)
        record["id"] = record.get("id") or str(uuid.uuid4())
        records = self._collections.setdefault(collection, {})
        if record["id"] in records:
            raise DuplicateRecordError(collection, record["id"])
        record["createdAt"] = now
        record["updatedAt"] = now
        records[record["id"]] = record
        return copy.deepcopy(record)

    def get(self, collection: str, record_id: str) -> Optional[Record]:
        record = self._collections.get(collection, {}).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    def list(self, collection: str, status: Optional[str] = None) -> list[Record]:
        # Newest insertion first so equal timestamps keep that order under a stable sort.
        records = list(reversed(self._collections.get(collection, {}).values()))
        if status is not None:
            records = [r for r in records if r.get("status") == status]
        records.sort(key=lambda r: r["createdAt"], reverse=True)
        return copy.deepcopy(records)

    def update(self, collection: str, record_id: str, patch: Record) -> Record:
        record = self._collections.get(collection, {}).get(record_id)
        if record is None:
            raise RecordNotFoundError(collection, record_id)
        record.update(copy.deepcopy(patch))
        record["id"] = record_id
        record["updatedAt"] = _now()
        return copy.deepcopy(record)

    def delete(self, collection: str, record_id: str) -> None:
        if self._collections.get(collection, {}).pop(record_id, None) is None:
            raise RecordNotFoundError(collection, record_id)


class FirestoreRecordStore:
    """Cloud Firestore backend; one Firestore collection per record collection."""

    def __init__(self, client: Any = None, project_id: Optional[str] = None) -> None:
        if client is None:
            from google.cloud import firestore

            client = firestore.Client(project=project_id or None)
        self._db = client

    def create(self, collection: str, data: Record) -> Record:
        now = _now()
        record = dict(data)
        record["id"] = record.get("id") or str(uuid.uuid4())
        record["createdAt"] = now
        record["updatedAt"] = now
        try:
            self._db.collection(collection).document(record["id"]).create(record)
        except AlreadyExists as exc:
            raise DuplicateRecordError(collection, record["id"]) from exc
        return record

    def get(self, collection: str, record_id: str) -> Optional[Record]:
        snapshot = self._db.collection(collection).document(record_id).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict()

    def list(self, collection: str, status: Optional[str] = None) -> list[Record]:
        from google.cloud import firestore
        from google.cloud.firestore_v1.base_query import FieldFilter

        query = self._db.collection(collection)
        if status is not None:
            query = query.where(filter=FieldFilter("status", "==", status))
        query = query.order_by("createdAt", direction=firestore.Query.DESCENDING)
        return [snapshot.to_dict() for snapshot in query.stream()]

    def update(self, collection: str, record_id: str, patch: Record) -> Record:
        ref = self._db.collection(collection).document(record_id)
        if not ref.get().exists:
            raise RecordNotFoundError(collection, record_id)
        ref.update({**patch, "updatedAt": _now()})
        return ref.get().to_dict()

    def delete(self, collection: str, record_id: str) -> None:
        ref = self._db.collection(collection).document(record_id)
        if not ref.get().exists:
            raise RecordNotFoundError(collection, record_id)
        ref.delete()


def create_store(backend: str, project_id: str = "") -> RecordStore:
    """Build the configured store backend ("memory" or "firestore")."""
    if backend == "firestore":
        logger.info("Using Firestore record store")
        return FirestoreRecordStore(project_id=project_id)
    if backend != "memory":
        raise ValueError(f"Unknown store backend: {backend}")
    return InMemoryRecordStore()
