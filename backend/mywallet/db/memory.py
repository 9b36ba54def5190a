import copy
import itertools
import threading
import uuid
from datetime import datetime, timezone
from typing import Any

from mywallet.core.errors import DuplicateKeyError
from mywallet.db.store import UNIQUE_FIELDS


class MemoryDocumentStore:
    """In-process document store with the same semantics as the PostgreSQL one."""

    def __init__(self, unique_fields: dict[str, tuple[str, ...]] | None = None) -> None:
        self._collections: dict[str, list[tuple[int, dict[str, Any]]]] = {}
        self._unique_fields = UNIQUE_FIELDS if unique_fields is None else unique_fields
        self._seq = itertools.count()
        self._lock = threading.Lock()

    def open(self) -> None:
        pass

    def close(self) -> None:
        pass

    @staticmethod
    def _matches(doc: dict[str, Any], filter: dict[str, Any]) -> bool:
        return all(k in doc and doc[k] == v for k, v in filter.items())

    def find_one(self, collection: str, filter: dict[str, Any]) -> dict[str, Any] | None:
        with self._lock:
            for _, doc in self._collections.get(collection, []):
                if self._matches(doc, filter):
                    return copy.deepcopy(doc)
        return None

    def insert_one(self, collection: str, document: dict[str, Any]) -> str:
        doc = {k: copy.deepcopy(v) for k, v in document.items() if k not in ("id", "created_at")}
        with self._lock:
            rows = self._collections.setdefault(collection, [])
            for field in self._unique_fields.get(collection, ()):
                if field in doc and any(existing.get(field) == doc[field] for _, existing in rows):
                    raise DuplicateKeyError("Duplicate key")
            doc["id"] = str(uuid.uuid4())
            doc["created_at"] = datetime.now(timezone.utc)
            rows.append((next(self._seq), doc))
        return doc["id"]

    def find(self, collection: str, filter: dict[str, Any]) -> list[dict[str, Any]]:
        with self._lock:
            matches = [
                (doc["created_at"], seq, doc)
                for seq, doc in self._collections.get(collection, [])
                if self._matches(doc, filter)
            ]
        matches.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [copy.deepcopy(doc) for _, _, doc in matches]
