"""Document store interface used by the services.

Documents are plain dicts. Stores assign ``id`` (opaque string) and
``created_at`` (timezone-aware UTC datetime) on insert and return both on
every read. Filters are equality matches on top-level fields; the ``id`` key
matches the store-assigned identifier.
"""

from typing import Any, Protocol

USERS = "users"
SESSIONS = "sessions"
TRANSACTIONS = "transactions"

UNIQUE_FIELDS: dict[str, tuple[str, ...]] = {
    USERS: ("email",),
    SESSIONS: ("token",),
}


class DocumentStore(Protocol):
    def open(self) -> None: ...

    def close(self) -> None: ...

    def find_one(self, collection: str, filter: dict[str, Any]) -> dict[str, Any] | None: ...

    def insert_one(self, collection: str, document: dict[str, Any]) -> str: ...

    def find(self, collection: str, filter: dict[str, Any]) -> list[dict[str, Any]]:
        """Return every match, most recently created first."""
        ...
