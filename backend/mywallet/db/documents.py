import logging
import uuid
from contextlib import contextmanager
from typing import Any

from psycopg import Error as PsycopgError
from psycopg.errors import UniqueViolation
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from mywallet.core.config import Settings
from mywallet.core.errors import DuplicateKeyError, StoreError
from mywallet.db.store import UNIQUE_FIELDS

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS documents (
    id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
    collection text NOT NULL,
    body jsonb NOT NULL,
    created_at timestamptz NOT NULL DEFAULT clock_timestamp(),
    seq bigserial NOT NULL
)
"""

INDEX_SQL = [
    "CREATE INDEX IF NOT EXISTS documents_collection_created_idx ON documents (collection, created_at DESC, seq DESC)",
    "CREATE INDEX IF NOT EXISTS documents_body_idx ON documents USING gin (body jsonb_path_ops)",
]


def unique_index_sql(collection: str, field: str) -> str:
    return (
        f"CREATE UNIQUE INDEX IF NOT EXISTS documents_{collection}_{field}_key "
        f"ON documents ((body->>'{field}')) WHERE collection = '{collection}'"
    )


def build_where(collection: str, filter: dict[str, Any]) -> tuple[str, list[Any]] | None:
    """Translate an equality filter into a WHERE clause.

    Returns None when the filter can never match (an ``id`` that is not a UUID).
    """
    clauses = ["collection=%s"]
    params: list[Any] = [collection]
    body_filter = {k: v for k, v in filter.items() if k != "id"}
    if "id" in filter:
        try:
            doc_id = str(uuid.UUID(str(filter["id"])))
        except (TypeError, ValueError, AttributeError):
            return None
        clauses.append("id=%s::uuid")
        params.append(doc_id)
    if body_filter:
        clauses.append("body @> %s")
        params.append(Jsonb(body_filter))
    return " AND ".join(clauses), params


def row_to_document(row: dict[str, Any]) -> dict[str, Any]:
    doc = dict(row["body"] or {})
    doc["id"] = row["id"]
    doc["created_at"] = row["created_at"]
    return doc


class PostgresDocumentStore:
    """Schema-less documents kept as JSONB rows in a single PostgreSQL table."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    @classmethod
    def from_settings(cls, settings: Settings) -> "PostgresDocumentStore":
        pool = ConnectionPool(
            settings.database_url,
            min_size=settings.db_pool_min,
            max_size=settings.db_pool_max,
            timeout=settings.db_pool_timeout,
            open=False,
            kwargs={"row_factory": dict_row},
        )
        return cls(pool)

    @contextmanager
    def _cursor(self):
        try:
            with self._pool.connection() as conn, conn.cursor() as cur:
                yield cur
        except UniqueViolation as exc:
            raise DuplicateKeyError("Duplicate key") from exc
        except PsycopgError as exc:
            logger.exception("document store failure")
            raise StoreError(str(exc)) from exc

    def open(self) -> None:
        self._pool.open()
        with self._cursor() as cur:
            cur.execute(SCHEMA_SQL)
            for stmt in INDEX_SQL:
                cur.execute(stmt)
            for collection, fields in UNIQUE_FIELDS.items():
                for field in fields:
                    cur.execute(unique_index_sql(collection, field))
        logger.info("document store ready")

    def close(self) -> None:
        self._pool.close()

    def find_one(self, collection: str, filter: dict[str, Any]) -> dict[str, Any] | None:
        where = build_where(collection, filter)
        if where is None:
            return None
        clause, params = where
        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT id::text AS id, body, created_at
                FROM documents
                WHERE {clause}
                LIMIT 1
                """,
                params,
            )
            row = cur.fetchone()
        return row_to_document(row) if row else None

    def insert_one(self, collection: str, document: dict[str, Any]) -> str:
        body = {k: v for k, v in document.items() if k not in ("id", "created_at")}
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO documents (collection, body)
                VALUES (%s, %s)
                RETURNING id::text AS id
                """,
                (collection, Jsonb(body)),
            )
            row = cur.fetchone()
        return row["id"]

    def find(self, collection: str, filter: dict[str, Any]) -> list[dict[str, Any]]:
        where = build_where(collection, filter)
        if where is None:
            return []
        clause, params = where
        with self._cursor() as cur:
            cur.execute(
                f"""
                SELECT id::text AS id, body, created_at
                FROM documents
                WHERE {clause}
                ORDER BY created_at DESC, seq DESC
                """,
                params,
            )
            rows = cur.fetchall()
        return [row_to_document(r) for r in rows]
