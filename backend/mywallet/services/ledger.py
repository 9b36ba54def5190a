import logging
import math
from datetime import datetime, timezone
from typing import Any, Iterable

from mywallet.core.errors import StoreError, ValidationError
from mywallet.db.store import TRANSACTIONS, DocumentStore
from mywallet.models.schemas import TransactionCreateRequest, TransactionKind, parse_payload

logger = logging.getLogger(__name__)


def to_iso_z(dt: datetime | None) -> str:
    if dt is None:
        return ""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_kind(value: Any) -> TransactionKind:
    raw = str(value or "").strip().lower()
    try:
        return TransactionKind(raw)
    except ValueError:
        raise ValidationError("Invalid transaction type, expected input or output")


def compute_balance(transactions: Iterable[dict[str, Any]]) -> float:
    """Sum inputs minus outputs. Unknown kinds are ignored."""
    total = 0.0
    for tx in transactions:
        kind = tx.get("kind")
        if isinstance(kind, TransactionKind):
            kind = kind.value
        if kind == TransactionKind.INPUT.value:
            total += float(tx.get("value") or 0)
        elif kind == TransactionKind.OUTPUT.value:
            total -= float(tx.get("value") or 0)
    if not math.isfinite(total):
        raise StoreError("Balance is out of range")
    return round(total, 2)


def create_transaction(store: DocumentStore, user: dict[str, Any], kind: Any, data: Any) -> str:
    tx_kind = parse_kind(kind)
    payload = parse_payload(TransactionCreateRequest, data)
    tx_id = store.insert_one(
        TRANSACTIONS,
        {
            "kind": tx_kind.value,
            "description": payload.description,
            "value": payload.value,
            "user_id": user["id"],
        },
    )
    logger.info("recorded %s transaction %s for user %s", tx_kind.value, tx_id, user["id"])
    return tx_id


def serialize_transaction(tx: dict[str, Any]) -> dict[str, Any]:
    return {
        "description": tx.get("description", ""),
        "value": float(tx.get("value") or 0),
        "kind": tx.get("kind", ""),
        "date": to_iso_z(tx.get("created_at")),
    }


def build_history(store: DocumentStore, user: dict[str, Any]) -> dict[str, Any]:
    rows = store.find(TRANSACTIONS, {"user_id": user["id"]})
    return {
        "name": user.get("name", ""),
        "transactions": [serialize_transaction(r) for r in rows],
        "balance": compute_balance(rows),
    }
