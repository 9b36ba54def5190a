import os
import pathlib
import sys
import unittest
from datetime import datetime, timedelta, timezone

BACKEND_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from mywallet.core.errors import StoreError, ValidationError
from mywallet.db.memory import MemoryDocumentStore
from mywallet.db.store import TRANSACTIONS
from mywallet.models.schemas import TransactionKind
from mywallet.services.ledger import (
    build_history,
    compute_balance,
    create_transaction,
    parse_kind,
    serialize_transaction,
    to_iso_z,
)


class BalanceTests(unittest.TestCase):
    def test_empty_history_has_zero_balance(self):
        self.assertEqual(compute_balance([]), 0)

    def test_inputs_minus_outputs_and_unknown_kinds_ignored(self):
        txs = [
            {"kind": "input", "value": 100},
            {"kind": "output", "value": 30},
            {"kind": "weird", "value": 999},
        ]
        self.assertEqual(compute_balance(txs), 70)

    def test_balance_can_go_negative(self):
        txs = [{"kind": "output", "value": 12.5}, {"kind": "input", "value": 2.5}]
        self.assertEqual(compute_balance(txs), -10)

    def test_accepts_enum_kinds(self):
        txs = [{"kind": TransactionKind.INPUT, "value": 5}, {"kind": TransactionKind.OUTPUT, "value": 2}]
        self.assertEqual(compute_balance(txs), 3)

    def test_non_finite_total_is_an_error(self):
        txs = [{"kind": "input", "value": 1e308}, {"kind": "input", "value": 1e308}]
        with self.assertRaises(StoreError):
            compute_balance(txs)

    def test_rounds_to_cents(self):
        txs = [{"kind": "input", "value": 0.1}, {"kind": "input", "value": 0.2}]
        self.assertEqual(compute_balance(txs), 0.3)


class KindTests(unittest.TestCase):
    def test_parse_kind_accepts_known_values(self):
        self.assertIs(parse_kind("input"), TransactionKind.INPUT)
        self.assertIs(parse_kind(" OUTPUT "), TransactionKind.OUTPUT)

    def test_parse_kind_rejects_anything_else(self):
        for raw in ("entrada", "", None, "inputs"):
            with self.assertRaises(ValidationError):
                parse_kind(raw)


class TransactionServiceTests(unittest.TestCase):
    def setUp(self):
        self.store = MemoryDocumentStore()
        self.user = {"id": "user-1", "name": "Alice"}

    def test_create_transaction_persists_owner_and_kind(self):
        create_transaction(self.store, self.user, "input", {"description": "Salary", "value": "1500.50"})
        rows = self.store.find(TRANSACTIONS, {"user_id": "user-1"})
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["kind"], "input")
        self.assertEqual(rows[0]["value"], 1500.5)
        self.assertEqual(rows[0]["description"], "Salary")

    def test_create_transaction_validates_body(self):
        bad_bodies = [
            {},
            {"description": "Coffee"},
            {"value": 3},
            {"description": "  ", "value": 3},
            {"description": "Coffee", "value": 0},
            {"description": "Coffee", "value": -4},
            {"description": "Coffee", "value": "abc"},
            {"description": "Coffee", "value": True},
            {"description": "Coffee", "value": 1e13},
            {"description": "Coffee", "value": 1e308},
            ["Coffee", 3],
        ]
        for body in bad_bodies:
            with self.assertRaises(ValidationError, msg=repr(body)):
                create_transaction(self.store, self.user, "output", body)
        self.assertEqual(self.store.find(TRANSACTIONS, {}), [])

    def test_create_transaction_rejects_unknown_kind_before_writing(self):
        with self.assertRaises(ValidationError):
            create_transaction(self.store, self.user, "weird", {"description": "x", "value": 1})
        self.assertEqual(self.store.find(TRANSACTIONS, {}), [])

    def test_history_is_newest_first_and_scoped_to_user(self):
        create_transaction(self.store, self.user, "input", {"description": "first", "value": 100})
        create_transaction(self.store, self.user, "output", {"description": "second", "value": 30})
        create_transaction(self.store, self.user, "input", {"description": "third", "value": 5})
        create_transaction(self.store, {"id": "user-2"}, "input", {"description": "other", "value": 1})

        history = build_history(self.store, self.user)

        self.assertEqual(history["name"], "Alice")
        self.assertEqual([t["description"] for t in history["transactions"]], ["third", "second", "first"])
        self.assertEqual(history["balance"], 75)
        self.assertEqual(set(history["transactions"][0]), {"description", "value", "kind", "date"})


class SerializationTests(unittest.TestCase):
    def test_to_iso_z_normalizes_to_utc(self):
        dt = datetime(2026, 2, 11, 10, 15, 12, tzinfo=timezone(timedelta(hours=7)))
        self.assertEqual(to_iso_z(dt), "2026-02-11T03:15:12Z")
        self.assertEqual(to_iso_z(datetime(2026, 2, 11, 3, 15)), "2026-02-11T03:15:00Z")

    def test_serialize_transaction_drops_internal_fields(self):
        row = {
            "id": "tx-1",
            "user_id": "user-1",
            "kind": "output",
            "description": "Rent",
            "value": 800,
            "created_at": datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
        }
        self.assertEqual(
            serialize_transaction(row),
            {"description": "Rent", "value": 800.0, "kind": "output", "date": "2026-03-01T12:00:00Z"},
        )


if __name__ == "__main__":
    unittest.main()
