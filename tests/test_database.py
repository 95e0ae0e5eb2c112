"""
Unit tests for the in-memory ledger store
"""

import unittest
from datetime import date, datetime, timezone
from unittest import mock

from database import LedgerStore, create_store
from schemas import RetailerIn, TransactionIn, UserUpdate, ValidationFailure


class TestRetailerWrites(unittest.TestCase):

    def setUp(self):
        self.db = create_store()

    def test_create_prepends_with_sequence_id(self):
        created = self.db.create_retailer(RetailerIn(name=" Star Mobiles ", partner_id="0661548621", pending_balance=100))
        self.assertEqual(created.id, "R007")
        self.assertEqual(created.name, "Star Mobiles")
        self.assertEqual(self.db.fetch_retailers()[0].id, "R007")

    def test_ids_are_not_reused_after_delete(self):
        self.assertEqual(self.db.delete_retailer("R006"), "R006")
        created = self.db.create_retailer(RetailerIn(name="A", partner_id="0000000001", pending_balance=0))
        self.assertEqual(created.id, "R007")
        self.db.delete_retailer("R007")
        created = self.db.create_retailer(RetailerIn(name="B", partner_id="0000000002", pending_balance=0))
        self.assertEqual(created.id, "R008")

    def test_invalid_create_does_not_mutate(self):
        before = self.db.fetch_retailers()
        for partner_id in ("12345", "12345678901"):
            result = self.db.create_retailer(RetailerIn(name="Shop", partner_id=partner_id, pending_balance=0))
            self.assertIsInstance(result, ValidationFailure)
            self.assertIn("partnerId", result.errors)
        self.assertEqual(self.db.fetch_retailers(), before)

    def test_update_replaces_in_place(self):
        result = self.db.update_retailer(
            RetailerIn(id="R003", name="AMMAN CELL POINT", partner_id="0661548617", pending_balance=450)
        )
        self.assertEqual(result.pending_balance, 450)
        retailers = self.db.fetch_retailers()
        self.assertEqual(retailers[2].id, "R003")
        self.assertEqual(retailers[2].pending_balance, 450)
        self.assertIsNone(retailers[2].last_collection_date)

    def test_update_unknown_id(self):
        result = self.db.update_retailer(RetailerIn(id="R999", name="X", partner_id="0123456789", pending_balance=0))
        self.assertIsNone(result)

    def test_upsert_dispatches_on_id(self):
        created = self.db.upsert_retailer(RetailerIn(name="New", partner_id="0123456789", pending_balance=1))
        self.assertEqual(created.id, "R007")
        updated = self.db.upsert_retailer(RetailerIn(id="R007", name="Renamed", partner_id="0123456789", pending_balance=1))
        self.assertEqual(self.db.fetch_retailer_by_id("R007").name, "Renamed")
        self.assertEqual(updated.id, "R007")

    def test_delete_unknown(self):
        self.assertIsNone(self.db.delete_retailer("R999"))
        self.assertEqual(len(self.db.fetch_retailers()), 6)


class TestTransactionWrites(unittest.TestCase):

    def setUp(self):
        self.db = create_store()

    def txn(self, **overrides):
        data = dict(retailer_id="R001", type="Auto-refill", time="2023-10-28T08:00:00", amount=500, commission_rate=3)
        data.update(overrides)
        return TransactionIn(**data)

    def assert_sorted(self):
        times = [t.time for t in self.db.fetch_transactions()]
        self.assertEqual(times, sorted(times, reverse=True))

    def test_create_newest_comes_first(self):
        created = self.db.create_transaction(self.txn())
        self.assertEqual(created.id, "T007")
        self.assertEqual(self.db.fetch_transactions()[0].id, "T007")
        self.assert_sorted()

    def test_create_older_is_sorted_in(self):
        self.db.create_transaction(self.txn(time="2023-10-26T15:00:00"))
        ids = [t.id for t in self.db.fetch_transactions()]
        self.assertEqual(ids, ["T003", "T002", "T001", "T006", "T007", "T005", "T004"])
        self.assert_sorted()

    def test_create_tie_goes_first(self):
        self.db.create_transaction(self.txn(time="2023-10-27T12:15:00"))
        self.assertEqual([t.id for t in self.db.fetch_transactions()[:2]], ["T007", "T003"])

    def test_amount_validation(self):
        for bad in (0, -5):
            result = self.db.create_transaction(self.txn(amount=bad))
            self.assertEqual(result.errors, {"amount": "Amount must be a positive number greater than zero."})
        self.assertEqual(len(self.db.fetch_transactions()), 6)
        self.assertEqual(self.db.create_transaction(self.txn(amount=0.01)).amount, 0.01)

    def test_string_amount_is_parsed(self):
        self.assertEqual(self.db.create_transaction(self.txn(amount="1250.5")).amount, 1250.5)

    def test_update_resorts(self):
        updated = self.db.update_transaction(self.txn(id="T004", time="2023-10-29T09:00:00", amount=1500))
        self.assertEqual(updated.id, "T004")
        self.assertEqual(self.db.fetch_transactions()[0].id, "T004")
        self.assert_sorted()

    def test_update_unknown_and_invalid(self):
        self.assertIsNone(self.db.update_transaction(self.txn(id="T999")))
        result = self.db.update_transaction(self.txn(id="T001", amount=0))
        self.assertIsInstance(result, ValidationFailure)
        self.assertEqual(self.db.fetch_transactions(retailer_id="R001")[0].amount, 3075)

    def test_mixed_offsets_sort_by_instant(self):
        db = create_store(demo_data=False)
        db.create_transaction(self.txn(time="2023-10-28T10:00:00+05:30"))
        db.create_transaction(self.txn(time="2023-10-28T05:00:00Z"))
        self.assertEqual([t.id for t in db.fetch_transactions()], ["T002", "T001"])

    def test_fetch_by_retailer(self):
        self.assertEqual([t.id for t in self.db.fetch_transactions("R002")], ["T002", "T006"])


class TestReads(unittest.TestCase):

    def setUp(self):
        self.db = create_store()

    def test_fetch_returns_independent_copies(self):
        first = self.db.fetch_retailers()
        second = self.db.fetch_retailers()
        self.assertEqual(first, second)
        first[0].name = "CHANGED"
        first.pop()
        self.assertEqual(self.db.fetch_retailers(), second)
        self.assertEqual(second[0].name, "RAJA MOBILES")

    def test_returned_object_not_changed_by_later_write(self):
        held = self.db.fetch_retailer_by_id("R001")
        self.db.update_retailer(RetailerIn(id="R001", name="RAJA MOBILES 2", partner_id="0661548615", pending_balance=0))
        self.assertEqual(held.name, "RAJA MOBILES")
        self.assertEqual(held.pending_balance, 5000)

    def test_store_does_not_share_seed_objects(self):
        other = create_store()
        self.db.update_retailer(RetailerIn(id="R001", name="Mine", partner_id="0661548615", pending_balance=0))
        self.assertEqual(other.fetch_retailer_by_id("R001").name, "RAJA MOBILES")

    def test_collections_and_agents(self):
        self.assertEqual([c.id for c in self.db.fetch_collections("R004")], ["C004"])
        self.assertEqual(self.db.fetch_collections("R002"), [])
        self.assertEqual([a.name for a in self.db.fetch_agents()], ["Rajesh Kumar", "Suresh Singh"])

    def test_dashboard_defaults_to_utc_day(self):
        # 20:00 UTC on the 27th is already the 28th east of UTC
        with mock.patch("database.datetime") as clock:
            clock.now.return_value = datetime(2023, 10, 27, 20, 0, tzinfo=timezone.utc)
            stats = self.db.fetch_dashboard_stats()
        clock.now.assert_called_once_with(timezone.utc)
        self.assertEqual(stats.total_collected_today, 3500)

    def test_dashboard_stats(self):
        stats = self.db.fetch_dashboard_stats(date(2023, 10, 27))
        self.assertEqual(stats.total_collected_today, 3500)
        self.assertEqual(stats.total_pending, 49500)

    def test_rollup(self):
        rollup = self.db.fetch_retailer_rollup("R001")
        self.assertEqual(rollup.retailer.id, "R001")
        self.assertEqual([t.id for t in rollup.transactions], ["T001"])
        self.assertEqual([c.id for c in rollup.collections], ["C002"])
        self.assertIsNone(self.db.fetch_retailer_rollup("R404").retailer)

    def test_empty_store(self):
        db = create_store(demo_data=False)
        self.assertEqual(db.fetch_retailers(), [])
        self.assertIsNone(db.fetch_user())
        self.assertEqual(db.create_transaction(
            TransactionIn(retailer_id="R001", type="Push order", time="2024-01-01T10:00:00", amount=10)
        ).id, "T001")


class TestUser(unittest.TestCase):

    def setUp(self):
        self.db = create_store()

    def test_patch_merges(self):
        user = self.db.update_user(UserUpdate(name="Jane Roe", company_logo_url="https://example.com/logo.png"))
        self.assertEqual(user.name, "Jane Roe")
        self.assertEqual(user.email, "owner@amscorp.com")
        self.assertEqual(user.role, "Owner")
        self.assertEqual(self.db.fetch_user().company_logo_url, "https://example.com/logo.png")

    def test_patch_without_profile(self):
        with self.assertRaises(LookupError):
            LedgerStore().update_user(UserUpdate(name="Nobody"))


if __name__ == "__main__":
    unittest.main()
