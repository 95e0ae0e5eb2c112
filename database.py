"""
In-memory ledger store

Holds the retailer, transaction, collection and agent collections plus the
operator profile. Every read hands back deep copies, so callers never see a
later write through an object they already hold. Writes are serialized with
one lock.
"""
import logging
import threading
import time
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional, TypeVar, Union

from pydantic import BaseModel

import ledger
import seed
from schemas import (
    Agent,
    Collection,
    DashboardStats,
    Retailer,
    RetailerIn,
    RetailerRollup,
    Transaction,
    TransactionIn,
    User,
    UserUpdate,
    ValidationFailure,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _max_seq(ids: Iterable[str], prefix: str) -> int:
    last = 0
    for _id in ids:
        if not _id.startswith(prefix):
            continue
        try:
            last = max(last, int(_id[len(prefix):]))
        except ValueError:
            continue
    return last


class LedgerStore:
    """Persistence facade over the in-memory collections."""

    def __init__(
        self,
        retailers: Optional[List[Retailer]] = None,
        transactions: Optional[List[Transaction]] = None,
        collections: Optional[List[Collection]] = None,
        agents: Optional[List[Agent]] = None,
        user: Optional[User] = None,
        latency_ms: int = 0,
    ):
        self._lock = threading.RLock()
        self._retailers: List[Retailer] = [r.model_copy(deep=True) for r in retailers or []]
        self._transactions: List[Transaction] = ledger.sort_transactions(
            [t.model_copy(deep=True) for t in transactions or []]
        )
        self._collections: List[Collection] = [c.model_copy(deep=True) for c in collections or []]
        self._agents: List[Agent] = [a.model_copy(deep=True) for a in agents or []]
        self._user: Optional[User] = user.model_copy(deep=True) if user else None
        self._latency = latency_ms / 1000.0
        self._seq = {
            "R": _max_seq((r.id for r in self._retailers), "R"),
            "T": _max_seq((t.id for t in self._transactions), "T"),
        }

    # -----------------------------
    # Helpers
    # -----------------------------

    def _respond(self, data: M) -> M:
        if self._latency:
            time.sleep(self._latency)
        return data.model_copy(deep=True)

    def _respond_many(self, items: Iterable[M]) -> List[M]:
        if self._latency:
            time.sleep(self._latency)
        return [i.model_copy(deep=True) for i in items]

    def _next_id(self, prefix: str) -> str:
        self._seq[prefix] += 1
        return f"{prefix}{self._seq[prefix]:03d}"

    def retailer_names(self) -> Dict[str, str]:
        with self._lock:
            return {r.id: r.name for r in self._retailers}

    # -----------------------------
    # User
    # -----------------------------

    def fetch_user(self) -> Optional[User]:
        with self._lock:
            return self._respond(self._user) if self._user else None

    def update_user(self, patch: UserUpdate) -> User:
        changes = {k: v for k, v in patch.model_dump(exclude_unset=True).items() if v is not None}
        with self._lock:
            if self._user is None:
                raise LookupError("No active user profile")
            self._user = self._user.model_copy(update=changes)
            logger.info(f"Updated user {self._user.id}: {sorted(changes)}")
            return self._respond(self._user)

    # -----------------------------
    # Dashboard
    # -----------------------------

    def fetch_dashboard_stats(self, today: Optional[date] = None) -> DashboardStats:
        with self._lock:
            stats = ledger.compute_dashboard_stats(
                self._collections, self._retailers, today or datetime.now(timezone.utc).date()
            )
            return self._respond(stats)

    # -----------------------------
    # Retailers
    # -----------------------------

    def fetch_retailers(self) -> List[Retailer]:
        with self._lock:
            return self._respond_many(self._retailers)

    def fetch_retailer_by_id(self, retailer_id: str) -> Optional[Retailer]:
        with self._lock:
            found = next((r for r in self._retailers if r.id == retailer_id), None)
            if found is None:
                logger.debug(f"Retailer {retailer_id} not found")
                return None
            return self._respond(found)

    def fetch_retailer_rollup(self, retailer_id: str) -> RetailerRollup:
        with self._lock:
            rollup = ledger.build_retailer_rollup(
                retailer_id, self._retailers, self._transactions, self._collections
            )
            return self._respond(rollup)

    def create_retailer(self, candidate: RetailerIn) -> Union[Retailer, ValidationFailure]:
        errors = ledger.validate_retailer(candidate)
        if errors:
            logger.warning(f"Rejected new retailer: {sorted(errors)}")
            return ValidationFailure(errors=errors)
        with self._lock:
            retailer = Retailer(
                id=self._next_id("R"),
                name=candidate.name.strip(),
                partner_id=candidate.partner_id,
                pending_balance=candidate.pending_balance,
                last_collection_date=candidate.last_collection_date,
            )
            self._retailers.insert(0, retailer)
            logger.info(f"Created retailer {retailer.id}")
            return self._respond(retailer)

    def update_retailer(self, candidate: RetailerIn) -> Union[Retailer, ValidationFailure, None]:
        errors = ledger.validate_retailer(candidate)
        if errors:
            logger.warning(f"Rejected update of retailer {candidate.id}: {sorted(errors)}")
            return ValidationFailure(errors=errors)
        with self._lock:
            for i, r in enumerate(self._retailers):
                if r.id == candidate.id:
                    break
            else:
                return None
            retailer = Retailer(
                id=candidate.id,
                name=candidate.name.strip(),
                partner_id=candidate.partner_id,
                pending_balance=candidate.pending_balance,
                last_collection_date=candidate.last_collection_date,
            )
            self._retailers[i] = retailer
            logger.info(f"Updated retailer {retailer.id}")
            return self._respond(retailer)

    def upsert_retailer(self, candidate: RetailerIn) -> Union[Retailer, ValidationFailure, None]:
        if candidate.id:
            return self.update_retailer(candidate)
        return self.create_retailer(candidate)

    def delete_retailer(self, retailer_id: str) -> Optional[str]:
        with self._lock:
            remaining = [r for r in self._retailers if r.id != retailer_id]
            if len(remaining) == len(self._retailers):
                return None
            self._retailers = remaining
            logger.info(f"Deleted retailer {retailer_id}")
            return retailer_id

    # -----------------------------
    # Transactions
    # -----------------------------

    def fetch_transactions(self, retailer_id: Optional[str] = None) -> List[Transaction]:
        with self._lock:
            results = self._transactions
            if retailer_id:
                results = [t for t in results if t.retailer_id == retailer_id]
            return self._respond_many(results)

    def create_transaction(self, candidate: TransactionIn) -> Union[Transaction, ValidationFailure]:
        errors = ledger.validate_transaction(candidate)
        if errors:
            logger.warning(f"Rejected new transaction: {sorted(errors)}")
            return ValidationFailure(errors=errors)
        with self._lock:
            txn = Transaction(
                id=self._next_id("T"),
                retailer_id=candidate.retailer_id,
                type=candidate.type,
                time=candidate.time,
                amount=ledger.parse_amount(candidate.amount),
                commission_rate=candidate.commission_rate,
            )
            self._transactions = ledger.sort_transactions([txn] + self._transactions)
            logger.info(f"Created transaction {txn.id} for retailer {txn.retailer_id}")
            return self._respond(txn)

    def update_transaction(self, candidate: TransactionIn) -> Union[Transaction, ValidationFailure, None]:
        errors = ledger.validate_transaction(candidate)
        if errors:
            logger.warning(f"Rejected update of transaction {candidate.id}: {sorted(errors)}")
            return ValidationFailure(errors=errors)
        with self._lock:
            if not any(t.id == candidate.id for t in self._transactions):
                return None
            txn = Transaction(
                id=candidate.id,
                retailer_id=candidate.retailer_id,
                type=candidate.type,
                time=candidate.time,
                amount=ledger.parse_amount(candidate.amount),
                commission_rate=candidate.commission_rate,
            )
            self._transactions = ledger.sort_transactions(
                [txn if t.id == txn.id else t for t in self._transactions]
            )
            logger.info(f"Updated transaction {txn.id}")
            return self._respond(txn)

    def upsert_transaction(self, candidate: TransactionIn) -> Union[Transaction, ValidationFailure, None]:
        if candidate.id:
            return self.update_transaction(candidate)
        return self.create_transaction(candidate)

    # -----------------------------
    # Collections & Agents
    # -----------------------------

    def fetch_collections(self, retailer_id: str) -> List[Collection]:
        with self._lock:
            return self._respond_many(c for c in self._collections if c.retailer_id == retailer_id)

    def fetch_agents(self) -> List[Agent]:
        with self._lock:
            return self._respond_many(self._agents)


def create_store(demo_data: bool = True, latency_ms: int = 0) -> LedgerStore:
    """Build a store, optionally loaded with the demo data."""
    if not demo_data:
        return LedgerStore(latency_ms=latency_ms)
    return LedgerStore(
        retailers=seed.RETAILERS,
        transactions=seed.TRANSACTIONS,
        collections=seed.COLLECTIONS,
        agents=seed.AGENTS,
        user=seed.CURRENT_USER,
        latency_ms=latency_ms,
    )
