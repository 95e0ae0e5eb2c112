"""Ledger aggregation and query engine.

Pure functions over the retailer, transaction and collection collections:
net amount after commission, transaction filtering, dashboard stats,
per-retailer rollups and write validation. Nothing here mutates its inputs.
"""
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
import math
import re

from schemas import (
    ChartPoint,
    Collection,
    DashboardStats,
    PieSlice,
    Retailer,
    RetailerIn,
    RetailerRollup,
    Transaction,
    TransactionIn,
    TransactionRow,
)

UNKNOWN_RETAILER = "Unknown Retailer"
ALL_TYPES = "All"
TOP_PENDING_LIMIT = 5

PARTNER_ID_RE = re.compile(r"\d{10}", re.ASCII)
AMOUNT_ERROR = "Amount must be a positive number greater than zero."

DateLike = Union[date, str, None]


# -----------------------------
# Amounts
# -----------------------------

def compute_net_amount(amount: float, commission_rate: float) -> int:
    """
    Amount after commission, rounded to the nearest 10.

    net = round((amount - amount * rate / 100) / 10) * 10

    Halves round away from zero: 4875 / 10 = 487.5 -> 488 -> 4880.
    """
    amt = Decimal(str(amount))
    rate = Decimal(str(commission_rate))
    tens = (amt - amt * rate / 100) / 10
    return int(tens.quantize(Decimal("1"), rounding=ROUND_HALF_UP)) * 10


def parse_amount(value: Any) -> Optional[float]:
    """Return the amount as a float if it is a finite number > 0, else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(amount) or amount <= 0:
        return None
    return amount


# -----------------------------
# Ordering & lookups
# -----------------------------

def parse_time(value: str) -> datetime:
    # Offset-aware times are normalized to UTC; naive times are taken as-is
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def sort_transactions(transactions: Sequence[Transaction]) -> List[Transaction]:
    """Canonical order: newest first. Stable, so ties keep their input order."""
    return sorted(transactions, key=lambda t: parse_time(t.time), reverse=True)


def resolve_retailer_name(retailer_names: Mapping[str, str], retailer_id: str) -> str:
    return retailer_names.get(retailer_id) or UNKNOWN_RETAILER


def compute_transaction_view(transaction: Transaction, retailer_names: Mapping[str, str]) -> TransactionRow:
    return TransactionRow(
        **transaction.model_dump(),
        net_amount=compute_net_amount(transaction.amount, transaction.commission_rate),
        retailer_name=resolve_retailer_name(retailer_names, transaction.retailer_id),
    )


# -----------------------------
# Filtering
# -----------------------------

def _as_date(value: DateLike) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def filter_transactions(
    transactions: Sequence[Transaction],
    retailer_names: Mapping[str, str],
    query: Optional[str] = None,
    start_date: DateLike = None,
    end_date: DateLike = None,
    txn_type: Optional[str] = ALL_TYPES,
) -> List[Transaction]:
    """
    Filter transactions for the transaction log.

    - query: case-insensitive substring of the resolved retailer name
    - start_date / end_date: inclusive calendar days, either may be open
    - txn_type: exact transaction type, or "All"

    Predicates are ANDed and the input order is preserved.
    """
    needle = (query or "").strip().lower()
    start = _as_date(start_date)
    end = _as_date(end_date)
    lower = datetime.combine(start, time.min) if start else None
    upper = datetime.combine(end, time(23, 59, 59, 999000)) if end else None

    out: List[Transaction] = []
    for t in transactions:
        if needle and needle not in resolve_retailer_name(retailer_names, t.retailer_id).lower():
            continue
        if lower or upper:
            when = parse_time(t.time)
            if lower and when < lower:
                continue
            if upper and when > upper:
                continue
        if txn_type and txn_type != ALL_TYPES and t.type != txn_type:
            continue
        out.append(t)
    return out


# -----------------------------
# Dashboard
# -----------------------------

def compute_dashboard_stats(
    collections: Sequence[Collection],
    retailers: Sequence[Retailer],
    today: DateLike,
) -> DashboardStats:
    """Totals for today's collections, outstanding balances and chart data."""
    today_d = _as_date(today)
    today_s = today_d.isoformat()
    todays = [c for c in collections if c.date == today_s]

    total_today = sum(c.amount for c in todays)
    cash_today = sum(c.amount for c in todays if c.method == "Cash")
    upi_today = sum(c.amount for c in todays if c.method == "UPI")
    total_pending = sum(r.pending_balance for r in retailers)
    top_pending = sorted(retailers, key=lambda r: r.pending_balance, reverse=True)[:TOP_PENDING_LIMIT]

    by_day: Dict[str, float] = {}
    for c in collections:
        by_day[c.date] = by_day.get(c.date, 0) + c.amount
    weekly: List[ChartPoint] = []
    for offset in range(6, -1, -1):
        day = today_d - timedelta(days=offset)
        weekly.append(ChartPoint(name=day.strftime("%a"), collections=by_day.get(day.isoformat(), 0)))

    return DashboardStats(
        total_collected_today=total_today,
        total_pending=total_pending,
        cash_collected_today=cash_today,
        upi_collected_today=upi_today,
        top_pending_retailers=[r.model_copy(deep=True) for r in top_pending],
        weekly_overview_data=weekly,
        payment_method_data=[
            PieSlice(name="Cash", value=cash_today),
            PieSlice(name="UPI", value=upi_today),
        ],
    )


def build_retailer_rollup(
    retailer_id: str,
    retailers: Sequence[Retailer],
    transactions: Sequence[Transaction],
    collections: Sequence[Collection],
) -> RetailerRollup:
    """Retailer detail view. An unknown id yields retailer=None, not an error."""
    retailer = next((r for r in retailers if r.id == retailer_id), None)
    return RetailerRollup(
        retailer=retailer.model_copy(deep=True) if retailer else None,
        transactions=[t.model_copy(deep=True) for t in sort_transactions(
            [t for t in transactions if t.retailer_id == retailer_id]
        )],
        collections=[c.model_copy(deep=True) for c in collections if c.retailer_id == retailer_id],
    )


# -----------------------------
# Validation
# -----------------------------

def validate_retailer(candidate: RetailerIn) -> Dict[str, str]:
    """Collect every field error for a retailer write. Empty dict means valid."""
    errors: Dict[str, str] = {}
    if not (candidate.name or "").strip():
        errors["name"] = "Retailer name is required."
    if not candidate.partner_id:
        errors["partnerId"] = "Partner ID is required."
    elif not PARTNER_ID_RE.fullmatch(candidate.partner_id):
        errors["partnerId"] = "Partner ID must be exactly 10 digits."
    balance = candidate.pending_balance
    if balance is None or (isinstance(balance, float) and math.isnan(balance)):
        errors["pendingBalance"] = "Pending balance is required."
    elif not math.isfinite(balance):
        errors["pendingBalance"] = "Pending balance must be a finite number."
    elif balance < 0:
        errors["pendingBalance"] = "Pending balance cannot be negative."
    return errors


def validate_transaction(candidate: TransactionIn) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if parse_amount(candidate.amount) is None:
        errors["amount"] = AMOUNT_ERROR
    try:
        parse_time(candidate.time)
    except ValueError:
        errors["time"] = "Time must be an ISO-8601 timestamp."
    return errors

