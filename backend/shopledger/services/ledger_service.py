# Overview: Service-layer operations for the ledger; in-memory transaction list and aggregation.

from __future__ import annotations

import logging
import math
from collections import OrderedDict
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, Optional, Sequence

from ..errors import Result, ShopLedgerError, ValidationError
from ..models import Transaction, TRANSACTION_TYPES
from shopledger.time_utils import local_date, local_day_bounds, parse_iso_datetime, to_utc_naive
from .backend import TableGateway
from .session_service import AppSession
"""
Ledger Invariants (authoritative)

- The backend is the source of truth; the in-memory list is loaded once and
  then patched by local operations only (no polling).
- list() is ordered by timestamp descending; add_many() prepends.
- add_many() submits every draft in one batch; a failure leaves local state untouched.
- delete() is a hard delete behind an explicit confirmation. There is no
  server-side undo: re-adding a copy yields a new id and timestamp.

Time semantics:
- Rows carry ISO-8601 'Z' timestamps.
- Day/month/year boundaries follow the shop timezone.
"""

DELETE_CONFIRM_MESSAGE = "Delete this transaction? This cannot be undone."

PERIODS = ("daily", "monthly", "yearly")

ConfirmFn = Callable[[str], bool]


def parse_amount(value, *, allow_zero: bool = False) -> Decimal:
    """
    Finite amount as Decimal (2 places).

    Rejects bools, blanks, NaN/inf and negatives. Zero is rejected unless
    allow_zero is set: quick entry requires a positive amount, while stored
    transactions (e.g. a stock movement at unit price 0) may carry 0.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError("amount must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError("amount must be a finite number")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("amount must be a number")
    if not amount.is_finite():
        raise ValidationError("amount must be a finite number")
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError("amount must be greater than zero")
    return amount.quantize(Decimal("0.01"))


def row_timestamp(row: dict) -> datetime:
    return parse_iso_datetime(row["timestamp"])


def totals(rows: Iterable[dict]) -> dict:
    income = Decimal("0")
    expense = Decimal("0")
    count = 0
    for row in rows:
        count += 1
        if row["type"] == "income":
            income += Decimal(row["amount"])
        else:
            expense += Decimal(row["amount"])
    return {"income": income, "expense": expense, "net": income - expense, "count": count}


def period_bounds(period: str, ref: date) -> tuple[date, date]:
    """[start, end) calendar dates for the period containing ref."""
    if period == "daily":
        return ref, ref + timedelta(days=1)
    if period == "monthly":
        start = ref.replace(day=1)
        if start.month == 12:
            return start, start.replace(year=start.year + 1, month=1)
        return start, start.replace(month=start.month + 1)
    if period == "yearly":
        start = ref.replace(month=1, day=1)
        return start, start.replace(year=start.year + 1)
    raise ValidationError(f"period must be one of {', '.join(PERIODS)}")


class LedgerStore:

    def __init__(
        self,
        session: AppSession,
        logger: logging.Logger,
        *,
        zone,
        gateway: TableGateway | None = None,
    ):
        self.session = session
        self.logger = logger
        self.zone = zone
        self.gateway = gateway or TableGateway(Transaction)
        self._items: list[dict] | None = None

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def load(self) -> list[dict]:
        self._items = self.gateway.select(order_by=("timestamp", "id"), descending=True)
        return self.list()

    def list(self) -> list[dict]:
        if self._items is None:
            self.load()
        return list(self._items)

    def get(self, transaction_id: str) -> dict | None:
        for row in self.list():
            if row["id"] == transaction_id:
                return row
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _prepare(self, draft: dict) -> dict:
        type_ = draft.get("type")
        if type_ not in TRANSACTION_TYPES:
            raise ValidationError("type must be income or expense")
        category = str(draft.get("category") or "").strip()
        if not category:
            raise ValidationError("category cannot be blank")
        try:
            timestamp = to_utc_naive(draft.get("timestamp"))
        except ValueError:
            raise ValidationError("timestamp must be an ISO-8601 datetime")
        description = draft.get("description")
        return {
            "type": type_,
            "category": category,
            "amount": parse_amount(draft.get("amount"), allow_zero=True),
            "description": str(description).strip() if description else None,
            "timestamp": timestamp,
            "created_by": self.session.operator,
        }

    def add_many(self, drafts: Sequence[dict]) -> Result[list[dict]]:
        """
        Insert one or more drafts as a single batch.

        Fills timestamp (now) and created_by (current operator, NULL for the
        local admin bypass). On success the stored rows are prepended.
        """
        try:
            if not drafts:
                raise ValidationError("at least one transaction is required")
            rows = [self._prepare(d) for d in drafts]
            created = self.gateway.insert(rows)
        except ShopLedgerError as e:
            return Result.fail(e)

        if self._items is None:
            self.load()
        else:
            newest_first = sorted(created, key=row_timestamp, reverse=True)
            self._items = newest_first + self._items
        return Result.ok(created)

    def update(self, transaction_id: str, fields: dict) -> Result[dict]:
        patch = {}
        try:
            for key, value in fields.items():
                if key == "amount":
                    patch["amount"] = parse_amount(value, allow_zero=True)
                elif key == "type":
                    if value not in TRANSACTION_TYPES:
                        raise ValidationError("type must be income or expense")
                    patch["type"] = value
                elif key == "category":
                    if not str(value or "").strip():
                        raise ValidationError("category cannot be blank")
                    patch["category"] = str(value).strip()
                elif key == "description":
                    patch["description"] = str(value).strip() if value else None
                elif key == "timestamp":
                    try:
                        patch["timestamp"] = to_utc_naive(value)
                    except ValueError:
                        raise ValidationError("timestamp must be an ISO-8601 datetime")
                else:
                    raise ValidationError(f"Field not allowed: {key}")
            row = self.gateway.update(transaction_id, patch)
        except ShopLedgerError as e:
            return Result.fail(e)

        if self._items is not None:
            for index, item in enumerate(self._items):
                if item["id"] == transaction_id:
                    merged = dict(item)
                    merged.update({k: row[k] for k in patch})
                    self._items[index] = merged
                    break
        return Result.ok(row)

    def delete(self, transaction_id: str, confirm: ConfirmFn) -> Result[None]:
        """Hard delete after confirm(message) answers yes."""
        if not confirm(DELETE_CONFIRM_MESSAGE):
            return Result.fail(ValidationError("deletion cancelled"))
        try:
            self.gateway.delete(transaction_id)
        except ShopLedgerError as e:
            return Result.fail(e)
        if self._items is not None:
            self._items = [row for row in self._items if row["id"] != transaction_id]
        return Result.ok()

    # ------------------------------------------------------------------
    # Aggregation (client-side over the in-memory list)
    # ------------------------------------------------------------------

    def between(self, start: date, end: date, *, type_: Optional[str] = None) -> list[dict]:
        """Rows whose shop-local date is in [start, end)."""
        lo, _ = local_day_bounds(start, self.zone)
        hi, _ = local_day_bounds(end, self.zone)
        rows = []
        for row in self.list():
            ts = row_timestamp(row)
            if lo <= ts < hi and (type_ is None or row["type"] == type_):
                rows.append(row)
        return rows

    def daily_totals(self, day: date) -> dict:
        result = totals(self.between(day, day + timedelta(days=1)))
        result["date"] = day.isoformat()
        return result

    def totals_by_category(self, start: date, end: date, *, type_: Optional[str] = None) -> list[dict]:
        """Per-category sums in [start, end), largest total first."""
        groups: OrderedDict[tuple[str, str], dict] = OrderedDict()
        for row in self.between(start, end, type_=type_):
            key = (row["type"], row["category"])
            group = groups.setdefault(
                key, {"type": row["type"], "category": row["category"], "total": Decimal("0"), "count": 0}
            )
            group["total"] += Decimal(row["amount"])
            group["count"] += 1
        return sorted(groups.values(), key=lambda g: g["total"], reverse=True)

    def period_summary(self, period: str, ref: date) -> dict:
        start, end = period_bounds(period, ref)
        rows = self.between(start, end)
        summary = totals(rows)
        summary.update({
            "period": period,
            "start": start.isoformat(),
            "end": end.isoformat(),
            "by_category": self.totals_by_category(start, end),
        })
        return summary

    def daily_series(self, start: date, end: date) -> list[dict]:
        """One totals row per shop-local day in [start, end), days without entries included."""
        buckets: dict[date, list[dict]] = {}
        for row in self.between(start, end):
            buckets.setdefault(local_date(row_timestamp(row), self.zone), []).append(row)
        series = []
        day = start
        while day < end:
            entry = totals(buckets.get(day, []))
            entry["date"] = day.isoformat()
            series.append(entry)
            day += timedelta(days=1)
        return series
