# Overview: Service-layer operations for categories; ordered registry with a default set.

from __future__ import annotations

import logging
from typing import Sequence

from ..errors import Result, ShopLedgerError, ValidationError
from ..models import Category, Transaction, TRANSACTION_TYPES
from .backend import Restriction, TableGateway
from .reconciliation import PendingPatch, ReconciliationQueue
"""
Category Registry Invariants (authoritative)

- list() is ordered by sort_order ascending, then name.
- An empty table never yields an empty list: the 15 defaults stand in (unsaved, id=None).
- name is unique; name and label are never blank; type is income or expense.
- reorder() is optimistic: the local order changes first, remote writes follow
  and only log on failure.
- A category whose name is used by any transaction cannot be deleted.
"""

CATEGORY_IN_USE_MESSAGE = "categories referenced by existing transactions cannot be deleted"

# (name, label, type, icon)
DEFAULT_CATEGORIES: tuple[tuple[str, str, str, str], ...] = (
    ("photocopy", "Photocopy", "income", "copy"),
    ("stationery", "Stationery", "income", "shopping-bag"),
    ("photography", "Photography", "income", "camera"),
    ("online_form", "Online Form", "income", "file-text"),
    ("stamp_seal", "Stamp/Seal", "income", "pen-tool"),
    ("rent", "Rent", "expense", "home"),
    ("electricity", "Electricity", "expense", "zap"),
    ("salary", "Salary", "expense", "users"),
    ("internet", "Internet", "expense", "wifi"),
    ("paper_purchase", "Paper Purchase", "expense", "file"),
    ("ink_toner", "Ink & Toner", "expense", "droplet"),
    ("stationery_purchase", "Stationery Purchase", "expense", "package"),
    ("maintenance", "Maintenance", "expense", "wrench"),
    ("transport", "Transport", "expense", "truck"),
    ("other_expense", "Other Expense", "expense", "more-horizontal"),
)

CATEGORY_FIELDS = ("name", "label", "type", "icon", "sort_order")


def default_categories() -> list[dict]:
    return [
        {"id": None, "name": name, "label": label, "type": type_, "icon": icon, "sort_order": index}
        for index, (name, label, type_, icon) in enumerate(DEFAULT_CATEGORIES)
    ]


def _sort_key(row: dict):
    return (row.get("sort_order") or 0, row.get("name") or "")


def validate_category(fields: dict, *, partial: bool = False) -> dict:
    clean: dict = {}
    for key in CATEGORY_FIELDS:
        if key not in fields:
            continue
        value = fields[key]
        if key in ("name", "label", "type", "icon") and value is not None:
            value = str(value).strip()
        clean[key] = value

    for key in ("name", "label"):
        if key in clean or not partial:
            if not clean.get(key):
                raise ValidationError(f"{key} cannot be blank")

    if "type" in clean or not partial:
        if clean.get("type") not in TRANSACTION_TYPES:
            raise ValidationError("type must be income or expense")

    if clean.get("sort_order") is not None:
        try:
            clean["sort_order"] = int(clean["sort_order"])
        except (TypeError, ValueError):
            raise ValidationError("sort_order must be an integer")

    if not clean.get("icon"):
        clean.pop("icon", None)
    return clean


class CategoryRegistry:

    def __init__(self, logger: logging.Logger, gateway: TableGateway | None = None):
        self.logger = logger
        self.gateway = gateway or TableGateway(
            Category,
            restrictions=[Restriction(Transaction, "category", "name", CATEGORY_IN_USE_MESSAGE)],
        )
        self.reconciliation = ReconciliationQueue(logger=logger)
        self._items: list[dict] | None = None

    def load(self) -> list[dict]:
        rows = self.gateway.select(order_by=("sort_order", "name"))
        self._items = sorted(rows, key=_sort_key)
        return self.list()

    def list(self) -> list[dict]:
        if self._items is None:
            self.load()
        if not self._items:
            return default_categories()
        return [dict(row) for row in self._items]

    def get(self, name: str) -> dict | None:
        for row in self.list():
            if row["name"] == name:
                return row
        return None

    def get_by_id(self, category_id: str) -> dict | None:
        for row in self.list():
            if row["id"] == category_id:
                return row
        return None

    def upsert(self, category: dict, category_id: str | None = None) -> Result[dict]:
        try:
            if self._items is None:
                self.load()
            if category_id:
                fields = validate_category(category, partial=True)
                row = self.gateway.update(category_id, fields)
                self._replace_local(row)
            else:
                fields = validate_category(category)
                if fields.get("sort_order") is None:
                    fields["sort_order"] = len(self._items)
                row = self.gateway.insert([fields])[0]
                self._items.append(row)
            self._items.sort(key=_sort_key)
        except ShopLedgerError as e:
            return Result.fail(e)
        return Result.ok(row)

    def reorder(self, categories: Sequence[dict]) -> list[dict]:
        """
        Apply the new order locally, then persist each sort_order index.

        Unsaved default categories (id=None) keep their default order until seeded.
        """
        reordered = []
        for index, row in enumerate(categories):
            row = dict(row)
            row["sort_order"] = index
            reordered.append(row)
        saved = [row for row in reordered if row.get("id")]
        self._items = saved if saved else self._items

        for row in saved:
            self.reconciliation.enqueue(
                PendingPatch(
                    table=self.gateway.table_name,
                    row_id=row["id"],
                    fields={"sort_order": row["sort_order"]},
                    apply=self._patch_sort_order(row["id"], row["sort_order"]),
                )
            )
        self.reconciliation.flush()
        return self.list()

    def _patch_sort_order(self, category_id: str, sort_order: int):
        def _apply():
            return self.gateway.update(category_id, {"sort_order": sort_order})
        return _apply

    def delete(self, category_id: str) -> Result[None]:
        try:
            self.gateway.delete(category_id)
        except ShopLedgerError as e:
            return Result.fail(e)
        if self._items is not None:
            self._items = [row for row in self._items if row["id"] != category_id]
        return Result.ok()

    def seed_defaults(self) -> int:
        """Persist the default set when the table is empty. Returns rows inserted."""
        if self.gateway.select(limit=1):
            return 0
        rows = [{k: v for k, v in row.items() if k != "id"} for row in default_categories()]
        inserted = self.gateway.insert(rows)
        self._items = sorted(inserted, key=_sort_key)
        return len(inserted)

    def _replace_local(self, row: dict) -> None:
        self._items = [row if item["id"] == row["id"] else item for item in self._items]
        if not any(item["id"] == row["id"] for item in self._items):
            self._items.append(row)
