# Overview: Service-layer operations for inventory; products, stock adjustments and stock logs.

# backend/shopledger/services/inventory_service.py

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

from ..errors import RemoteFailure, Result, ShopLedgerError, ValidationError
from ..models import InventoryLog, Product, STOCK_DIRECTIONS
from .backend import TableGateway
from .ledger_service import LedgerStore
from .stock_adjustment import StockAdjustmentOutcome, StockAdjustmentSaga
"""
Inventory Invariants (authoritative)

Stock model:
- Product.current_stock is a stored counter, changed only by adjust_stock().
- adjust_stock(): new = current + qty for 'in', current - qty for 'out'.
- No floor at zero: an oversized sale leaves a negative stock (logged, not blocked).

Ledger linkage:
- 'in'  (purchase) books an expense of quantity * unit_price
- 'out' (sale)     books an income  of quantity * unit_price
- category is the product's category

Logs:
- record_log() writes an InventoryLog row independently of adjust_stock().
  The two can diverge when one write fails; transaction_id ties a log row to
  the ledger entry when the caller knows it.
"""

PRODUCT_DELETE_CONFIRM_MESSAGE = "Delete this product and its stock history?"

PRICE_FIELDS = ("purchase_price", "sale_price_min", "sale_price_max")
STOCK_FIELDS = ("current_stock", "min_stock")
TEXT_FIELDS = ("name", "name_bn", "category")


def parse_price(value, field_name: str) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not price.is_finite() or price < 0:
        raise ValidationError(f"{field_name} must be >= 0")
    return price.quantize(Decimal("0.01"))


def parse_quantity(value, field_name: str = "quantity", *, positive: bool = True) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field_name} must be an integer, not a decimal")
        value = int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped or "." in stripped or "e" in stripped.lower():
            raise ValidationError(f"{field_name} must be an integer")
        try:
            value = int(stripped)
        except ValueError:
            raise ValidationError(f"{field_name} must be an integer")
    if not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer")
    if positive and value <= 0:
        raise ValidationError(f"{field_name} must be > 0")
    return value


def parse_direction(value) -> str:
    if value not in STOCK_DIRECTIONS:
        raise ValidationError("direction must be 'in' or 'out'")
    return value


def validate_product(fields: dict, *, partial: bool) -> dict:
    clean: dict = {}
    for key in TEXT_FIELDS:
        if key in fields:
            value = fields[key]
            clean[key] = str(value).strip() if value is not None else None
    for key in PRICE_FIELDS:
        if key in fields:
            clean[key] = parse_price(fields[key], key)
    for key in STOCK_FIELDS:
        if key in fields:
            clean[key] = parse_quantity(fields[key], key, positive=False)

    unknown = set(fields) - set(TEXT_FIELDS) - set(PRICE_FIELDS) - set(STOCK_FIELDS) - {"id"}
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(sorted(unknown))}")

    if "name" in clean or not partial:
        if not clean.get("name"):
            raise ValidationError("name cannot be blank")
    if "category" in clean and not clean["category"]:
        raise ValidationError("category cannot be blank")
    if "min_stock" in clean and clean["min_stock"] < 0:
        raise ValidationError("min_stock must be >= 0")

    lo = clean.get("sale_price_min")
    hi = clean.get("sale_price_max")
    if lo is not None and hi is not None and hi < lo:
        raise ValidationError("sale_price_max must be >= sale_price_min")
    return clean


def stock_level(product: dict) -> str:
    stock = product["current_stock"]
    if stock <= 0:
        return "out"
    if stock <= product["min_stock"]:
        return "low"
    return "ok"


class InventoryStore:

    def __init__(
        self,
        ledger: LedgerStore,
        logger: logging.Logger,
        *,
        products: TableGateway | None = None,
        logs: TableGateway | None = None,
    ):
        self.ledger = ledger
        self.logger = logger
        self.products = products or TableGateway(Product)
        self.logs = logs or TableGateway(InventoryLog)
        self.saga = StockAdjustmentSaga(self.products, ledger, logger)

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def list_products(self, search: Optional[str] = None) -> list[dict]:
        rows = self.products.select(order_by="name")
        if not search:
            return rows
        q = search.strip().lower()
        return [
            p for p in rows
            if q in p["name"].lower()
            or (p["name_bn"] and q in p["name_bn"].lower())
            or q in p["category"].lower()
        ]

    def get_product(self, product_id: str) -> dict | None:
        return self.products.get(product_id)

    def upsert_product(self, fields: dict, product_id: Optional[str] = None) -> Result[dict]:
        try:
            if product_id:
                clean = validate_product(fields, partial=True)
                existing = self.products.get(product_id)
                if existing is None:
                    raise RemoteFailure(f"products row {product_id} not found")
                lo = clean.get("sale_price_min", existing["sale_price_min"])
                hi = clean.get("sale_price_max", existing["sale_price_max"])
                if hi < lo:
                    raise ValidationError("sale_price_max must be >= sale_price_min")
                row = self.products.update(product_id, clean)
            else:
                clean = validate_product(fields, partial=False)
                row = self.products.insert([clean])[0]
        except ShopLedgerError as e:
            return Result.fail(e)
        return Result.ok(row)

    def delete_product(self, product_id: str, confirm: Callable[[str], bool]) -> Result[None]:
        if not confirm(PRODUCT_DELETE_CONFIRM_MESSAGE):
            return Result.fail(ValidationError("deletion cancelled"))
        try:
            self.products.delete(product_id)
        except ShopLedgerError as e:
            return Result.fail(e)
        return Result.ok()

    def stock_status(self) -> dict:
        """Counts for the stock overview (from the current product list)."""
        rows = self.products.select()
        return {
            "total_products": len(rows),
            "out_of_stock": sum(1 for p in rows if p["current_stock"] == 0),
            "low_stock": sum(1 for p in rows if 0 < p["current_stock"] <= p["min_stock"]),
            "negative_stock": sum(1 for p in rows if p["current_stock"] < 0),
            "units_on_hand": sum(p["current_stock"] for p in rows),
        }

    # ------------------------------------------------------------------
    # Stock movements
    # ------------------------------------------------------------------

    def adjust_stock(
        self,
        product_id: str,
        direction: str,
        quantity,
        unit_price,
        description: Optional[str] = None,
    ) -> Result[StockAdjustmentOutcome]:
        """
        Change current_stock and book the linked ledger transaction.

        Reads the product fresh from the backend, then runs the two-step saga.
        """
        try:
            direction = parse_direction(direction)
            quantity = parse_quantity(quantity)
            unit_price = parse_price(unit_price, "unit_price")
            product = self.products.get(product_id)
            if product is None:
                raise RemoteFailure(f"products row {product_id} not found")
        except ShopLedgerError as e:
            return Result.fail(e)

        return self.saga.run(product, direction, quantity, unit_price, description)

    def record_log(
        self,
        product_id: str,
        direction: str,
        quantity,
        unit_price,
        transaction_id: Optional[str] = None,
    ) -> Result[dict]:
        try:
            direction = parse_direction(direction)
            quantity = parse_quantity(quantity)
            unit_price = parse_price(unit_price, "unit_price")
            row = self.logs.insert([{
                "product_id": product_id,
                "type": direction,
                "quantity": quantity,
                "unit_price": unit_price,
                "total_price": Decimal(quantity) * unit_price,
                "transaction_id": transaction_id,
            }])[0]
        except ShopLedgerError as e:
            self.logger.warning("Inventory log not recorded for product %s: %s", product_id, e)
            return Result.fail(e)
        return Result.ok(row)

    def list_logs(self, *, product_id: Optional[str] = None, limit: int = 50) -> list[dict]:
        filters = {"product_id": product_id} if product_id else None
        return self.logs.select(filters=filters, order_by="timestamp", descending=True, limit=limit)
