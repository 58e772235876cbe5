# Overview: Two-step stock adjustment (stock write, then linked ledger write) with compensation.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from ..errors import PartialFailure, Result, ShopLedgerError
from .backend import TableGateway
from .ledger_service import LedgerStore
"""
Stock Adjustment Saga (authoritative)

Steps, each awaited in order:
1. stock  - write product.current_stock = current +/- quantity (no floor at zero)
2. ledger - add one linked transaction through LedgerStore.add_many()

Outcomes:
- both steps done                      -> Result.ok
- step 1 failed                        -> Result.fail(step-1 error); nothing applied
- step 2 failed, step 1 reverted       -> Result.fail(step-2 error); step 1 'compensated'
- step 2 failed, revert failed as well -> Result.fail(PartialFailure); step 1 stays applied

Every step's outcome is recorded on StockAdjustmentOutcome.steps.
"""

DONE = "done"
FAILED = "failed"
COMPENSATED = "compensated"
COMPENSATION_FAILED = "compensation_failed"


@dataclass
class StepOutcome:
    name: str
    status: str
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {"name": self.name, "status": self.status, "error": self.error}


@dataclass
class StockAdjustmentOutcome:
    product_id: str
    direction: str
    quantity: int
    previous_stock: Optional[int] = None
    new_stock: Optional[int] = None
    product: Optional[dict] = None
    transaction: Optional[dict] = None
    steps: list[StepOutcome] = field(default_factory=list)

    def record(self, name: str, status: str, error: Exception | None = None) -> None:
        for step in self.steps:
            if step.name == name:
                step.status = status
                step.error = str(error) if error is not None else step.error
                return
        self.steps.append(StepOutcome(name, status, str(error) if error is not None else None))

    def status_of(self, name: str) -> Optional[str]:
        for step in self.steps:
            if step.name == name:
                return step.status
        return None

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "direction": self.direction,
            "quantity": self.quantity,
            "previous_stock": self.previous_stock,
            "new_stock": self.new_stock,
            "product": self.product,
            "transaction": self.transaction,
            "steps": [s.to_dict() for s in self.steps],
        }


def describe(direction: str, product_name: str) -> str:
    return f"purchase: {product_name}" if direction == "in" else f"sale: {product_name}"


class StockAdjustmentSaga:

    def __init__(self, products: TableGateway, ledger: LedgerStore, logger: logging.Logger):
        self.products = products
        self.ledger = ledger
        self.logger = logger

    def run(
        self,
        product: dict,
        direction: str,
        quantity: int,
        unit_price: Decimal,
        description: Optional[str] = None,
    ) -> Result[StockAdjustmentOutcome]:
        outcome = StockAdjustmentOutcome(product_id=product["id"], direction=direction, quantity=quantity)

        previous = int(product["current_stock"])
        new_stock = previous + quantity if direction == "in" else previous - quantity
        outcome.previous_stock = previous
        outcome.new_stock = new_stock

        # Step 1: stock
        try:
            outcome.product = self.products.update(product["id"], {"current_stock": new_stock})
        except ShopLedgerError as e:
            outcome.record("stock", FAILED, e)
            return Result.fail(e, detail=outcome)
        outcome.record("stock", DONE)
        if new_stock < 0:
            self.logger.warning(
                "Stock for product %s (%s) is now negative: %s", product["id"], product["name"], new_stock
            )

        # Step 2: ledger
        draft = {
            "type": "expense" if direction == "in" else "income",
            "category": product["category"],
            "amount": Decimal(quantity) * unit_price,
            "description": description or describe(direction, product["name"]),
        }
        booked = self.ledger.add_many([draft])
        if booked.success:
            outcome.transaction = booked.data[0]
            outcome.record("ledger", DONE)
            return Result.ok(outcome)

        outcome.record("ledger", FAILED, booked.error)
        return self._compensate(outcome, previous, booked.error)

    def _compensate(
        self, outcome: StockAdjustmentOutcome, previous: int, cause: ShopLedgerError
    ) -> Result[StockAdjustmentOutcome]:
        self.logger.warning(
            "Ledger write failed for stock adjustment of product %s; restoring stock to %s: %s",
            outcome.product_id, previous, cause,
        )
        try:
            outcome.product = self.products.update(outcome.product_id, {"current_stock": previous})
        except ShopLedgerError as e:
            outcome.record("stock", COMPENSATION_FAILED, e)
            self.logger.error(
                "Could not restore stock for product %s (left at %s): %s",
                outcome.product_id, outcome.new_stock, e,
            )
            partial = PartialFailure(
                f"stock changed to {outcome.new_stock} but no ledger entry was written "
                f"and the stock change could not be reverted",
                cause=cause,
                compensation_error=e,
            )
            return Result.fail(partial, detail=outcome)

        outcome.new_stock = previous
        outcome.record("stock", COMPENSATED)
        return Result.fail(cause, detail=outcome)
