from __future__ import annotations

from ..extensions import db
from shopledger.time_utils import utcnow, to_utc_z
from .ledger import new_id

STOCK_DIRECTIONS = ("in", "out")


class Product(db.Model):
    """
    Product master data with a mutable stock counter.

    STOCK DESIGN:
    current_stock is a stored quantity changed only by stock adjustments.
    It is not clamped: a sale larger than the stock on hand drives it negative.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_name", "category", "name"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)

    name = db.Column(db.String(255), nullable=False)
    name_bn = db.Column(db.String(255), nullable=True)
    category = db.Column(db.String(64), nullable=False, default="stationery")

    purchase_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    sale_price_min = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    sale_price_max = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    current_stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=False, default=5)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    logs = db.relationship(
        "InventoryLog",
        backref="product",
        lazy=True,
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.current_stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "name_bn": self.name_bn,
            "category": self.category,
            "purchase_price": self.purchase_price,
            "sale_price_min": self.sale_price_min,
            "sale_price_max": self.sale_price_max,
            "current_stock": self.current_stock,
            "min_stock": self.min_stock,
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryLog(db.Model):
    """
    Historical stock movement row for the inventory screen.

    Written independently of the ledger transaction booked by the same
    adjustment; transaction_id records that transaction when it is known.
    """
    __tablename__ = "inventory_logs"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False, index=True)

    type = db.Column(db.String(8), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    total_price = db.Column(db.Numeric(12, 2), nullable=False)

    transaction_id = db.Column(db.String(36), nullable=True, index=True)

    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<InventoryLog id={self.id} product_id={self.product_id} {self.type} x{self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "product_name_bn": self.product.name_bn if self.product else None,
            "type": self.type,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
            "transaction_id": self.transaction_id,
            "timestamp": to_utc_z(self.timestamp),
        }
