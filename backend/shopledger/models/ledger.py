from __future__ import annotations

import uuid

from ..extensions import db
from shopledger.time_utils import utcnow, to_utc_z

TRANSACTION_TYPES = ("income", "expense")


def new_id() -> str:
    return str(uuid.uuid4())


class Category(db.Model):
    """
    Income/expense category shown on the entry surfaces.

    NAME vs LABEL:
    - name is the stable machine key; Transaction.category stores it
    - label is display text and may be edited freely
    - type should not change once transactions reference the name (convention only)
    """
    __tablename__ = "categories"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(64), nullable=False, unique=True)
    label = db.Column(db.String(120), nullable=False)
    type = db.Column(db.String(16), nullable=False, index=True)
    icon = db.Column(db.String(64), nullable=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r} type={self.type}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "label": self.label,
            "type": self.type,
            "icon": self.icon,
            "sort_order": self.sort_order,
        }


class Transaction(db.Model):
    """
    One income or expense entry.

    category holds Category.name without a foreign key; stock adjustments
    book against product categories that may not exist in the category table.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_category_timestamp", "category", "timestamp"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    type = db.Column(db.String(16), nullable=False, index=True)
    category = db.Column(db.String(64), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(db.String(255), nullable=True)

    # Business time; defaults to now when the draft does not carry one
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    # Operator identity; NULL for the local-admin bypass identity
    created_by = db.Column(db.String(120), nullable=True)

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} {self.type} {self.category} {self.amount}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "category": self.category,
            "amount": self.amount,
            "description": self.description,
            "timestamp": to_utc_z(self.timestamp),
            "created_by": self.created_by,
        }
