# Overview: Table gateway over SQLAlchemy models; the persistence service consumed by the stores.

from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..errors import ConflictError, RemoteFailure
"""
Backend contract (authoritative)

- Rows cross this boundary as plain dicts (model.to_dict()); no ORM objects leak out.
- insert() persists a whole batch in one commit: all rows or none.
- update()/delete() address a single row by id.
- Integrity failures on delete become ConflictError; every other database
  failure becomes RemoteFailure after the session is rolled back.
- Nothing is retried here; callers decide what a failure means.
"""


class Restriction:
    """Delete guard: rows of `child_model` whose `child_field` equals our `parent_field` block deletion."""

    def __init__(self, child_model, child_field: str, parent_field: str, message: str):
        self.child_model = child_model
        self.child_field = child_field
        self.parent_field = parent_field
        self.message = message

    def is_referenced(self, parent) -> bool:
        value = getattr(parent, self.parent_field)
        column = getattr(self.child_model, self.child_field)
        q = db.session.query(self.child_model.id).filter(column == value)
        return db.session.query(q.exists()).scalar()


class TableGateway:
    """
    select / insert / update / delete over one table.
    """

    def __init__(self, model, *, restrictions: Iterable[Restriction] = ()):
        self.model = model
        self.restrictions = list(restrictions)

    @property
    def table_name(self) -> str:
        return self.model.__tablename__

    def _fail(self, action: str, exc: Exception) -> RemoteFailure:
        db.session.rollback()
        return RemoteFailure(f"{self.table_name} {action} failed: {exc}")

    def select(
        self,
        *,
        filters: dict[str, Any] | None = None,
        order_by: str | Iterable[str] | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict]:
        try:
            q = self.model.query
            if filters:
                q = q.filter_by(**filters)
            if order_by:
                keys = [order_by] if isinstance(order_by, str) else list(order_by)
                cols = [getattr(self.model, k) for k in keys]
                q = q.order_by(*[c.desc() if descending else c.asc() for c in cols])
            if limit is not None:
                q = q.limit(limit)
            return [row.to_dict() for row in q.all()]
        except SQLAlchemyError as exc:
            raise self._fail("select", exc) from exc

    def get(self, row_id: str) -> dict | None:
        try:
            row = db.session.get(self.model, row_id)
            return row.to_dict() if row is not None else None
        except SQLAlchemyError as exc:
            raise self._fail("select", exc) from exc

    def insert(self, rows: list[dict]) -> list[dict]:
        try:
            objs = [self.model(**fields) for fields in rows]
            db.session.add_all(objs)
            db.session.commit()
            return [obj.to_dict() for obj in objs]
        except SQLAlchemyError as exc:
            raise self._fail("insert", exc) from exc

    def update(self, row_id: str, fields: dict) -> dict:
        try:
            row = db.session.get(self.model, row_id)
            if row is None:
                raise RemoteFailure(f"{self.table_name} row {row_id} not found")
            for key, value in fields.items():
                setattr(row, key, value)
            db.session.commit()
            return row.to_dict()
        except SQLAlchemyError as exc:
            raise self._fail("update", exc) from exc

    def delete(self, row_id: str) -> None:
        try:
            row = db.session.get(self.model, row_id)
            if row is None:
                raise RemoteFailure(f"{self.table_name} row {row_id} not found")
            for restriction in self.restrictions:
                if restriction.is_referenced(row):
                    db.session.rollback()
                    raise ConflictError(restriction.message)
            db.session.delete(row)
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise ConflictError(f"{self.table_name} row {row_id} is still referenced") from exc
        except SQLAlchemyError as exc:
            raise self._fail("delete", exc) from exc
