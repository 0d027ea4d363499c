"""Persistence gateway for refund records.

Filters and patches use the wire (camelCase) field names; each model maps
them to columns through its `FIELD_COLUMNS` table.

`find_by_id_and_update` is the only way state changes are written. It issues
one `UPDATE ... WHERE id = ? [AND <scope>] [AND <conditional_on>]` statement,
so a guard such as `requestStatus == 'pending'` is checked and applied
atomically by the database rather than by a read followed by a write.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from extensions import db
from models.refund import Refund
from models.refund_request import RefundRequest
from services.errors import StoreUnavailable, ValidationError


class Store:
    model = None

    @contextmanager
    def _guard(self):
        try:
            yield
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.exception("%s store failure", self.model.__name__)
            raise StoreUnavailable() from exc

    def _column(self, field: str):
        attr = self.model.FIELD_COLUMNS.get(field)
        if attr is None:
            raise ValidationError(f"Unknown field: {field}")
        return getattr(self.model, attr)

    def _criteria(self, filters: Optional[dict]) -> list:
        criteria = []
        for field, value in (filters or {}).items():
            column = self._column(field)
            if isinstance(value, (list, tuple, set, frozenset)):
                criteria.append(column.in_(list(value)))
            else:
                criteria.append(column == value)
        return criteria

    def _values(self, patch: dict) -> dict:
        values = {self.model.FIELD_COLUMNS[f]: v for f, v in patch.items() if f in self.model.FIELD_COLUMNS}
        unknown = sorted(set(patch) - set(self.model.FIELD_COLUMNS))
        if unknown:
            raise ValidationError(f"Unknown field(s): {', '.join(unknown)}")
        values['updated_at'] = datetime.now()
        return values

    def insert(self, record, *, conflict_message: str = 'Record already exists'):
        try:
            db.session.add(record)
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise ValidationError(conflict_message) from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.exception("%s insert failed", self.model.__name__)
            raise StoreUnavailable() from exc
        return record

    def get(self, record_id: str):
        with self._guard():
            return db.session.get(self.model, record_id, populate_existing=True)

    def find_one(self, filters: dict):
        criteria = self._criteria(filters)
        with self._guard():
            return self.model.query.filter(*criteria).first()

    def find(
        self,
        filters: Optional[dict] = None,
        *,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list, int]:
        criteria = self._criteria(filters)
        with self._guard():
            q = self.model.query.filter(*criteria)
            total = q.count()
            rows = (
                q.order_by(self.model.created_at.desc(), self.model.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
                .all()
            )
        return rows, total

    def find_by_id_and_update(
        self,
        record_id: str,
        patch: dict,
        *,
        scope: Optional[dict] = None,
        conditional_on: Optional[dict] = None,
    ):
        """Apply `patch` to the record if it matches scope and condition.

        Returns the refreshed record, or None when nothing matched.
        """
        criteria = [self.model.id == record_id]
        criteria += self._criteria(scope)
        criteria += self._criteria(conditional_on)
        values = self._values(patch)

        with self._guard():
            matched = self.model.query.filter(*criteria).update(values, synchronize_session=False)
            db.session.commit()
            if not matched:
                return None
            return db.session.get(self.model, record_id, populate_existing=True)

    def update_many(self, filters: dict, patch: dict) -> int:
        criteria = self._criteria(filters)
        values = self._values(patch)
        with self._guard():
            matched = self.model.query.filter(*criteria).update(values, synchronize_session=False)
            db.session.commit()
        return int(matched or 0)

    def delete_by_id(self, record_id: str, *, scope: Optional[dict] = None) -> bool:
        criteria = [self.model.id == record_id] + self._criteria(scope)
        with self._guard():
            deleted = self.model.query.filter(*criteria).delete(synchronize_session=False)
            db.session.commit()
        return bool(deleted)

    def delete_many(self, filters: dict) -> int:
        criteria = self._criteria(filters)
        with self._guard():
            deleted = self.model.query.filter(*criteria).delete(synchronize_session=False)
            db.session.commit()
        return int(deleted or 0)


class RefundRequestStore(Store):
    model = RefundRequest


class RefundStore(Store):
    model = Refund


def find_record(model, filters: dict[str, Any]):
    """Single-row lookup on a supporting model using column names."""
    try:
        return model.query.filter_by(**filters).first()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("%s lookup failed", model.__name__)
        raise StoreUnavailable() from exc
