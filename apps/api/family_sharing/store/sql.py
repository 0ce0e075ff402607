from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Sequence

from pydantic.alias_generators import to_camel, to_snake
from sqlalchemy import Enum as SqlEnum, DateTime, inspect, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from family_sharing.core.errors import UpstreamError
from family_sharing.models.base import Base
from family_sharing.models.entities import Family, FamilyInvitation, FamilyMember
from family_sharing.store.base import StoreConflict
from family_sharing.store.query import (
    FAMILIES,
    FAMILY_INVITATIONS,
    FAMILY_MEMBERS,
    Delete,
    Link,
    Query,
    Step,
    Update,
)

logger = logging.getLogger(__name__)

ENTITY_MODELS: dict[str, type[Base]] = {
    FAMILIES: Family,
    FAMILY_MEMBERS: FamilyMember,
    FAMILY_INVITATIONS: FamilyInvitation,
}

# (entity, relation label) -> (related model, many?)
RELATIONS: dict[tuple[str, str], tuple[type[Base], bool]] = {
    (FAMILIES, "members"): (FamilyMember, True),
    (FAMILIES, "invitations"): (FamilyInvitation, True),
    (FAMILY_MEMBERS, "family"): (Family, False),
    (FAMILY_INVITATIONS, "family"): (Family, False),
}

_ORDER_COLUMN = {
    Family: Family.created_at,
    FamilyMember: FamilyMember.joined_at,
    FamilyInvitation: FamilyInvitation.created_at,
}

def _entity_of(model: type[Base]) -> str:
    return next(entity for entity, m in ENTITY_MODELS.items() if m is model)


def _column(model: type[Base], key: str):
    # Filtering on a link label is filtering on its foreign key.
    attr = "family_id" if key == "family" and model is not Family else to_snake(key)
    columns = inspect(model).columns
    if attr not in columns:
        raise UpstreamError(f"unknown attribute {model.__tablename__}.{key}")
    return attr, columns[attr]


def _coerce(column, value: Any) -> Any:
    if value is None:
        return None
    if isinstance(column.type, SqlEnum) and column.type.enum_class is not None:
        return column.type.enum_class(value)
    if isinstance(column.type, DateTime):
        if isinstance(value, str):
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _serialize(row: Base) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for column in inspect(type(row)).columns:
        value = getattr(row, column.key)
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, datetime):
            value = value.replace(tzinfo=timezone.utc).isoformat() if value.tzinfo is None else value.isoformat()
        out[to_camel(column.key)] = value
    return out


class SqlStore:
    """`DataStore` over the local SQLAlchemy schema. One `transact` is one database transaction."""

    def __init__(self, db: Session):
        self.db = db

    def query(self, q: Query) -> list[dict[str, Any]]:
        model = ENTITY_MODELS.get(q.entity)
        if model is None:
            raise UpstreamError(f"unknown entity {q.entity}")
        try:
            return self._select(model, q, extra_filters=())
        except SQLAlchemyError as exc:
            raise UpstreamError(f"query on {q.entity} failed") from exc

    def _select(self, model: type[Base], q: Query, extra_filters: tuple) -> list[dict[str, Any]]:
        stmt = select(model).where(*extra_filters)
        for key, value in q.where.items():
            attr, column = _column(model, key)
            stmt = stmt.where(getattr(model, attr) == _coerce(column, value))
        stmt = stmt.order_by(_ORDER_COLUMN[model].asc(), model.id.asc())
        rows = self.db.execute(stmt).scalars().all()

        entity = _entity_of(model)
        out = []
        for row in rows:
            data = _serialize(row)
            for nested in q.include:
                related = RELATIONS.get((entity, nested.entity))
                if related is None:
                    raise UpstreamError(f"unknown relation {entity}.{nested.entity}")
                related_model, many = related
                if many:
                    filters = (related_model.family_id == row.id,)
                else:
                    filters = (related_model.id == row.family_id,)
                data[nested.entity] = self._select(related_model, nested, filters)
            out.append(data)
        return out

    def transact(self, steps: Sequence[Step]) -> None:
        touched: dict[tuple[type[Base], str], Base] = {}
        try:
            with self.db.no_autoflush:
                for step in steps:
                    self._apply(step, touched)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.info("transaction rejected by a uniqueness rule (%d steps)", len(steps))
            raise StoreConflict("write conflicts with an existing record") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise UpstreamError("transaction failed") from exc
        except UpstreamError:
            self.db.rollback()
            raise

    def _load(self, model: type[Base], row_id: str, touched: dict) -> Base | None:
        row = touched.get((model, row_id))
        if row is None:
            row = self.db.get(model, row_id)
        return row

    def _apply(self, step: Step, touched: dict) -> None:
        model = ENTITY_MODELS.get(step.entity)
        if model is None:
            raise UpstreamError(f"unknown entity {step.entity}")

        if isinstance(step, Delete):
            row = self._load(model, step.id, touched)
            if row is not None:
                self.db.delete(row)
                touched.pop((model, step.id), None)
            return

        row = self._load(model, step.id, touched)
        if row is None:
            row = model(id=step.id)
            self.db.add(row)
        touched[(model, step.id)] = row

        if isinstance(step, Update):
            for key, value in step.fields.items():
                attr, column = _column(model, key)
                setattr(row, attr, _coerce(column, value))
        elif isinstance(step, Link):
            for label, target_id in step.relation.items():
                if (step.entity, label) not in RELATIONS or RELATIONS[(step.entity, label)][1]:
                    raise UpstreamError(f"cannot link {step.entity}.{label}")
                row.family_id = target_id
