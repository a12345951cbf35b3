from __future__ import annotations

from datetime import date
from typing import Any, TypeVar

from sqlalchemy import Integer, cast, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import InstrumentedAttribute, Query, Session

from backend.app.core.database import Base
from backend.app.core.exceptions import NotFoundError
from backend.app.models.document_counter import DocumentCounter

ModelT = TypeVar("ModelT", bound=Base)


def get_owned(
    db: Session,
    model: type[ModelT],
    pk: int,
    business_id: int,
    label: str | None = None,
) -> ModelT:
    """Load ``model`` by id within the tenant, raising ``NotFoundError``."""
    row = (
        db.query(model)
        .filter(model.id == pk, model.business_id == business_id)
        .first()
    )
    if row is None:
        raise NotFoundError(label or model.__name__)
    return row


def require_links(db: Session, business_id: int, links: dict[type[Base], int | None]) -> None:
    """Check that every non-null foreign key points inside the tenant."""
    for model, pk in links.items():
        if pk is not None:
            get_owned(db, model, pk, business_id)


def paginate(query: Query, page: int, limit: int) -> tuple[list[Any], int]:
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total


def month_bucket(db: Session, column: InstrumentedAttribute) -> Any:
    """``YYYY-MM`` expression for ``column`` on the bound dialect."""
    if db.get_bind().dialect.name == "sqlite":
        return func.strftime("%Y-%m", column)
    return func.to_char(column, "YYYY-MM")


def _highest_issued(
    db: Session,
    column: InstrumentedAttribute,
    business_id_column: InstrumentedAttribute,
    business_id: int,
    stem: str,
) -> int:
    """Largest numeric suffix already stored under ``stem``."""
    suffix = cast(func.substr(column, len(stem) + 1), Integer)
    return (
        db.query(func.coalesce(func.max(suffix), 0))
        .filter(business_id_column == business_id, column.like(f"{stem}%"))
        .scalar()
    )


def next_document_number(
    db: Session,
    column: InstrumentedAttribute,
    business_id_column: InstrumentedAttribute,
    business_id: int,
    prefix: str,
    on: date | None = None,
) -> str:
    """Return the next number like ``TXN-2026-000001`` for the tenant/year.

    The sequence lives in a ``document_counters`` row bumped with
    ``UPDATE ... RETURNING``, so the row stays locked until the caller
    commits and concurrent creates never read the same value. The first
    number of a year starts after the highest one already stored.
    """
    year = (on or date.today()).year
    stem = f"{prefix}-{year}-"
    bump = (
        update(DocumentCounter)
        .where(
            DocumentCounter.business_id == business_id,
            DocumentCounter.prefix == prefix,
            DocumentCounter.year == year,
        )
        .values(current_value=DocumentCounter.current_value + 1)
        .returning(DocumentCounter.current_value)
        .execution_options(synchronize_session=False)
    )
    sequence = db.execute(bump).scalar_one_or_none()
    if sequence is None:
        sequence = _highest_issued(db, column, business_id_column, business_id, stem) + 1
        try:
            with db.begin_nested():
                db.add(
                    DocumentCounter(
                        business_id=business_id,
                        prefix=prefix,
                        year=year,
                        current_value=sequence,
                    )
                )
        except IntegrityError:
            # Another request created the counter first
            sequence = db.execute(bump).scalar_one()
    return f"{stem}{sequence:06d}"
