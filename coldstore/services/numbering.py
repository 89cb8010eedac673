from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import InstrumentedAttribute


def format_number(prefix: str, value: int, width: int) -> str:
    return f"{prefix}{value:0{width}d}"


def next_number(db: Session, column: InstrumentedAttribute, prefix: str, width: int) -> str:
    """
    Next sequential document number after the highest one in ``column``.

    Numbers are zero padded to ``width`` and keep growing past it
    (DR-999 -> DR-1000), so the highest value is the longest string first,
    then the greatest one.
    """
    last = db.execute(
        select(column)
        .where(column.is_not(None))
        .where(column.like(f"{prefix}%"))
        .order_by(func.length(column).desc(), column.desc())
        .limit(1)
    ).scalar_one_or_none()

    if not last:
        return format_number(prefix, 1, width)

    suffix = last[len(prefix):]
    try:
        current = int(suffix)
    except ValueError:
        raise ValueError(f"Malformed document number {last!r}") from None
    return format_number(prefix, current + 1, width)
