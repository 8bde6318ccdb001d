# Overview: Read-only reporting projection over stored drawer records.

from __future__ import annotations

from datetime import timedelta

from ..extensions import db
from ..models import DrawerRecord
from ..validation import ValidationError
from . import sales_service
from .cash_drawer_service import DrawerSummary, build_summary
from daybook.time_utils import parse_business_date, today


def get_history(start_date, end_date, *, descending: bool = True) -> list[DrawerSummary]:
    """
    One summary row per business date that has a drawer record.

    Dates without a record are omitted, not zero-filled. Cash sales for the
    whole range come from one grouped query; expected cash is derived per row.
    No writes, no side effects.
    """
    try:
        start_date = parse_business_date(start_date)
        end_date = parse_business_date(end_date)
    except ValueError as e:
        raise ValidationError(str(e))

    if start_date > end_date:
        raise ValidationError("start date must be on or before end date")

    order = DrawerRecord.business_date.desc() if descending else DrawerRecord.business_date.asc()
    records = db.session.query(DrawerRecord).filter(
        DrawerRecord.business_date >= start_date,
        DrawerRecord.business_date <= end_date,
    ).order_by(order).all()

    if not records:
        return []

    sales_by_date = sales_service.get_cash_sales_totals(start_date, end_date)
    return [
        build_summary(record, sales_by_date.get(record.business_date, 0))
        for record in records
    ]


def get_recent_history(days: int, *, end_date=None, descending: bool = True) -> list[DrawerSummary]:
    """History for the last `days` calendar days ending at end_date (default: today)."""
    if days < 1:
        raise ValidationError("days must be at least 1")
    try:
        end_date = parse_business_date(end_date) if end_date else today()
    except ValueError as e:
        raise ValidationError(str(e))
    start_date = end_date - timedelta(days=days - 1)
    return get_history(start_date, end_date, descending=descending)
