# Overview: Read-only view over POS sales; supplies live cash-sales totals.

from __future__ import annotations

from datetime import date

from sqlalchemy import func

from ..extensions import db
from ..models import Sale

CASH_PAYMENT_METHOD = "CASH"
POSTED_STATUS = "POSTED"


def _posted_cash_sales():
    return db.session.query(Sale).filter(
        Sale.payment_method == CASH_PAYMENT_METHOD,
        Sale.status == POSTED_STATUS,
    )


def get_cash_sales_total(business_date: date) -> int:
    """
    Sum of posted cash-tender sales for one business day (minor units).

    Queried live on every call; never cached.
    """
    total = (
        _posted_cash_sales()
        .filter(Sale.business_date == business_date)
        .with_entities(func.coalesce(func.sum(Sale.total_cents), 0))
        .scalar()
    )
    return int(total or 0)


def get_cash_sales_totals(start_date: date, end_date: date) -> dict[date, int]:
    """Cash-sales totals per business day in [start_date, end_date], one grouped query."""
    rows = (
        _posted_cash_sales()
        .filter(Sale.business_date >= start_date, Sale.business_date <= end_date)
        .with_entities(Sale.business_date, func.sum(Sale.total_cents))
        .group_by(Sale.business_date)
        .all()
    )
    return {business_date: int(total or 0) for business_date, total in rows}
