from __future__ import annotations

from ..extensions import db
from daybook.time_utils import to_utc_z


class Sale(db.Model):
    """
    Point-of-sale transaction, written by the POS engine.

    WHY: The drawer never stores cash sales. Expected cash is always derived
    from the posted cash-tender sales for the business day at read time.
    """
    __tablename__ = "sales"
    __table_args__ = (
        # Composite index for the cash-sales total per business day
        db.Index("ix_sales_date_method_status", "business_date", "payment_method", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_date = db.Column(db.Date, nullable=False, index=True)

    payment_method = db.Column(db.String(16), nullable=False, default="CASH")  # CASH, CARD, ...
    status = db.Column(db.String(16), nullable=False, default="POSTED")  # POSTED, VOIDED

    total_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_date": self.business_date.isoformat(),
            "payment_method": self.payment_method,
            "status": self.status,
            "total_cents": self.total_cents,
            "created_at": to_utc_z(self.created_at),
        }
