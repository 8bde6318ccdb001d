from __future__ import annotations

import enum

from ..extensions import db
from daybook.time_utils import to_utc_z


class DrawerStatus(str, enum.Enum):
    # UNOPENED is virtual: no drawer_records row exists for the date
    UNOPENED = "UNOPENED"
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    REOPENED = "REOPENED"


# Statuses in which cash may move through the drawer (expenses, close)
ACTIVE_STATUSES = frozenset({DrawerStatus.OPEN.value, DrawerStatus.REOPENED.value})


class ExpenseCategory(str, enum.Enum):
    SHOP_EXPENSE = "SHOP_EXPENSE"
    STAFF_ADVANCE = "STAFF_ADVANCE"
    UTILITY_BILL = "UTILITY_BILL"
    SUPPLIER_PAYMENT = "SUPPLIER_PAYMENT"
    OTHER = "OTHER"

    @property
    def label(self) -> str:
        return EXPENSE_CATEGORY_LABELS[self]

    @classmethod
    def parse(cls, value) -> "ExpenseCategory":
        """Accept enum names ("SHOP_EXPENSE") or display labels ("Shop Expense")."""
        if isinstance(value, ExpenseCategory):
            return value
        if not isinstance(value, str) or not value.strip():
            raise ValueError("category is required")
        key = value.strip().upper().replace(" ", "_").replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            choices = ", ".join(c.value for c in cls)
            raise ValueError(f"Unknown expense category '{value}' (expected one of: {choices})")


EXPENSE_CATEGORY_LABELS = {
    ExpenseCategory.SHOP_EXPENSE: "Shop Expense",
    ExpenseCategory.STAFF_ADVANCE: "Staff Advance",
    ExpenseCategory.UTILITY_BILL: "Utility Bill",
    ExpenseCategory.SUPPLIER_PAYMENT: "Supplier Payment",
    ExpenseCategory.OTHER: "Other",
}


class AuditAction(str, enum.Enum):
    OPEN = "OPEN"
    CLOSE = "CLOSE"
    REOPEN = "REOPEN"
    EXPENSE_ADDED = "EXPENSE_ADDED"


class DrawerRecord(db.Model):
    """
    One cash drawer per business day.

    WHY: Cash accountability is tracked per calendar day. The business date is
    supplied by the caller (shifts may cross midnight) and is the identity key.

    LIFECYCLE:
    - (no row): UNOPENED
    - OPEN: drawer started with an opening balance, expenses may be logged
    - CLOSED: physical count recorded, difference calculated
    - REOPENED: privileged correction window; must be closed again

    Expected cash is never stored: cash sales are read live from the sales table.
    actual_cash_cents / difference_cents are the snapshot of the latest count.
    """
    __tablename__ = "drawer_records"
    __table_args__ = (
        db.UniqueConstraint("business_date", name="uq_drawer_records_business_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_date = db.Column(db.Date, nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default=DrawerStatus.OPEN.value, index=True)

    # Cash tracking (all amounts in minor units)
    opening_balance_cents = db.Column(db.Integer, nullable=False)
    cash_expenses_cents = db.Column(db.Integer, nullable=False, default=0)

    # Latest physical count (set at close, overwritten by a later close)
    actual_cash_cents = db.Column(db.Integer, nullable=True)
    difference_cents = db.Column(db.Integer, nullable=True)  # actual - expected

    opened_at = db.Column(db.DateTime(timezone=True), nullable=False)
    opened_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    closed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    closed_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    reopened_at = db.Column(db.DateTime(timezone=True), nullable=True)
    reopened_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    reopen_reason = db.Column(db.String(255), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    opened_by = db.relationship("User", foreign_keys=[opened_by_user_id])
    closed_by = db.relationship("User", foreign_keys=[closed_by_user_id])
    reopened_by = db.relationship("User", foreign_keys=[reopened_by_user_id])
    expenses = db.relationship(
        "DrawerExpense",
        back_populates="drawer",
        order_by="DrawerExpense.sequence",
        lazy=True,
    )
    audit_entries = db.relationship(
        "DrawerAuditEntry",
        back_populates="drawer",
        order_by="DrawerAuditEntry.sequence",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def __repr__(self) -> str:
        return f"<DrawerRecord {self.business_date} {self.status}>"


class DrawerExpense(db.Model):
    """
    Cash paid out of the drawer during the business day.

    IMMUTABLE: Expenses are never edited or deleted once recorded.
    A mistake is corrected by reopening the day, not by editing history.
    """
    __tablename__ = "drawer_expenses"
    __table_args__ = (
        db.UniqueConstraint("business_date", "sequence", name="uq_drawer_expenses_date_seq"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_date = db.Column(
        db.Date, db.ForeignKey("drawer_records.business_date"), nullable=False, index=True
    )
    sequence = db.Column(db.Integer, nullable=False)

    amount_cents = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(32), nullable=False)
    description = db.Column(db.String(255), nullable=True)

    recorded_at = db.Column(db.DateTime(timezone=True), nullable=False)
    recorded_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    drawer = db.relationship("DrawerRecord", back_populates="expenses")
    recorded_by = db.relationship("User", foreign_keys=[recorded_by_user_id])

    def to_dict(self) -> dict:
        category = ExpenseCategory(self.category)
        return {
            "business_date": self.business_date.isoformat(),
            "sequence": self.sequence,
            "amount_cents": self.amount_cents,
            "category": category.value,
            "category_label": category.label,
            "description": self.description,
            "recorded_at": to_utc_z(self.recorded_at),
            "recorded_by_user_id": self.recorded_by_user_id,
        }


class DrawerAuditEntry(db.Model):
    """
    Append-only audit trail of drawer state changes.

    WHY: The log is the only historical record of intent and accountability.
    The live drawer row only holds the latest count; every count, reopen
    reason and expense stays here.

    IMMUTABLE: Never updated or deleted (enforced by ORM listeners).
    """
    __tablename__ = "drawer_audit_entries"
    __table_args__ = (
        db.UniqueConstraint("business_date", "sequence", name="uq_drawer_audit_date_seq"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_date = db.Column(
        db.Date, db.ForeignKey("drawer_records.business_date"), nullable=False, index=True
    )
    sequence = db.Column(db.Integer, nullable=False)

    action = db.Column(db.String(32), nullable=False, index=True)
    actor_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    # Denormalised so the trail stays readable if the user is later renamed
    actor_username = db.Column(db.String(64), nullable=False)
    actor_role = db.Column(db.String(32), nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    note = db.Column(db.Text, nullable=True)
    snapshot = db.Column(db.JSON, nullable=False, default=dict)

    drawer = db.relationship("DrawerRecord", back_populates="audit_entries")

    def to_dict(self) -> dict:
        return {
            "business_date": self.business_date.isoformat(),
            "sequence": self.sequence,
            "action": self.action,
            "actor_user_id": self.actor_user_id,
            "actor_username": self.actor_username,
            "actor_role": self.actor_role,
            "occurred_at": to_utc_z(self.occurred_at),
            "note": self.note,
            "snapshot": dict(self.snapshot or {}),
        }
