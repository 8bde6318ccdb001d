"""
Daily Cash Drawer Reconciliation Service

WHY: Track, per business day, how much cash the till should hold, compare it
against a physical count, and keep an accountable trail of every open, close,
reopen and cash expense.

DESIGN PRINCIPLES:
- One drawer per business date; the date is always supplied by the caller
- Expected cash is derived on every read: opening + live cash sales - expenses
- Actual cash and difference are point-in-time snapshots taken at close
- Reopening a closed day is privileged and always needs a reason
- Every mutation is all-or-nothing and is written with its audit entry in
  the same transaction
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from flask import current_app

from ..extensions import db
from ..models import (
    AuditAction,
    DrawerAuditEntry,
    DrawerExpense,
    DrawerRecord,
    DrawerStatus,
    ExpenseCategory,
    User,
)
from ..money import format_cents
from ..permissions import DrawerAction, allows, privileged_roles
from ..validation import (
    MAX_AMOUNT_CENTS,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
    clean_text,
    require_non_negative,
    require_positive,
)
from . import actor_service, drawer_audit_service, sales_service
from .concurrency import atomic_mutation, lock_for_update
from daybook.time_utils import parse_business_date, to_utc_z, utcnow

NOTES_MAX_LENGTH = 2000


class BalanceState(str, enum.Enum):
    BALANCED = "BALANCED"
    SHORT = "SHORT"  # counted less than expected
    OVER = "OVER"  # counted more than expected


# =============================================================================
# READ MODELS
# =============================================================================

@dataclass(frozen=True)
class UnopenedDrawer:
    """Returned by get_status() for a date with no drawer record."""
    business_date: date
    status: str = DrawerStatus.UNOPENED.value
    exists: bool = False

    def to_dict(self, currency_label: str | None = None) -> dict:
        return {
            "business_date": self.business_date.isoformat(),
            "status": self.status,
            "exists": False,
        }


@dataclass(frozen=True)
class DrawerSummary:
    """
    A drawer record plus its derived values at the moment of reading.

    expected_cash_cents is computed here, never loaded from storage.
    """
    business_date: date
    status: str
    opening_balance_cents: int
    cash_sales_cents: int
    cash_expenses_cents: int
    expected_cash_cents: int
    actual_cash_cents: Optional[int]
    difference_cents: Optional[int]
    balance_state: Optional[str]
    opened_at: Optional[datetime]
    opened_by_user_id: Optional[int]
    closed_at: Optional[datetime]
    closed_by_user_id: Optional[int]
    notes: Optional[str]
    reopened_at: Optional[datetime]
    reopened_by_user_id: Optional[int]
    reopen_reason: Optional[str]
    version_id: int
    expenses: tuple = field(default_factory=tuple)
    exists: bool = True

    @property
    def was_reopened(self) -> bool:
        return self.reopened_at is not None

    def to_dict(self, currency_label: str | None = None) -> dict:
        label = currency_label if currency_label is not None else "Rs."
        return {
            "business_date": self.business_date.isoformat(),
            "status": self.status,
            "exists": True,
            "opening_balance_cents": self.opening_balance_cents,
            "cash_sales_cents": self.cash_sales_cents,
            "cash_expenses_cents": self.cash_expenses_cents,
            "expected_cash_cents": self.expected_cash_cents,
            "actual_cash_cents": self.actual_cash_cents,
            "difference_cents": self.difference_cents,
            "balance_state": self.balance_state,
            "opened_at": to_utc_z(self.opened_at),
            "opened_by_user_id": self.opened_by_user_id,
            "closed_at": to_utc_z(self.closed_at),
            "closed_by_user_id": self.closed_by_user_id,
            "notes": self.notes,
            "reopened_at": to_utc_z(self.reopened_at),
            "reopened_by_user_id": self.reopened_by_user_id,
            "reopen_reason": self.reopen_reason,
            "version_id": self.version_id,
            "expenses": [expense.to_dict() for expense in self.expenses],
            "display": {
                "opening_balance": format_cents(self.opening_balance_cents, label),
                "cash_sales": format_cents(self.cash_sales_cents, label),
                "cash_expenses": format_cents(self.cash_expenses_cents, label),
                "expected_cash": format_cents(self.expected_cash_cents, label),
                "actual_cash": format_cents(self.actual_cash_cents, label),
                "difference": format_cents(self.difference_cents, label, signed=True),
            },
        }


def compute_expected_cash(opening_balance_cents: int, cash_sales_cents: int, cash_expenses_cents: int) -> int:
    """expected = opening + cash sales - cash expenses (exact integer arithmetic)."""
    return opening_balance_cents + cash_sales_cents - cash_expenses_cents


def balance_state_for(difference_cents: Optional[int]) -> Optional[str]:
    if difference_cents is None:
        return None
    if difference_cents == 0:
        return BalanceState.BALANCED.value
    if difference_cents < 0:
        return BalanceState.SHORT.value
    return BalanceState.OVER.value


def build_summary(
    record: DrawerRecord,
    cash_sales_cents: Optional[int] = None,
    *,
    include_expenses: bool = False,
) -> DrawerSummary:
    """
    Project a drawer record into a DrawerSummary.

    cash_sales_cents may be supplied by callers that already loaded totals for
    a date range; otherwise it is fetched live.
    """
    if cash_sales_cents is None:
        cash_sales_cents = sales_service.get_cash_sales_total(record.business_date)

    cash_expenses_cents = record.cash_expenses_cents or 0
    return DrawerSummary(
        business_date=record.business_date,
        status=record.status,
        opening_balance_cents=record.opening_balance_cents,
        cash_sales_cents=cash_sales_cents,
        cash_expenses_cents=cash_expenses_cents,
        expected_cash_cents=compute_expected_cash(
            record.opening_balance_cents, cash_sales_cents, cash_expenses_cents
        ),
        actual_cash_cents=record.actual_cash_cents,
        difference_cents=record.difference_cents,
        balance_state=balance_state_for(record.difference_cents),
        opened_at=record.opened_at,
        opened_by_user_id=record.opened_by_user_id,
        closed_at=record.closed_at,
        closed_by_user_id=record.closed_by_user_id,
        notes=record.notes,
        reopened_at=record.reopened_at,
        reopened_by_user_id=record.reopened_by_user_id,
        reopen_reason=record.reopen_reason,
        version_id=record.version_id,
        expenses=tuple(record.expenses) if include_expenses else tuple(),
    )


# =============================================================================
# HELPERS
# =============================================================================

def _business_date(value) -> date:
    try:
        return parse_business_date(value)
    except ValueError as e:
        raise ValidationError(str(e))


def _resolve_actor(actor) -> User:
    # User objects are re-resolved so a deactivated account cannot act
    if isinstance(actor, User):
        actor = actor.id
    return actor_service.get_actor(actor)


def _get_record(business_date: date, *, for_update: bool = False) -> DrawerRecord | None:
    query = db.session.query(DrawerRecord).filter_by(business_date=business_date)
    if for_update:
        query = lock_for_update(query)
    return query.first()


def _require_active_record(business_date: date, action: str) -> DrawerRecord:
    record = _get_record(business_date, for_update=True)
    if record is None:
        raise InvalidStateError(f"Cannot {action}: drawer for {business_date} has not been opened")
    if not record.is_active:
        raise InvalidStateError(
            f"Cannot {action}: drawer for {business_date} is {record.status}; reopen it first"
        )
    return record


def _label() -> str:
    return current_app.config.get("CURRENCY_LABEL", "Rs.")


# =============================================================================
# DRAWER LIFECYCLE
# =============================================================================

def open_drawer(business_date, opening_balance_cents, actor) -> DrawerSummary:
    """
    Start the business day with an opening cash balance.

    Args:
        business_date: Calendar day key (date or "YYYY-MM-DD")
        opening_balance_cents: Starting cash in drawer, >= 0
        actor: User (or user id) opening the drawer

    Raises:
        ValidationError: negative or malformed opening balance
        InvalidStateError: a drawer already exists for the date
        ConcurrencyError: another terminal opened the same date first
    """
    business_date = _business_date(business_date)
    opening_balance_cents = require_non_negative(opening_balance_cents, "opening_balance_cents")
    actor = _resolve_actor(actor)

    with atomic_mutation(f"open the drawer for {business_date}"):
        existing = _get_record(business_date, for_update=True)
        if existing is not None:
            raise InvalidStateError(f"Drawer for {business_date} is already {existing.status}")

        record = DrawerRecord(
            business_date=business_date,
            status=DrawerStatus.OPEN.value,
            opening_balance_cents=opening_balance_cents,
            cash_expenses_cents=0,
            opened_at=utcnow(),
            opened_by_user_id=actor.id,
        )
        db.session.add(record)

        drawer_audit_service.record_entry(
            record=record,
            action=AuditAction.OPEN,
            actor=actor,
            note="Drawer opened",
            snapshot={"opening_balance_cents": opening_balance_cents},
        )

    current_app.logger.info(
        "Cash drawer opened date=%s actor=%s opening=%s",
        business_date, actor.username, format_cents(opening_balance_cents, _label()),
    )
    return build_summary(record)


def add_expense(business_date, amount_cents, category, actor, description: str | None = None) -> DrawerExpense:
    """
    Record cash paid out of an open drawer.

    Raises:
        ValidationError: non-positive amount, unknown category
        InvalidStateError: drawer unopened or closed
    """
    business_date = _business_date(business_date)
    amount_cents = require_positive(amount_cents, "amount_cents")
    try:
        category = ExpenseCategory.parse(category)
    except ValueError as e:
        raise ValidationError(str(e))
    description = clean_text(description, "description")
    actor = _resolve_actor(actor)

    with atomic_mutation(f"record an expense for {business_date}"):
        record = _require_active_record(business_date, "record an expense")
        if (record.cash_expenses_cents or 0) + amount_cents > MAX_AMOUNT_CENTS:
            raise ValidationError(
                f"Cash expenses for {business_date} would exceed the maximum of {MAX_AMOUNT_CENTS}"
            )

        expense = DrawerExpense(
            business_date=business_date,
            sequence=drawer_audit_service.next_sequence(DrawerExpense, business_date),
            amount_cents=amount_cents,
            category=category.value,
            description=description,
            recorded_at=utcnow(),
            recorded_by_user_id=actor.id,
        )
        record.expenses.append(expense)
        record.cash_expenses_cents = (record.cash_expenses_cents or 0) + amount_cents

        drawer_audit_service.record_entry(
            record=record,
            action=AuditAction.EXPENSE_ADDED,
            actor=actor,
            note=description,
            snapshot={
                "expense_sequence": expense.sequence,
                "amount_cents": amount_cents,
                "category": category.value,
                "cash_expenses_cents": record.cash_expenses_cents,
            },
        )

    current_app.logger.info(
        "Cash expense recorded date=%s actor=%s amount=%s category=%s",
        business_date, actor.username, format_cents(amount_cents, _label()), category.value,
    )
    return expense


def close_drawer(business_date, actual_cash_cents, actor, notes: str | None = None) -> DrawerSummary:
    """
    Close the day with a physical cash count.

    Expected cash is computed fresh with the live cash-sales total; the
    difference (actual - expected) is frozen on the record.

    Raises:
        ValidationError: negative or malformed count
        InvalidStateError: drawer unopened, or already closed (reopen first)
    """
    business_date = _business_date(business_date)
    actual_cash_cents = require_non_negative(actual_cash_cents, "actual_cash_cents")
    notes = clean_text(notes, "notes", max_length=NOTES_MAX_LENGTH)
    actor = _resolve_actor(actor)

    with atomic_mutation(f"close the drawer for {business_date}"):
        record = _require_active_record(business_date, "close the drawer")

        cash_sales_cents = sales_service.get_cash_sales_total(business_date)
        expected_cash_cents = compute_expected_cash(
            record.opening_balance_cents, cash_sales_cents, record.cash_expenses_cents or 0
        )
        difference_cents = actual_cash_cents - expected_cash_cents

        record.status = DrawerStatus.CLOSED.value
        record.actual_cash_cents = actual_cash_cents
        record.difference_cents = difference_cents
        record.closed_at = utcnow()
        record.closed_by_user_id = actor.id
        record.notes = notes

        drawer_audit_service.record_entry(
            record=record,
            action=AuditAction.CLOSE,
            actor=actor,
            note=notes,
            snapshot={
                "opening_balance_cents": record.opening_balance_cents,
                "cash_sales_cents": cash_sales_cents,
                "cash_expenses_cents": record.cash_expenses_cents or 0,
                "expected_cash_cents": expected_cash_cents,
                "actual_cash_cents": actual_cash_cents,
                "difference_cents": difference_cents,
            },
        )

    current_app.logger.info(
        "Cash drawer closed date=%s actor=%s expected=%s actual=%s difference=%s",
        business_date,
        actor.username,
        format_cents(expected_cash_cents, _label()),
        format_cents(actual_cash_cents, _label()),
        format_cents(difference_cents, _label(), signed=True),
    )
    return build_summary(record, cash_sales_cents)


def reopen_drawer(business_date, reason, actor) -> DrawerSummary:
    """
    Reopen a closed day for corrections (privileged).

    The previous count stays on the record as the last reconciliation until
    the next close overwrites it; the audit trail keeps every count.

    Raises:
        UnauthorizedError: actor's role may not reopen
        ValidationError: empty reason
        InvalidStateError: drawer is not closed
    """
    business_date = _business_date(business_date)
    actor = _resolve_actor(actor)

    if not allows(actor.role, DrawerAction.REOPEN):
        current_app.logger.warning(
            "Cash drawer reopen denied date=%s actor=%s role=%s",
            business_date, actor.username, actor.role,
        )
        raise UnauthorizedError(
            f"Reopening a drawer requires one of: {', '.join(privileged_roles(DrawerAction.REOPEN))}"
        )

    reason = clean_text(reason, "reason", required=True)

    with atomic_mutation(f"reopen the drawer for {business_date}"):
        record = _get_record(business_date, for_update=True)
        if record is None:
            raise InvalidStateError(f"Cannot reopen: drawer for {business_date} has not been opened")
        if record.status != DrawerStatus.CLOSED.value:
            raise InvalidStateError(
                f"Cannot reopen: drawer for {business_date} is {record.status}, not {DrawerStatus.CLOSED.value}"
            )

        record.status = DrawerStatus.REOPENED.value
        record.reopened_at = utcnow()
        record.reopened_by_user_id = actor.id
        record.reopen_reason = reason

        drawer_audit_service.record_entry(
            record=record,
            action=AuditAction.REOPEN,
            actor=actor,
            note=reason,
            snapshot={
                "reason": reason,
                "previous_actual_cash_cents": record.actual_cash_cents,
                "previous_difference_cents": record.difference_cents,
            },
        )

    current_app.logger.info(
        "Cash drawer reopened date=%s actor=%s reason=%r",
        business_date, actor.username, reason,
    )
    return build_summary(record)


# =============================================================================
# QUERIES
# =============================================================================

def get_status(business_date) -> DrawerSummary | UnopenedDrawer:
    """Drawer summary for a date, or UnopenedDrawer when none exists (never an error)."""
    business_date = _business_date(business_date)
    record = _get_record(business_date)
    if record is None:
        return UnopenedDrawer(business_date=business_date)
    return build_summary(record, include_expenses=True)


def get_audit_log(business_date) -> list[DrawerAuditEntry]:
    """
    Audit entries for a date, oldest first.

    Raises:
        NotFoundError: no drawer record exists for the date
    """
    business_date = _business_date(business_date)
    if _get_record(business_date) is None:
        raise NotFoundError(f"No cash drawer record for {business_date}")
    return drawer_audit_service.query(business_date)
