"""
Drawer audit trail tests.

The audit log and the expense ledger are append-only: ORM listeners block
updates and deletes, and sequences are gapless per business date.
"""

from datetime import timedelta

import pytest

from daybook.models import DrawerAuditEntry, DrawerExpense, DrawerRecord
from daybook.services import drawer_audit_service
from daybook.services.cash_drawer_service import add_expense, close_drawer, open_drawer
from daybook.validation import ImmutableRecordError

from conftest import BUSINESS_DATE


@pytest.fixture
def opened_day(db_session, cashier):
    open_drawer(BUSINESS_DATE, 5000, cashier)
    add_expense(BUSINESS_DATE, 200, "OTHER", cashier, description="Tea")
    return BUSINESS_DATE


class TestAuditQuery:

    def test_entries_in_append_order(self, opened_day, cashier):
        close_drawer(opened_day, 4800, cashier)

        entries = drawer_audit_service.query(opened_day)

        assert [e.sequence for e in entries] == [1, 2, 3]
        assert [e.action for e in entries] == ["OPEN", "EXPENSE_ADDED", "CLOSE"]

    def test_sequences_are_per_date(self, opened_day, cashier):
        other_day = opened_day + timedelta(days=1)
        open_drawer(other_day, 100, cashier)

        assert [e.sequence for e in drawer_audit_service.query(other_day)] == [1]
        assert drawer_audit_service.next_sequence(DrawerAuditEntry, opened_day) == 3
        assert drawer_audit_service.next_sequence(DrawerExpense, opened_day) == 2

    def test_unknown_date_has_no_entries(self, db_session):
        assert drawer_audit_service.query(BUSINESS_DATE) == []

    def test_entry_records_actor_identity(self, opened_day, cashier):
        entry = drawer_audit_service.query(opened_day)[0]

        data = entry.to_dict()
        assert data["actor_user_id"] == cashier.id
        assert data["actor_username"] == "cashier"
        assert data["actor_role"] == "Cashier"
        assert data["occurred_at"].endswith("Z")
        assert data["business_date"] == "2024-01-10"


class TestAppendOnly:

    def test_audit_entry_cannot_be_modified(self, opened_day, db_session):
        entry = drawer_audit_service.query(opened_day)[0]
        entry.note = "rewritten"

        with pytest.raises(ImmutableRecordError):
            db_session.commit()
        db_session.rollback()

        assert drawer_audit_service.query(opened_day)[0].note == "Drawer opened"

    def test_audit_entry_cannot_be_deleted(self, opened_day, db_session):
        entry = drawer_audit_service.query(opened_day)[0]
        db_session.delete(entry)

        with pytest.raises(ImmutableRecordError):
            db_session.commit()
        db_session.rollback()

        assert len(drawer_audit_service.query(opened_day)) == 2

    def test_expense_cannot_be_modified(self, opened_day, db_session):
        expense = db_session.query(DrawerExpense).filter_by(business_date=opened_day).one()
        expense.amount_cents = 1

        with pytest.raises(ImmutableRecordError):
            db_session.commit()
        db_session.rollback()

        assert db_session.query(DrawerExpense).filter_by(business_date=opened_day).one().amount_cents == 200

    def test_expense_cannot_be_deleted(self, opened_day, db_session):
        expense = db_session.query(DrawerExpense).filter_by(business_date=opened_day).one()
        db_session.delete(expense)

        with pytest.raises(ImmutableRecordError):
            db_session.commit()
        db_session.rollback()

    def test_opening_balance_is_frozen(self, opened_day, db_session):
        record = db_session.query(DrawerRecord).filter_by(business_date=opened_day).one()
        record.opening_balance_cents = 9000

        with pytest.raises(ImmutableRecordError):
            db_session.commit()
        db_session.rollback()

        record = db_session.query(DrawerRecord).filter_by(business_date=opened_day).one()
        assert record.opening_balance_cents == 5000

    def test_drawer_record_cannot_be_deleted(self, opened_day, db_session):
        record = db_session.query(DrawerRecord).filter_by(business_date=opened_day).one()
        db_session.delete(record)

        with pytest.raises(ImmutableRecordError):
            db_session.commit()
        db_session.rollback()

        assert db_session.query(DrawerRecord).count() == 1

    def test_unchanged_dirty_entry_is_not_blocked(self, opened_day, db_session):
        entry = drawer_audit_service.query(opened_day)[0]
        entry.note = entry.note

        db_session.commit()
