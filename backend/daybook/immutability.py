"""
ORM-level immutability enforcement for cash drawer history.

SQLAlchemy fires mapper events before UPDATE/DELETE statements are emitted.
The listeners below reject changes to append-only rows before any SQL reaches
the database, so the surrounding transaction is rolled back untouched.

Entity              | When immutable            | What
--------------------|---------------------------|--------------------------------------
DrawerAuditEntry    | Always                    | No update, no delete
DrawerExpense       | Always                    | No update, no delete
DrawerRecord        | Always                    | business_date, opening_balance_cents
DrawerRecord        | Always                    | Rows are never deleted

Bulk Core statements (session.execute(delete(...))) bypass mapper events;
test fixtures rely on that to reset tables.
"""

from flask import current_app, has_app_context
from sqlalchemy import event, inspect

from .models import DrawerAuditEntry, DrawerExpense, DrawerRecord
from .validation import ImmutableRecordError

DRAWER_FROZEN_FIELDS = frozenset({"business_date", "opening_balance_cents"})


def _log_blocked(entity_type: str, entity_id, operation: str, field: str | None = None) -> None:
    if not has_app_context():
        return
    current_app.logger.error(
        "immutability_violation_blocked entity=%s id=%s operation=%s field=%s",
        entity_type,
        entity_id,
        operation,
        field,
    )


def _has_column_changes(target) -> bool:
    insp = inspect(target)
    return any(insp.attrs[attr.key].history.has_changes() for attr in insp.mapper.column_attrs)


def _reject_update(mapper, connection, target):
    # before_update also fires for rows that are dirty without net changes
    if not _has_column_changes(target):
        return
    entity_type = type(target).__name__
    _log_blocked(entity_type, target.id, "UPDATE")
    raise ImmutableRecordError(f"{entity_type} rows are append-only and cannot be modified")


def _reject_delete(mapper, connection, target):
    entity_type = type(target).__name__
    _log_blocked(entity_type, target.id, "DELETE")
    raise ImmutableRecordError(f"{entity_type} rows cannot be deleted")


def _check_drawer_record_update(mapper, connection, target):
    insp = inspect(target)
    for field in DRAWER_FROZEN_FIELDS:
        hist = insp.attrs[field].history
        if hist.deleted and hist.added and hist.deleted[0] != hist.added[0]:
            _log_blocked("DrawerRecord", target.id, "UPDATE", field)
            raise ImmutableRecordError(f"DrawerRecord.{field} cannot change once the drawer is opened")


_LISTENERS = (
    (DrawerAuditEntry, "before_update", _reject_update),
    (DrawerAuditEntry, "before_delete", _reject_delete),
    (DrawerExpense, "before_update", _reject_update),
    (DrawerExpense, "before_delete", _reject_delete),
    (DrawerRecord, "before_update", _check_drawer_record_update),
    (DrawerRecord, "before_delete", _reject_delete),
)


def register_immutability_listeners() -> None:
    """Install listeners once; safe to call for every app created in a process."""
    for model, identifier, fn in _LISTENERS:
        if not event.contains(model, identifier, fn):
            event.listen(model, identifier, fn)


def unregister_immutability_listeners() -> None:
    for model, identifier, fn in _LISTENERS:
        if event.contains(model, identifier, fn):
            event.remove(model, identifier, fn)
