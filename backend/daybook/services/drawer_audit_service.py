# Overview: Append-only audit trail for cash drawer state changes.

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import func

from ..extensions import db
from ..models import AuditAction, DrawerAuditEntry, DrawerRecord, User
from daybook.time_utils import utcnow
"""
Drawer Audit Log Invariants

- Append-only: entries are never updated or deleted (ORM listeners enforce it).
- Ordered per business date by a gapless sequence starting at 1.
- Entries are written inside the same DB transaction as the change they record.
- occurred_at always comes from the server clock, never from the caller.
"""


def next_sequence(model, business_date: date) -> int:
    """Next per-date sequence number for an append-only child table."""
    current = db.session.query(func.max(model.sequence)).filter(
        model.business_date == business_date
    ).scalar()
    return (current or 0) + 1


def record_entry(
    *,
    record: DrawerRecord,
    action: AuditAction,
    actor: User,
    note: Optional[str] = None,
    snapshot: Optional[dict] = None,
) -> DrawerAuditEntry:
    """
    Append one audit entry for a drawer.

    - No domain logic here.
    - Flushes (to assign the sequence) but never commits; the caller's
      transaction decides whether the entry and the change it records persist.
    """
    entry = DrawerAuditEntry(
        business_date=record.business_date,
        sequence=next_sequence(DrawerAuditEntry, record.business_date),
        action=AuditAction(action).value,
        actor_user_id=actor.id,
        actor_username=actor.username,
        actor_role=actor.role,
        occurred_at=utcnow(),
        note=note,
        snapshot=dict(snapshot or {}),
    )
    record.audit_entries.append(entry)
    db.session.flush()
    return entry


def query(business_date: date) -> list[DrawerAuditEntry]:
    """Entries for a business date in original append order."""
    return db.session.query(DrawerAuditEntry).filter_by(
        business_date=business_date
    ).order_by(DrawerAuditEntry.sequence).all()
