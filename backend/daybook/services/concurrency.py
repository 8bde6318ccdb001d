# Overview: Service-layer helpers for per-date write serialization.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..validation import ConcurrencyError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    The drawer's version_id column still catches lost updates on SQLite.
    """
    return query.with_for_update()


@contextmanager
def atomic_mutation(description: str):
    """
    Run a drawer mutation as one transaction.

    Commits once on success. On any failure the session is rolled back, so no
    partial state survives. Losing a race surfaces as ConcurrencyError:
    - StaleDataError: version_id changed under us (optimistic lock)
    - IntegrityError: duplicate business_date or (date, sequence)
    - OperationalError: lock wait / deadlock reported by the database

    No retry happens here; the caller re-reads and decides.
    """
    try:
        yield
        db.session.commit()
    except (StaleDataError, IntegrityError, OperationalError) as exc:
        db.session.rollback()
        raise ConcurrencyError(
            f"Concurrent update while trying to {description}; re-read the drawer and retry"
        ) from exc
    except Exception:
        db.session.rollback()
        raise
