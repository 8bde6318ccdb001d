from .auth import User
from .sales import Sale
from .cash_drawer import (
    DrawerRecord,
    DrawerExpense,
    DrawerAuditEntry,
    DrawerStatus,
    ExpenseCategory,
    AuditAction,
    ACTIVE_STATUSES,
)

__all__ = [
    'User',
    'Sale',
    'DrawerRecord', 'DrawerExpense', 'DrawerAuditEntry',
    'DrawerStatus', 'ExpenseCategory', 'AuditAction', 'ACTIVE_STATUSES',
]
