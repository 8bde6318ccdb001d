"""
Cash Drawer Authorization Policy

WHY: Centralized role checks ensure consistency across routes, CLI and services.
Role strings are never compared at call sites; everything goes through allows().

DESIGN PRINCIPLES:
- Only REOPEN is privileged (corrections to a closed day's reconciliation)
- OPEN, CLOSE and ADD_EXPENSE are available to any authenticated actor
- Role matching is case-insensitive and tolerant of "Super Admin" style spellings
- Authentication itself happens upstream; this module only decides permission
"""

from __future__ import annotations

import enum


# =============================================================================
# ROLES
# =============================================================================

class Role(str, enum.Enum):
    CASHIER = "CASHIER"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"
    OWNER = "OWNER"

    @classmethod
    def parse(cls, value) -> "Role | None":
        """Case-insensitive lookup; returns None for unknown role names."""
        if isinstance(value, Role):
            return value
        if not isinstance(value, str):
            return None
        key = _normalize(value)
        for role in cls:
            if role.value == key:
                return role
        return None


def _normalize(value: str) -> str:
    # "Super Admin", "super_admin", "super-admin" -> "SUPERADMIN"
    return "".join(ch for ch in value.strip().upper() if ch.isalnum())


# =============================================================================
# ACTIONS
# =============================================================================

class DrawerAction(str, enum.Enum):
    OPEN = "open"
    CLOSE = "close"
    ADD_EXPENSE = "add_expense"
    REOPEN = "reopen"


# Each privileged action maps to the roles allowed to perform it.
# Actions missing from this table are open to every authenticated actor.
PRIVILEGED_ACTIONS = {
    DrawerAction.REOPEN: frozenset({Role.ADMIN, Role.SUPERADMIN, Role.OWNER}),
}


def allows(role, action) -> bool:
    """
    Decide whether a role may perform an action.

    Pure function: no database access, no logging.
    """
    action = DrawerAction(action.lower() if isinstance(action, str) else action)

    allowed_roles = PRIVILEGED_ACTIONS.get(action)
    if allowed_roles is None:
        return True

    parsed = Role.parse(role)
    return parsed is not None and parsed in allowed_roles


def privileged_roles(action) -> list[str]:
    """Role names allowed to perform a privileged action (for error messages)."""
    action = DrawerAction(action.lower() if isinstance(action, str) else action)
    return sorted(role.value for role in PRIVILEGED_ACTIONS.get(action, ()))
