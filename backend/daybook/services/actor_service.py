# Overview: Actor directory lookups; resolves authenticated user ids to roles.

from __future__ import annotations

from ..extensions import db
from ..models import User
from ..permissions import Role
from ..validation import UnauthorizedError, ValidationError, clean_text


def get_actor(user_id) -> User:
    """
    Resolve an already-authenticated actor id.

    Raises:
        UnauthorizedError: unknown or deactivated user
    """
    if user_id is None:
        raise UnauthorizedError("Actor is required")
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise UnauthorizedError("Actor id must be an integer")

    user = db.session.get(User, user_id)
    if not user or not user.is_active:
        raise UnauthorizedError("Unknown or inactive actor")
    return user


def get_role(user_id) -> str:
    """Role name for an actor, as stored by the identity service."""
    return get_actor(user_id).role


def create_user(username: str, role: str = Role.CASHIER.value) -> User:
    """
    Register an actor in the directory.

    Role names are normalised to the Role enum so policy checks stay exact.
    """
    username = clean_text(username, "username", required=True, max_length=64)
    parsed = Role.parse(role)
    if parsed is None:
        choices = ", ".join(r.value for r in Role)
        raise ValidationError(f"Unknown role '{role}' (expected one of: {choices})")

    existing = db.session.query(User).filter_by(username=username).first()
    if existing:
        raise ValidationError(f"User '{username}' already exists")

    user = User(username=username, role=parsed.value, is_active=True)
    db.session.add(user)
    db.session.commit()
    return user


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.username).all()
