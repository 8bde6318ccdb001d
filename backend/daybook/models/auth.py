from __future__ import annotations

from ..extensions import db
from daybook.time_utils import to_utc_z


class User(db.Model):
    """
    Actor directory entry.

    WHY: Every drawer action must be attributable. Authentication is done by
    the upstream identity service; this table only maps an actor id to a role.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_users_username"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, index=True)

    # Role name as issued by the identity service (e.g. "Admin", "cashier")
    role = db.Column(db.String(32), nullable=False, default="CASHIER")

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.role})>"
