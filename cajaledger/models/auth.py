from __future__ import annotations

import sqlalchemy as sa

from .base import Base
from ..time_utils import utcnow, to_utc_z


class User(Base):
    """
    Identity mirror for attribution.

    WHY: Every movement and register must be attributable to a person, and
    listings show display names. Credentials live with the external
    authentication provider; nothing secret is stored here.

    The role column mirrors what the authentication provider assigned. The
    engine itself trusts the role carried by the caller's Actor.
    """
    __tablename__ = "users"
    __table_args__ = (
        sa.UniqueConstraint("email"),
        {"sqlite_autoincrement": True},
    )

    id = sa.Column(sa.Integer, primary_key=True)
    name = sa.Column(sa.String(128), nullable=False)
    email = sa.Column(sa.String(255), nullable=False)
    role = sa.Column(sa.String(16), nullable=False, default="EMPLOYEE", index=True)
    is_active = sa.Column(sa.Boolean, nullable=False, default=True)

    created_at = sa.Column(sa.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
