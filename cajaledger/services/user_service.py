# Overview: Identity mirror for users referenced by movements and registers.

from __future__ import annotations

from ..exceptions import DuplicateError, InvalidArgumentError, NotFoundError
from ..gateway import PersistenceGateway
from ..models import User
from ..permissions import Role
from ..validation import require_text


class UserDirectory:
    """
    Keeps the local users table in step with the authentication provider.

    Credentials and role assignment are not managed here; this only records
    who exists so ledger rows can reference and display them.
    """

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    def create_user(self, *, name: str, email: str, role="EMPLOYEE") -> User:
        name = require_text(name, "name", max_length=128)
        email = require_text(email, "email", max_length=255).lower()
        try:
            role = Role.parse(role)
        except ValueError as exc:
            raise InvalidArgumentError(str(exc)) from exc

        with self.gateway.transaction() as session:
            if session.query(User).filter_by(email=email).first():
                raise DuplicateError(f"User with email '{email}' already exists")
            user = User(name=name, email=email, role=role.value, is_active=True)
            session.add(user)
            session.flush()
            return user

    def get_user(self, user_id: int) -> User:
        with self.gateway.transaction() as session:
            return require_user(session, user_id)

    def list_users(self) -> list[User]:
        with self.gateway.transaction() as session:
            return session.query(User).order_by(User.name.asc(), User.id.asc()).all()


def require_user(session, user_id: int) -> User:
    """In-transaction lookup used by services that attribute rows to a user."""
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user
