from __future__ import annotations

from typing import List, Optional

from models.db_storage import DBStorage
from models.user import User, UserRole


class CredentialStore:
    """User rows. Writes are flushed, never committed; the caller owns the transaction."""

    def __init__(self, storage: DBStorage):
        self._storage = storage

    def _query(self):
        return self._storage.get_session().query(User)

    def find_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        return self._query().filter(User.email == email.strip().lower()).first()

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self._storage.get(User, user_id)

    def list_all(self) -> List[User]:
        return self._query().order_by(User.created_at.asc(), User.email.asc()).all()

    def create(self, name: str, email: str, password_hash: str, role: UserRole = UserRole.USER) -> User:
        """Insert a user. Raises IntegrityError when the email is already taken."""
        user = User(name=name, email=email.strip().lower(), password_hash=password_hash, role=role)
        self._storage.new(user)
        self._storage.flush()
        return user

    def set_role(self, user: User, role: UserRole) -> User:
        user.role = role
        user.touch()
        self._storage.flush()
        return user
