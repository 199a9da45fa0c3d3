"""
Session manager: register / login / refresh / logout / logout-all / role changes.

A "session" is not an object of its own. It is a refresh token row in the
ledger plus whatever access tokens were minted from it. Ending a session means
deleting the row and blacklisting the access token presented with the request.

Each public operation is one database transaction: either every write it does
is committed, or none is.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from models.db_storage import DBStorage
from models.user import User, UserRole, ROLES
from services.blacklist import AccessTokenBlacklist
from services.credentials import CredentialStore
from services.errors import (
    ApiError,
    BlacklistWriteFailed,
    DuplicateEmail,
    ExpiredOrInvalidRefreshToken,
    InvalidCredentials,
    InvalidRole,
    UnknownRefreshToken,
    UserNotFound,
)
from services.ledger import RefreshTokenLedger
from utils.security import TokenCodec, hash_password, verify_password

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    user: User
    access_token: str
    refresh_token: str


class SessionManager:
    def __init__(
        self,
        storage: DBStorage,
        codec: TokenCodec,
        credentials: Optional[CredentialStore] = None,
        ledger: Optional[RefreshTokenLedger] = None,
        blacklist: Optional[AccessTokenBlacklist] = None,
    ):
        self.storage = storage
        self.codec = codec
        self.credentials = credentials or CredentialStore(storage)
        self.ledger = ledger or RefreshTokenLedger(storage)
        self.blacklist = blacklist or AccessTokenBlacklist(storage)

    def _issue_pair(self, user: User) -> AuthResult:
        access_token = self.codec.issue_access_token(user)
        refresh_token = self.codec.issue_refresh_token(user)
        self.ledger.save(user.id, refresh_token, expires_at=self.codec.expires_at(refresh_token))
        return AuthResult(user=user, access_token=access_token, refresh_token=refresh_token)

    def register(self, name: str, email: str, password: str) -> AuthResult:
        """
        Create the user and its first session in one transaction.
        The email lookup is only a shortcut: the unique index decides.
        """
        if self.credentials.find_by_email(email):
            raise DuplicateEmail()

        pw_hash = hash_password(password)
        try:
            with self.storage.transaction():
                user = self.credentials.create(name=name, email=email, password_hash=pw_hash)
                result = self._issue_pair(user)
        except IntegrityError:
            # lost a race against a concurrent register for the same email
            if self.credentials.find_by_email(email):
                raise DuplicateEmail()
            raise
        logger.info("registered user %s", result.user.id)
        return result

    def login(self, email: str, password: str) -> AuthResult:
        user = self.credentials.find_by_email(email)
        # same error either way, so callers cannot probe for accounts
        if not user or not verify_password(password, user.password_hash):
            raise InvalidCredentials()

        with self.storage.transaction():
            result = self._issue_pair(user)
        logger.info("user %s logged in", user.id)
        return result

    def refresh_access(self, refresh_token: str) -> str:
        """New access token for a live refresh token. The refresh token itself is not rotated."""
        if not self.ledger.find_by_token(refresh_token):
            raise UnknownRefreshToken()

        try:
            decoded = self.codec.verify_refresh_token(refresh_token)
        except ApiError:
            raise ExpiredOrInvalidRefreshToken()

        user = self.credentials.find_by_id(decoded["id"])
        if not user:
            raise UserNotFound(status=401)
        return self.codec.issue_access_token(user)

    def logout(self, refresh_token: str, access_token: str, user_id: Optional[str] = None) -> Dict[str, object]:
        """
        End this device's session: drop its refresh row and deny its access token.
        With user_id, a refresh token owned by someone else counts as unknown.
        """
        with self.storage.transaction():
            row = self.ledger.find_by_token(refresh_token)
            if row is not None and user_id is not None and row.user_id != user_id:
                raise UnknownRefreshToken(status=400)
            deleted = self.ledger.delete_by_token(refresh_token)
            if deleted == 0:
                raise UnknownRefreshToken(status=400)
            row = self.blacklist.add(access_token, expires_at=self.codec.expires_at(access_token))
            if row is None:
                raise BlacklistWriteFailed()
        logger.info("session logged out")
        return {"success": True, "message": "Logged out successfully"}

    def logout_all(self, access_token: str, user_id: str) -> Dict[str, object]:
        """
        Drop every refresh row of the user and deny the presented access token.
        Access tokens already handed to other devices stay valid until they expire.
        """
        with self.storage.transaction():
            deleted = self.ledger.delete_all_by_user(user_id)
            self.blacklist.add(access_token, expires_at=self.codec.expires_at(access_token))
        logger.info("user %s logged out from %d devices", user_id, deleted)
        return {"success": True, "count": deleted, "message": f"Logged out from {deleted} devices"}

    def update_role(self, user_id: str, role: str) -> User:
        if role not in ROLES:
            raise InvalidRole(f"Invalid role. Allowed: {', '.join(ROLES)}")

        with self.storage.transaction():
            user = self.credentials.find_by_id(user_id)
            if not user:
                raise UserNotFound(status=400)
            self.credentials.set_role(user, UserRole(role))
        logger.info("user %s role set to %s", user_id, role)
        return user

    def get_user(self, user_id: str) -> User:
        user = self.credentials.find_by_id(user_id)
        if not user:
            raise UserNotFound()
        return user

    def get_user_by_email(self, email: str) -> User:
        user = self.credentials.find_by_email(email)
        if not user:
            raise UserNotFound()
        return user

    def list_users(self) -> List[User]:
        return self.credentials.list_all()
