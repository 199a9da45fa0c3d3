"""
Refresh token ledger: one row per logged-in device.

A refresh token is honoured only while its row exists, so deleting rows is how
sessions end. Rows are flushed, not committed; SessionManager commits.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import delete

from models.db_storage import DBStorage
from models.refresh_token import RefreshToken


class RefreshTokenLedger:
    def __init__(self, storage: DBStorage):
        self._storage = storage

    def save(self, user_id: str, token: str, expires_at: Optional[datetime] = None) -> RefreshToken:
        row = RefreshToken(user_id=user_id, token=token, expires_at=expires_at)
        self._storage.new(row)
        self._storage.flush()
        return row

    def find_by_token(self, token: str) -> Optional[RefreshToken]:
        if not token:
            return None
        return self._storage.get_session().get(RefreshToken, token)

    def delete_by_token(self, token: str) -> int:
        """Returns rows deleted, 0 or 1."""
        if not token:
            return 0
        result = self._storage.get_session().execute(
            delete(RefreshToken)
            .where(RefreshToken.token == token)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0

    def delete_all_by_user(self, user_id: str) -> int:
        result = self._storage.get_session().execute(
            delete(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0

    def count_for_user(self, user_id: str) -> int:
        return (
            self._storage.get_session()
            .query(RefreshToken)
            .filter(RefreshToken.user_id == user_id)
            .count()
        )
