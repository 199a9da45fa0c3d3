"""
Access token blacklist.

Access tokens verify themselves, so the only way to kill one before its exp is
to deny it explicitly; the authorization gate checks this table on every
authenticated request.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, exists, select
from sqlalchemy.dialects import postgresql, sqlite

from models.blacklisted_token import BlacklistedToken
from models.db_storage import DBStorage

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class AccessTokenBlacklist:
    def __init__(self, storage: DBStorage):
        self._storage = storage

    def _insert_ignore(self, session, values: dict) -> int:
        insert = _INSERT_BY_DIALECT.get(self._storage.dialect_name)
        if insert is not None:
            stmt = insert(BlacklistedToken).values(**values).on_conflict_do_nothing(index_elements=["token"])
            return session.execute(stmt).rowcount or 0
        # dialects without ON CONFLICT; the primary key still rejects a racing duplicate
        if self.is_blacklisted(values["token"]):
            return 0
        session.add(BlacklistedToken(**values))
        session.flush()
        return 1

    def add(self, token: str, expires_at: Optional[datetime] = None) -> Optional[BlacklistedToken]:
        """Insert-or-ignore. Returns the new row, or None when the token was already listed."""
        session = self._storage.get_session()
        inserted = self._insert_ignore(session, {"token": token, "expires_at": expires_at})
        if not inserted:
            return None
        return session.get(BlacklistedToken, token)

    def is_blacklisted(self, token: str) -> bool:
        if not token:
            return False
        session = self._storage.get_session()
        return bool(session.scalar(select(exists().where(BlacklistedToken.token == token))))

    def prune_expired(self, now: Optional[datetime] = None) -> int:
        """Delete rows whose token has expired anyway. Rows without expires_at are kept."""
        now = now or datetime.now(timezone.utc)
        session = self._storage.get_session()
        result = session.execute(
            delete(BlacklistedToken)
            .where(BlacklistedToken.expires_at.is_not(None))
            .where(BlacklistedToken.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        removed = result.rowcount or 0
        self._storage.save()
        logger.info("pruned %d expired blacklist rows", removed)
        return removed
