#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixins for the Digital Library API.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps

Notes:
- We use server-side defaults (func.now()) so timestamps are set consistently by the DB.
- For SQLite, func.now() maps to CURRENT_TIMESTAMP.
- Persistence goes through an injected DBStorage (see models.db_storage);
  models never reach for a global session.
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

# Declarative base for all models
Base = declarative_base()


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


class TimestampMixin:
    """created_at only; for rows that are written once and never updated."""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class BaseModel:
    """Base mixin for entity tables: id, created_at, updated_at."""

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        We do NOT force created_at/updated_at in __init__; DB defaults handle those on insert.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        # Ensure an id exists if user passed none
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.id}>"

    def touch(self):
        """Bump updated_at before the ORM flush; the DB onupdate covers raw UPDATEs."""
        self.updated_at = datetime.now(timezone.utc)
