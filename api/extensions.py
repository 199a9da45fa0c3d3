"""
Service container.

create_app() builds one Library per application and stores it in
app.extensions["library"]; request handlers reach it with get_library().
"""
from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from models.db_storage import DBStorage
from services.blacklist import AccessTokenBlacklist
from services.catalog import BookCatalog, Favorites
from services.sessions import SessionManager
from utils.security import TokenCodec

EXTENSION_KEY = "library"


@dataclass
class Library:
    storage: DBStorage
    codec: TokenCodec
    sessions: SessionManager
    blacklist: AccessTokenBlacklist
    catalog: BookCatalog
    favorites: Favorites

    @classmethod
    def build(cls, storage: DBStorage, codec: TokenCodec) -> "Library":
        sessions = SessionManager(storage, codec)
        return cls(
            storage=storage,
            codec=codec,
            sessions=sessions,
            blacklist=sessions.blacklist,
            catalog=BookCatalog(storage),
            favorites=Favorites(storage),
        )

    def shutdown(self):
        self.storage.dispose()


def get_library() -> Library:
    return current_app.extensions[EXTENSION_KEY]
