from models.base_model import Base
from models.user import User, UserRole, ROLES
from models.book import Book, user_favorites
from models.refresh_token import RefreshToken
from models.blacklisted_token import BlacklistedToken
from models.db_storage import DBStorage

__all__ = [
    "Base",
    "User",
    "UserRole",
    "ROLES",
    "Book",
    "user_favorites",
    "RefreshToken",
    "BlacklistedToken",
    "DBStorage",
]
