from sqlalchemy import (
    Column,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Table,
    Text,
    JSON,
    Index,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from models.base_model import BaseModel, Base

# Association table with CASCADE so favorites clean up when a user or book is deleted
user_favorites = Table(
    "user_favorites",
    Base.metadata,
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("book_id", String(36), ForeignKey("books.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)


class Book(BaseModel, Base):
    __tablename__ = "books"

    title = Column(String(255), nullable=False)
    author = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    # Location of the content; the content itself is stored elsewhere
    file_url = Column(String(1024), nullable=True, unique=True)
    cover_url = Column(String(1024), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    is_premium = Column(Boolean, nullable=False, default=False, server_default=text("false"))

    favorited_by = relationship("User", secondary=user_favorites, backref="favorite_books")

    __table_args__ = (
        Index("ix_books_title", "title"),
        Index("ix_books_author", "author"),
    )
