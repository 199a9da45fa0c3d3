from sqlalchemy import Column, Text, DateTime, Index

from models.base_model import Base, TimestampMixin


class BlacklistedToken(TimestampMixin, Base):
    """An access token revoked before its natural expiry. Keyed by value only."""

    __tablename__ = "blacklist_tokens"

    token = Column(Text, primary_key=True)
    # exp claim of the revoked token; rows past it are swept by prune_expired()
    expires_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_blacklist_tokens_expires_at", "expires_at"),
    )

    def __repr__(self):
        return f"<BlacklistedToken token={self.token[:16]}...>"
