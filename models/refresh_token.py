"""
RefreshToken model: one row per logged-in device.
Fields:
- token (primary key, the signed refresh JWT itself)
- user_id (String(36)) - FK to users.id
- created_at, expires_at

A refresh token is only honoured while its row exists; logout deletes it.
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from models.base_model import Base, TimestampMixin


class RefreshToken(TimestampMixin, Base):
    __tablename__ = "refresh_tokens"

    # unbounded: the JWT embeds the email, so its length follows the email length
    token = Column(Text, primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="refresh_tokens")

    def __repr__(self):
        return f"<RefreshToken user_id={self.user_id}>"
