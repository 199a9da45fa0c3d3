from enum import Enum

from sqlalchemy import Column, String, Boolean, text
from sqlalchemy.orm import relationship
from sqlalchemy.types import Enum as SAEnum

from models.base_model import Base, BaseModel


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"
    MODERATOR = "moderator"


ROLES = tuple(r.value for r in UserRole)


class User(BaseModel, Base):
    __tablename__ = "users"

    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    # column is "password" in the schema; the attribute name makes the content obvious
    password_hash = Column("password", String(255), nullable=False)
    role = Column(
        SAEnum(UserRole, name="user_role", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.USER,
        server_default=UserRole.USER.value,
    )
    is_premium = Column(Boolean, nullable=False, default=False, server_default=text("false"))

    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    @property
    def role_name(self) -> str:
        return self.role.value if isinstance(self.role, UserRole) else str(self.role)

    def __repr__(self):
        return f"<User {self.email}>"
