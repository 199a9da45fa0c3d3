"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT creation/verification via PyJWT (TokenCodec)
- JTI generation for token identifiers

Access and refresh tokens are signed with different secrets and carry a
``type`` claim, so neither kind can be passed off as the other.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError

from services.errors import TokenExpired, TokenInvalid

ph = PasswordHasher()

ACCESS = "access"
REFRESH = "refresh"


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except VerifyMismatchError:
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    """Signs and verifies the two token kinds. Holds no state besides its settings."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta = timedelta(hours=1),
        refresh_ttl: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
        issuer: str = "digital-library-api",
    ):
        if not access_secret or not refresh_secret:
            raise ValueError("both token secrets are required")
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.algorithm = algorithm
        self.issuer = issuer

    @classmethod
    def from_config(cls, config) -> "TokenCodec":
        return cls(
            access_secret=config["ACCESS_TOKEN_SECRET"],
            refresh_secret=config["REFRESH_TOKEN_SECRET"],
            access_ttl=config["ACCESS_TOKEN_EXPIRES"],
            refresh_ttl=config["REFRESH_TOKEN_EXPIRES"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            issuer=config.get("JWT_ISSUER", "digital-library-api"),
        )

    def _encode(self, user, secret: str, ttl: timedelta, token_type: str) -> str:
        now = _now()
        payload = {
            "iss": self.issuer,
            "id": str(user.id),
            "email": user.email,
            "role": user.role_name,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
            "type": token_type,
            "jti": generate_jti(),
        }
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def _decode(self, token: str, secret: str, token_type: str) -> Dict[str, Any]:
        label = token_type.capitalize()
        if not token or not isinstance(token, str):
            raise TokenInvalid(f"Invalid {token_type} token")
        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["exp", "iat", "id", "type"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpired(f"{label} token expired")
        except jwt.InvalidTokenError:
            raise TokenInvalid(f"Invalid {token_type} token")

        if decoded.get("type") != token_type:
            raise TokenInvalid(f"Invalid {token_type} token")
        return decoded

    def issue_access_token(self, user) -> str:
        return self._encode(user, self.access_secret, self.access_ttl, ACCESS)

    def issue_refresh_token(self, user) -> str:
        return self._encode(user, self.refresh_secret, self.refresh_ttl, REFRESH)

    def verify_access_token(self, token: str) -> Dict[str, Any]:
        """
        Decode and validate an access token.
        Raises TokenExpired or TokenInvalid.
        """
        return self._decode(token, self.access_secret, ACCESS)

    def verify_refresh_token(self, token: str) -> Dict[str, Any]:
        return self._decode(token, self.refresh_secret, REFRESH)

    @staticmethod
    def expires_at(token: str) -> Optional[datetime]:
        """exp claim of a token that was already verified elsewhere; None if unreadable."""
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            return None
        exp = claims.get("exp")
        if exp is None:
            return None
        return datetime.fromtimestamp(int(exp), tz=timezone.utc)
