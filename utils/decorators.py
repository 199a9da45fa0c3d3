"""
Authorization gate.

- token_required(): bearer token must be present, not blacklisted and valid
- token_optional(): same checks, but any failure means "anonymous"
- role_required(role): token_required plus an exact role match

On success g.current_user is {"id", "email", "role"} and g.access_token is the
raw token; anonymous callers get None for both.
"""
from __future__ import annotations

from functools import wraps
from typing import Any, Dict, Optional

from flask import request, g

from api.extensions import get_library
from services.errors import ApiError, Forbidden, TokenRequired, TokenRevoked


def bearer_token() -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def authenticate(token: Optional[str]) -> Dict[str, Any]:
    """Resolve a raw access token to an identity or raise the matching ApiError."""
    if not token:
        raise TokenRequired()
    library = get_library()
    # checked before the signature: a revoked token is rejected even while still valid
    if library.blacklist.is_blacklisted(token):
        raise TokenRevoked()
    decoded = library.codec.verify_access_token(token)
    return {"id": decoded["id"], "email": decoded.get("email"), "role": decoded.get("role")}


def _set_identity(identity, token):
    g.current_user = identity
    g.access_token = token


def token_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = bearer_token()
            _set_identity(authenticate(token), token)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def token_optional():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = bearer_token()
            try:
                _set_identity(authenticate(token), token)
            except ApiError:
                _set_identity(None, None)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def role_required(required_role: str):
    """
    Allow access only if the caller's role equals required_role.
    There is no hierarchy: an admin is not a moderator.
    """
    def decorator(fn):
        @wraps(fn)
        @token_required()
        def wrapper(*args, **kwargs):
            identity = getattr(g, "current_user", None)
            if not identity or identity.get("role") != required_role:
                raise Forbidden()
            return fn(*args, **kwargs)

        return wrapper

    return decorator
