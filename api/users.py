"""
Users blueprint (mounted at /api/v1/users):
- POST /register        -> user + access token, refresh token in a cookie
- POST /login           -> same as register for an existing account
- POST /refresh         -> new access token from the refresh cookie
- POST /logout          -> end this device's session
- POST /logout-all      -> end every session of the caller
- GET  /<id>, /email/<email>
- GET  /                (admin)
- PUT  /<id>/role       (admin)

The refresh token never appears in a response body; it travels in an
HttpOnly, Secure, SameSite=Strict cookie.
"""
from __future__ import annotations

from flask import Blueprint, request, g, current_app

from api.errors import success_response
from api.extensions import get_library
from models.schemas.user import UserCreateSchema, UserLoginSchema, UserOutSchema
from services.errors import MissingRefreshToken
from utils.decorators import token_required, role_required

bp = Blueprint("users", __name__)

user_create_schema = UserCreateSchema()
user_login_schema = UserLoginSchema()
user_out_schema = UserOutSchema()
user_list_out_schema = UserOutSchema(many=True)


def _cookie_name() -> str:
    return current_app.config["REFRESH_COOKIE_NAME"]


def _set_refresh_cookie(response, token: str):
    cfg = current_app.config
    response.set_cookie(
        _cookie_name(),
        token,
        httponly=True,
        secure=cfg["REFRESH_COOKIE_SECURE"],
        samesite=cfg["REFRESH_COOKIE_SAMESITE"],
        max_age=int(cfg["REFRESH_TOKEN_EXPIRES"].total_seconds()),
        path="/",
    )


def _clear_refresh_cookie(response):
    cfg = current_app.config
    response.delete_cookie(
        _cookie_name(),
        path="/",
        httponly=True,
        secure=cfg["REFRESH_COOKIE_SECURE"],
        samesite=cfg["REFRESH_COOKIE_SAMESITE"],
    )


def _session_response(result, status: int):
    body, status = success_response(
        {"user": user_out_schema.dump(result.user), "accessToken": result.access_token},
        status,
    )
    _set_refresh_cookie(body, result.refresh_token)
    return body, status


@bp.post("/register")
def register():
    """
    Register a new user and open a first session.
    ---
    tags:
      - Users
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [name, email, password]
          properties:
            name: { type: string }
            email: { type: string }
            password: { type: string }
    responses:
      201:
        description: Created; refreshToken cookie set
      400:
        description: Email already in use
      422:
        description: Validation error
    """
    data = user_create_schema.load(request.get_json(silent=True) or {})
    result = get_library().sessions.register(data["name"], data["email"], data["password"])
    return _session_response(result, 201)


@bp.post("/login")
def login():
    """
    Login: returns an access token, sets the refresh token cookie
    ---
    tags:
      - Users
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK
      400:
        description: Invalid email or password
    """
    data = user_login_schema.load(request.get_json(silent=True) or {})
    result = get_library().sessions.login(data["email"], data["password"])
    return _session_response(result, 200)


@bp.post("/refresh")
def refresh():
    """
    Exchange the refresh token cookie for a new access token
    ---
    tags:
      - Users
    responses:
      200:
        description: OK
      400:
        description: Refresh token cookie missing
      401:
        description: Unknown, expired or invalid refresh token
    """
    token = request.cookies.get(_cookie_name())
    if not token:
        raise MissingRefreshToken()
    access_token = get_library().sessions.refresh_access(token)
    return success_response({"accessToken": access_token})


@bp.post("/logout")
@token_required()
def logout():
    """
    Logout from this device: drops the refresh token, revokes the access token
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out; cookie cleared
      400:
        description: Refresh token missing or unknown
      401:
        description: Token required
    """
    refresh_token = request.cookies.get(_cookie_name())
    if not refresh_token or not g.access_token:
        raise MissingRefreshToken("Refresh token and access token are required")

    result = get_library().sessions.logout(refresh_token, g.access_token, user_id=g.current_user["id"])
    body, status = success_response(None, message=result["message"])
    _clear_refresh_cookie(body)
    return body, status


@bp.post("/logout-all")
@token_required()
def logout_all():
    """
    Logout from every device of the current user
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: Number of sessions ended
      401:
        description: Token required
    """
    result = get_library().sessions.logout_all(g.access_token, g.current_user["id"])
    body, status = success_response({"count": result["count"]}, message=result["message"])
    _clear_refresh_cookie(body)
    return body, status


@bp.get("/email/<email>")
@token_required()
def get_user_by_email(email: str):
    """
    Get a user by email
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: email
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    user = get_library().sessions.get_user_by_email(email)
    return success_response(user_out_schema.dump(user))


@bp.get("/<user_id>")
@token_required()
def get_user(user_id: str):
    """
    Get a user by id
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    user = get_library().sessions.get_user(user_id)
    return success_response(user_out_schema.dump(user))


@bp.get("/")
@role_required("admin")
def list_users():
    """
    List all users - admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200: { description: OK }
      403: { description: Forbidden }
    """
    users = get_library().sessions.list_users()
    return success_response(user_list_out_schema.dump(users), meta={"total": len(users)})


@bp.put("/<user_id>/role")
@role_required("admin")
def update_role(user_id: str):
    """
    Admin-only: set the role of a user.
    Body: { "role": "user" | "admin" | "moderator" }
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: path
         name: user_id
         type: string
         required: true
      -  in: body
         name: body
         schema:
           type: object
           properties:
             role: { type: string }
    responses:
      200: { description: OK }
      400: { description: Invalid role or user not found }
    """
    payload = request.get_json(silent=True) or {}
    role = payload.get("role") if isinstance(payload, dict) else None
    user = get_library().sessions.update_role(user_id, role)
    return success_response(user_out_schema.dump(user))
