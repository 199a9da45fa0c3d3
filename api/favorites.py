from __future__ import annotations

from flask import Blueprint, request, g

from api.books import book_out_schema
from api.errors import success_response
from api.extensions import get_library
from models.schemas.book import FavoriteCreateSchema
from utils.decorators import token_required

bp = Blueprint("favorites", __name__)

favorite_create_schema = FavoriteCreateSchema()


@bp.post("/")
@token_required()
def add_favorite():
    """
    Add a book to the caller's favorites
    ---
    tags:
      - Favorites
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            bookId: { type: string }
    responses:
      201: { description: Added }
      404: { description: Book not found }
      409: { description: Already in favorites }
    """
    data = favorite_create_schema.load(request.get_json(silent=True) or {})
    favorite = get_library().favorites.add(g.current_user["id"], data["bookId"])
    return success_response(favorite, 201)


@bp.delete("/<book_id>")
@token_required()
def remove_favorite(book_id: str):
    """
    Remove a book from the caller's favorites
    ---
    tags:
      - Favorites
    security:
      - Bearer: []
    parameters:
      - in: path
        name: book_id
        type: string
        required: true
    responses:
      200: { description: Removed }
      404: { description: Not in favorites }
    """
    deleted = get_library().favorites.remove(g.current_user["id"], book_id)
    return success_response({"deletedCount": deleted})


@bp.get("/")
@token_required()
def list_favorites():
    """
    List the caller's favorite books, newest first
    ---
    tags:
      - Favorites
    security:
      - Bearer: []
    responses:
      200: { description: OK }
    """
    rows = get_library().favorites.list_for_user(g.current_user["id"])
    data = []
    for book, added_at in rows:
        item = book_out_schema.dump(book)
        item["added_at"] = added_at.isoformat() if added_at else None
        data.append(item)
    return success_response(data)


@bp.get("/<book_id>")
@token_required()
def check_favorite(book_id: str):
    """
    Is this book in the caller's favorites?
    ---
    tags:
      - Favorites
    security:
      - Bearer: []
    parameters:
      - in: path
        name: book_id
        type: string
        required: true
    responses:
      200: { description: "{isFavorited: bool}" }
    """
    favorited = get_library().favorites.is_favorited(g.current_user["id"], book_id)
    return success_response({"isFavorited": favorited})
