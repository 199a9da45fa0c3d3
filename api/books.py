from __future__ import annotations

from typing import Tuple

from flask import Blueprint, request, g, abort

from api.errors import success_response
from api.extensions import get_library
from models.schemas.book import BookCreateSchema, BookOutSchema
from services.catalog import DEFAULT_LIMIT
from utils.decorators import role_required, token_optional

bp = Blueprint("books", __name__)

# Schemas
book_create_schema = BookCreateSchema()
book_out_schema = BookOutSchema()


def parse_pagination() -> Tuple[int, int]:
    """0-based page, limit defaults to 10; clamping happens in the catalog."""
    try:
        page = int(request.args.get("page", "0"))
        limit = int(request.args.get("limit", str(DEFAULT_LIMIT)))
        return page, limit
    except ValueError:
        abort(400, description="page and limit must be integers")


def _current_user_id():
    user = getattr(g, "current_user", None)
    return user["id"] if user else None


def dump_book(book, is_favorite: bool) -> dict:
    data = book_out_schema.dump(book)
    data["is_favorite"] = is_favorite
    return data


@bp.post("/")
@role_required("admin")
def create_book():
    """
    Create a new book - admin
    ---
    tags:
      - Books
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
          required: [title]
          properties:
            title: { type: string, maxLength: 255 }
            author: { type: string }
            description: { type: string }
            file_url: { type: string }
            cover_url: { type: string }
            tags:
              type: array
              items: { type: string }
            is_premium: { type: boolean, default: false }
    responses:
      201:
        description: Created
      409:
        description: Book with same file_url already exists
      422:
        description: Validation error
    """
    data = book_create_schema.load(request.get_json(silent=True) or {})
    book = get_library().catalog.create_book(data)
    return success_response(dump_book(book, False), 201)


@bp.get("/")
@token_optional()
def list_books():
    """
    List books with search, pagination and sorting
    ---
    tags:
      - Books
    parameters:
      - in: query
        name: search
        type: string
        description: "Case-insensitive substring search on title and author"
      - in: query
        name: page
        type: integer
        default: 0
      - in: query
        name: limit
        type: integer
        default: 10
      - in: query
        name: sortBy
        type: string
        description: "created_at or title"
        default: created_at
      - in: query
        name: sortOrder
        type: string
        description: "ASC or DESC"
        default: DESC
    responses:
      200:
        description: Page of books; is_favorite is set when the caller is authenticated
    """
    page, limit = parse_pagination()
    result = get_library().catalog.list_books(
        search=request.args.get("search", ""),
        page=page,
        limit=limit,
        sort_by=request.args.get("sortBy", "created_at"),
        sort_order=request.args.get("sortOrder", "DESC"),
        user_id=_current_user_id(),
    )
    return success_response([dump_book(b, fav) for b, fav in result.books], meta=result.meta())


@bp.get("/<book_id>")
@token_optional()
def get_book(book_id: str):
    """
    Get a single book by id
    ---
    tags:
      - Books
    parameters:
      - in: path
        name: book_id
        type: string
        required: true
    responses:
      200:
        description: Book found
      404:
        description: Not found
    """
    book, is_favorite = get_library().catalog.get_book(book_id, _current_user_id())
    return success_response(dump_book(book, is_favorite))


@bp.delete("/<book_id>")
@role_required("admin")
def delete_book(book_id: str):
    """
    Delete a book - admin
    ---
    tags:
      - Books
    security:
      - Bearer: []
    parameters:
      - in: path
        name: book_id
        type: string
        required: true
    responses:
      200:
        description: Deleted
      404:
        description: Not found
    """
    get_library().catalog.delete_book(book_id)
    return success_response(None, message="Book deleted successfully")
