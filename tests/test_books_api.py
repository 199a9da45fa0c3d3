import pytest

from tests.conftest import bearer, cookie_header, register

BOOKS = "/api/v1/books"
FAVORITES = "/api/v1/favorites"


def create_book(client, token, **fields):
    payload = {"title": "Dune", "author": "Frank Herbert", **fields}
    resp = client.post(f"{BOOKS}/", json=payload, headers=bearer(token))
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["data"]


@pytest.fixture
def shelf(client, admin):
    _, token = admin
    titles = [("Dune", "Frank Herbert"), ("Emma", "Jane Austen"), ("Persuasion", "Jane Austen"),
              ("Ubik", "Philip K. Dick"), ("Solaris", "Stanislaw Lem")]
    return [create_book(client, token, title=t, author=a) for t, a in titles]


def test_admin_creates_book(client, admin):
    _, token = admin
    book = create_book(client, token, tags=["sci-fi"], file_url="https://cdn.example.com/dune.pdf")
    assert book["title"] == "Dune"
    assert book["tags"] == ["sci-fi"]
    assert book["is_premium"] is False
    assert book["is_favorite"] is False


def test_create_book_requires_admin(client):
    _, access, _ = register(client, "a@x.com")
    resp = client.post(f"{BOOKS}/", json={"title": "Dune"}, headers=bearer(access))
    assert resp.status_code == 403
    assert client.post(f"{BOOKS}/", json={"title": "Dune"}).status_code == 401


def test_create_book_validation_and_duplicates(client, admin):
    _, token = admin
    resp = client.post(f"{BOOKS}/", json={"author": "Nobody"}, headers=bearer(token))
    assert resp.status_code == 422
    assert "title" in resp.get_json()["details"]

    create_book(client, token, file_url="https://cdn.example.com/dune.pdf")
    dup = client.post(f"{BOOKS}/", json={"title": "Dune 2", "file_url": "https://cdn.example.com/dune.pdf"},
                      headers=bearer(token))
    assert dup.status_code == 409
    assert dup.get_json()["error"] == "DUPLICATE_BOOK"


def test_list_is_public_and_paginated(client, shelf):
    resp = client.get(f"{BOOKS}/?limit=2&page=1&sortBy=title&sortOrder=ASC")
    assert resp.status_code == 200
    body = resp.get_json()
    assert [b["title"] for b in body["data"]] == ["Persuasion", "Solaris"]
    assert body["meta"] == {
        "totalElements": 5,
        "pageNum": 1,
        "pageSize": 2,
        "totalPages": 3,
        "hasNextPage": True,
        "hasPrevPage": True,
    }
    assert all(b["is_favorite"] is False for b in body["data"])


def test_search_matches_title_and_author(client, shelf):
    by_author = client.get(f"{BOOKS}/?search=austen&sortBy=title&sortOrder=ASC").get_json()
    assert [b["title"] for b in by_author["data"]] == ["Emma", "Persuasion"]
    assert by_author["meta"]["totalElements"] == 2

    by_title = client.get(f"{BOOKS}/?search=UBI").get_json()
    assert [b["title"] for b in by_title["data"]] == ["Ubik"]


def test_bad_pagination_params(client):
    resp = client.get(f"{BOOKS}/?page=first")
    assert resp.status_code == 400


def test_limit_is_clamped(client, shelf):
    meta = client.get(f"{BOOKS}/?limit=1000").get_json()["meta"]
    assert meta["pageSize"] == 100


def test_listing_is_personalised_for_signed_in_users(client, shelf):
    _, access, _ = register(client, "a@x.com")
    favorite = shelf[0]["id"]
    assert client.post(f"{FAVORITES}/", json={"bookId": favorite}, headers=bearer(access)).status_code == 201

    data = client.get(f"{BOOKS}/", headers=bearer(access)).get_json()["data"]
    flags = {b["id"]: b["is_favorite"] for b in data}
    assert flags[favorite] is True
    assert sum(flags.values()) == 1

    single = client.get(f"{BOOKS}/{favorite}", headers=bearer(access)).get_json()["data"]
    assert single["is_favorite"] is True
    anonymous = client.get(f"{BOOKS}/{favorite}").get_json()["data"]
    assert anonymous["is_favorite"] is False


def test_bad_or_revoked_tokens_browse_anonymously(client, shelf):
    _, access, refresh_token = register(client, "a@x.com")
    client.post(f"{FAVORITES}/", json={"bookId": shelf[0]["id"]}, headers=bearer(access))
    client.post("/api/v1/users/logout", headers={**bearer(access), **cookie_header(refresh_token)})

    for headers in (bearer(access), bearer("not-a-jwt")):
        resp = client.get(f"{BOOKS}/", headers=headers)
        assert resp.status_code == 200
        assert all(b["is_favorite"] is False for b in resp.get_json()["data"])


def test_get_missing_book(client):
    resp = client.get(f"{BOOKS}/missing-id")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "BOOK_NOT_FOUND"


def test_delete_book(client, admin, shelf):
    _, token = admin
    book_id = shelf[0]["id"]
    resp = client.delete(f"{BOOKS}/{book_id}", headers=bearer(token))
    assert resp.status_code == 200
    assert resp.get_json()["message"] == "Book deleted successfully"
    assert client.get(f"{BOOKS}/{book_id}").status_code == 404
    assert client.delete(f"{BOOKS}/{book_id}", headers=bearer(token)).status_code == 404


def test_pages_start_at_zero(client, shelf):
    body = client.get(f"{BOOKS}/?limit=2&page=0&sortBy=title&sortOrder=ASC").get_json()
    assert [b["title"] for b in body["data"]] == ["Dune", "Emma"]
    assert body["meta"]["pageNum"] == 0
    assert body["meta"]["hasPrevPage"] is False
    assert body["meta"]["hasNextPage"] is True

    last = client.get(f"{BOOKS}/?limit=2&page=2&sortBy=title&sortOrder=ASC").get_json()
    assert [b["title"] for b in last["data"]] == ["Ubik"]
    assert last["meta"]["hasNextPage"] is False
