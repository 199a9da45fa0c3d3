import pytest

from tests.conftest import bearer, register

BOOKS = "/api/v1/books"
FAVORITES = "/api/v1/favorites"


@pytest.fixture
def books(client, admin):
    _, token = admin
    ids = []
    for title in ("Dune", "Emma"):
        resp = client.post(f"{BOOKS}/", json={"title": title}, headers=bearer(token))
        ids.append(resp.get_json()["data"]["id"])
    return ids


@pytest.fixture
def reader(client):
    _, access, _ = register(client, "reader@x.com", name="Reader")
    return bearer(access)


def test_favorites_require_a_token(client):
    assert client.get(f"{FAVORITES}/").status_code == 401
    assert client.post(f"{FAVORITES}/", json={"bookId": "x"}).status_code == 401


def test_add_favorite(client, books, reader):
    resp = client.post(f"{FAVORITES}/", json={"bookId": books[0]}, headers=reader)
    assert resp.status_code == 201
    assert resp.get_json()["data"]["book_id"] == books[0]

    again = client.post(f"{FAVORITES}/", json={"bookId": books[0]}, headers=reader)
    assert again.status_code == 409
    assert again.get_json()["error"] == "FAVORITE_EXISTS"


def test_add_favorite_for_missing_book(client, reader):
    resp = client.post(f"{FAVORITES}/", json={"bookId": "missing-id"}, headers=reader)
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "BOOK_NOT_FOUND"


def test_add_favorite_requires_book_id(client, reader):
    resp = client.post(f"{FAVORITES}/", json={}, headers=reader)
    assert resp.status_code == 422
    assert "bookId" in resp.get_json()["details"]


def test_check_and_list(client, books, reader):
    for book_id in books:
        client.post(f"{FAVORITES}/", json={"bookId": book_id}, headers=reader)

    check = client.get(f"{FAVORITES}/{books[0]}", headers=reader).get_json()
    assert check["data"] == {"isFavorited": True}

    listing = client.get(f"{FAVORITES}/", headers=reader).get_json()["data"]
    assert {b["id"] for b in listing} == set(books)
    assert all(b["added_at"] for b in listing)


def test_favorites_are_per_user(client, books, reader):
    client.post(f"{FAVORITES}/", json={"bookId": books[0]}, headers=reader)
    _, other, _ = register(client, "other@x.com", name="Other")
    assert client.get(f"{FAVORITES}/", headers=bearer(other)).get_json()["data"] == []
    assert client.get(f"{FAVORITES}/{books[0]}", headers=bearer(other)).get_json()["data"] == {"isFavorited": False}


def test_remove_favorite(client, books, reader):
    client.post(f"{FAVORITES}/", json={"bookId": books[0]}, headers=reader)
    resp = client.delete(f"{FAVORITES}/{books[0]}", headers=reader)
    assert resp.status_code == 200
    assert resp.get_json()["data"] == {"deletedCount": 1}

    missing = client.delete(f"{FAVORITES}/{books[0]}", headers=reader)
    assert missing.status_code == 404
    assert missing.get_json()["error"] == "FAVORITE_NOT_FOUND"


def test_deleting_a_book_drops_it_from_favorites(client, admin, books, reader):
    _, token = admin
    client.post(f"{FAVORITES}/", json={"bookId": books[0]}, headers=reader)
    client.delete(f"{BOOKS}/{books[0]}", headers=bearer(token))
    assert client.get(f"{FAVORITES}/", headers=reader).get_json()["data"] == []
