import pytest

from api import create_app
from api.extensions import EXTENSION_KEY

PASSWORD = "pw12345"
COOKIE = "refreshToken"


@pytest.fixture
def app():
    # every app gets its own in-memory SQLite database
    app = create_app("testing")
    yield app
    app.extensions[EXTENSION_KEY].shutdown()


@pytest.fixture
def library(app):
    """Service container inside an app context, for tests below the HTTP layer."""
    with app.app_context():
        yield app.extensions[EXTENSION_KEY]


@pytest.fixture
def client(app):
    # cookies are passed explicitly so each call says which session it belongs to
    return app.test_client(use_cookies=False)


def refresh_cookie(resp):
    for header in resp.headers.getlist("Set-Cookie"):
        name, _, rest = header.partition("=")
        if name == COOKIE:
            return rest.split(";", 1)[0]
    return None


def cookie_header(token):
    return {"Cookie": f"{COOKIE}={token}"}


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def register(client, email, name="Alice", password=PASSWORD):
    resp = client.post("/api/v1/users/register", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()["data"]
    return body["user"], body["accessToken"], refresh_cookie(resp)


def login(client, email, password=PASSWORD):
    resp = client.post("/api/v1/users/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    body = resp.get_json()["data"]
    return body["user"], body["accessToken"], refresh_cookie(resp)


def promote(app, user_id, role="admin"):
    with app.app_context():
        app.extensions[EXTENSION_KEY].sessions.update_role(user_id, role)


@pytest.fixture
def admin(app, client):
    """(user, access_token) of a freshly promoted admin."""
    user, _, _ = register(client, "admin@x.com", name="Admin")
    promote(app, user["id"])
    # role is a claim, so a new login is needed to get an admin token
    user, access, _ = login(client, "admin@x.com")
    return user, access
