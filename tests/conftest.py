import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from app import app as flask_app, db
from relay import relay, socketio

DEFAULT_PASSWORD = "Password123"
ADMIN_USERNAME = "Adegboyega"
ADMIN_PASSWORD = "ibukun"


@pytest.fixture()
def app():
    flask_app.config.update(
        TESTING=True,
        SESSION_COOKIE_SECURE=False,
        ADMIN_USERNAME=ADMIN_USERNAME,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
    )

    # No app context stays pushed during a test, so each request gets its own flask.g.
    with flask_app.app_context():
        db.create_all()
    relay._members.clear()

    yield flask_app

    relay._members.clear()
    with flask_app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def user_client(app):
    def _make(username, email=None, password=DEFAULT_PASSWORD):
        http = app.test_client()
        response = http.post(
            "/api/auth/register",
            json={
                "username": username,
                "email": email or f"{username}@mailbox.org",
                "password": password,
            },
        )
        assert response.status_code == 200, response.get_json()
        http.user = response.get_json()["user"]
        return http

    return _make


@pytest.fixture()
def admin_client(app):
    http = app.test_client()
    response = http.post(
        "/api/auth/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200, response.get_json()
    return http


@pytest.fixture()
def channel(app):
    opened = []

    def _open(http=None):
        sock = socketio.test_client(app, flask_test_client=http)
        opened.append(sock)
        return sock

    yield _open

    for sock in opened:
        if sock.is_connected():
            sock.disconnect()


def received(sock):
    return [(packet["name"], packet["args"][0]) for packet in sock.get_received()]


def named(events, name):
    return [arg for event, arg in events if event == name]
