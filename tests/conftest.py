from __future__ import annotations

import os

import pytest

# Keep test runs quiet and out of the repo's log directory.
os.environ.setdefault("COMAX_LOG_MODE", "off")

from comax import config  # noqa: E402
from comax.core import database  # noqa: E402
from comax.core.schema import initialize_database  # noqa: E402
from comax.core.session import Session  # noqa: E402


@pytest.fixture()
def db_file(tmp_path, monkeypatch):
    path = tmp_path / "comax.db"
    monkeypatch.setattr(database, "DB_FILE", path)
    initialize_database()
    config.save_config(config.DEFAULT_CONFIG)
    return path


@pytest.fixture()
def session() -> Session:
    return Session(username="editor", display_name="Editor", user_id=1)


@pytest.fixture()
def seed(db_file):
    """Insert (type, culture, key, value) tuples and return the stored rows."""

    def _seed(*rows):
        return [
            database.insert_resource(resource_type, culture, key, value)
            for resource_type, culture, key, value in rows
        ]

    return _seed


@pytest.fixture()
def app(db_file):
    from comax.web import create_app

    flask_app = create_app()
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def logged_in(client):
    response = client.post("/api/auth/login", json={"username": "dana", "password": "secret"})
    assert response.status_code == 200
    return client

