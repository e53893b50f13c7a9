import pytest
from fastapi.testclient import TestClient

from shortlinks.config import Settings
from shortlinks.main import create_app


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://")


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def database(client):
    return client.app.state.database


@pytest.fixture
def db(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()
