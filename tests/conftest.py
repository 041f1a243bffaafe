import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "mongodb://localhost:27017")
for _name in (
    "ART_API_URL",
    "ART_API_TOKEN",
    "CLOUDINARY_CLOUD_NAME",
    "CLOUDINARY_API_KEY",
    "CLOUDINARY_API_SECRET",
):
    os.environ.pop(_name, None)

import mongomock
import pytest
from fastapi.testclient import TestClient

from art import ProviderConfig
from config import Settings, get_settings
from database import ensure_indexes, get_db
from main import app

TEST_SECRET = "test-secret"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        jwt_secret=TEST_SECRET,
        database_url="mongodb://localhost:27017",
        provider=ProviderConfig(mock_delay_seconds=0),
    )


@pytest.fixture
def db():
    database = mongomock.MongoClient().get_database("mood_art_test")
    ensure_indexes(database)
    return database


@pytest.fixture
def client(db, settings):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    def _signup(email="a@b.com", password="secret1", **extra):
        response = client.post("/api/auth/signup", json={"email": email, "password": password, **extra})
        assert response.status_code == 201, response.text
        return response.json()

    return _signup
