"""
Fixtures partagées : MongoDB en mémoire (mongomock) et application FastAPI
démarrée avec son vrai lifespan.
"""

import os

# Variables d'environnement AVANT l'import des modules de l'application
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"
os.environ["ADMIN_EMAIL"] = ""
os.environ["ADMIN_PASSWORD"] = ""

import mongomock
import pytest
from fastapi.testclient import TestClient

import config
from app_factory import create_app
from models.user import UserStore
from schemas import UserRole


@pytest.fixture
def mongo_client():
    return mongomock.MongoClient(tz_aware=True)


@pytest.fixture
def db(mongo_client):
    return mongo_client[config.DB_NAME]


@pytest.fixture
def store(db):
    user_store = UserStore(db)
    user_store.ensure_indexes()
    return user_store


@pytest.fixture
def app(mongo_client):
    return create_app(mongo_client=mongo_client)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client, email="alice@example.com", password="Secret123", name="Alice"):
    return client.post("/auth/register", json={"email": email, "password": password, "name": name})


def login(client, email, password):
    return client.post("/auth/login", json={"email": email, "password": password})


@pytest.fixture
def alice(client):
    """Utilisateur standard inscrit via l'API : (id, token)."""
    body = register(client).json()
    return body["data"]["user"]["id"], body["data"]["token"]


@pytest.fixture
def admin(client, store):
    """Administrateur créé directement dans le magasin puis connecté : (id, token)."""
    store.create("root@example.com", "Root", "AdminPass1", role=UserRole.admin)
    body = login(client, "root@example.com", "AdminPass1").json()
    return body["data"]["user"]["id"], body["data"]["token"]
