# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from auth_service.db import UserStore
from auth_service.main import app
from auth_service.service import AuthService, get_auth_service
from auth_service.utils import build_password_context

TEST_NAME = "Alice"
TEST_EMAIL = "a@x.com"
TEST_PASSWORD = "secret1"

# Coste mínimo de bcrypt para que las pruebas sean rápidas
TEST_ROUNDS = 4


@pytest.fixture
def users_file(tmp_path):
    return tmp_path / "users.json"


@pytest.fixture
def store(users_file):
    return UserStore(users_file)


@pytest.fixture
def service(store):
    return AuthService(store, password_context=build_password_context(TEST_ROUNDS))


@pytest.fixture
def client(service):
    """
    Cliente HTTP contra la app real, con el servicio apuntando a un
    archivo de usuarios temporal.
    """
    app.dependency_overrides[get_auth_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def registered_user(client):
    """Registra el usuario de prueba y devuelve sus datos."""
    payload = {"name": TEST_NAME, "email": TEST_EMAIL, "password": TEST_PASSWORD}
    r = client.post("/api/signup", json=payload)
    assert r.status_code == 201, r.text
    return payload
