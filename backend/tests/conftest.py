"""
Configuration partagée pour tous les tests.
Override la dépendance get_db pour éviter toute connexion réelle à PostgreSQL.
"""

import uuid
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from autoshop.database import get_db
from autoshop.dependencies import get_auth_context
from autoshop.main import app
from autoshop.models.user import User
from autoshop.services.auth_service import AuthContext


def make_user(role="user", is_active=True, email="client@dadjauto.shop", password_hash="$2b$12$hash"):
    """Utilisateur réel (non persisté) pour les tests."""
    return User(
        id=uuid.uuid4(),
        email=email,
        password_hash=password_hash,
        role=role,
        is_active=is_active,
        name="Juan Dela Cruz",
        city="Manila",
        country="Philippines",
        created_at=datetime(2025, 1, 10, 9, 0),
        updated_at=datetime(2025, 2, 1, 9, 0),
    )


def make_context(role="user", token="current-token") -> AuthContext:
    return AuthContext(user=make_user(role=role), role=role, token=token, session_id=uuid.uuid4())


@pytest.fixture
def mock_db():
    return MagicMock()


@pytest.fixture
def client(mock_db):
    """Client HTTP de test avec la BDD mockée."""
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def login_as(client):
    """Authentifie les requêtes suivantes avec le rôle donné ; retourne l'AuthContext injecté."""
    def _login_as(role="user"):
        context = make_context(role=role)
        app.dependency_overrides[get_auth_context] = lambda: context
        return context
    return _login_as
