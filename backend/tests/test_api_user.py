"""
Tests d'intégration pour les endpoints /api/user.
L'identité est injectée via l'override de get_auth_context (fixture login_as).
"""

import uuid
from datetime import datetime, timedelta
from unittest.mock import patch

from autoshop.errors import ApiError
from autoshop.schemas.session import SessionResponse

from conftest import make_user


def make_session_response(is_current=False):
    now = datetime.now()
    return SessionResponse(
        id=uuid.uuid4(),
        device="Windows 10",
        browser="Chrome",
        ip_address="10.0.0.1",
        last_activity=now,
        created_at=now - timedelta(minutes=5),
        expires_at=now + timedelta(minutes=55),
        is_current=is_current,
    )


# ============================================================
# Authentification requise
# ============================================================

def test_profil_sans_token(client):
    response = client.get("/api/user/profile")
    assert response.status_code == 401
    assert response.json()["error"] == "NO_TOKEN"


def test_profil_token_expire(client):
    with patch(
        "autoshop.dependencies.auth_service.authenticate",
        side_effect=ApiError(401, "EXPIRED_TOKEN", "Token expiré."),
    ):
        response = client.get("/api/user/profile", headers={"Authorization": "Bearer vieux"})

    assert response.status_code == 401
    assert response.json()["error"] == "EXPIRED_TOKEN"


# ============================================================
# Profil
# ============================================================

def test_get_profile(client, login_as):
    context = login_as("user")
    response = client.get("/api/user/profile")

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["id"] == str(context.user_id)
    assert user["city"] == "Manila"
    assert "password_hash" not in user


def test_update_profile(client, login_as):
    login_as("user")
    updated = make_user()
    updated.name = "Juan Cruz"

    with patch("autoshop.routers.user.user_service.update_profile", return_value=updated) as mock_update:
        response = client.patch("/api/user/profile", json={"name": "Juan Cruz"})

    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Juan Cruz"
    data = mock_update.call_args.args[2]
    assert data.model_dump(exclude_unset=True) == {"name": "Juan Cruz"}


def test_update_profile_email_invalide(client, login_as):
    login_as("user")
    response = client.patch("/api/user/profile", json={"email": "pas-un-email"})
    assert response.status_code == 400
    assert response.json()["error"] == "MISSING_FIELDS"


def test_update_profile_email_duplique(client, login_as):
    login_as("staff")
    with patch(
        "autoshop.routers.user.user_service.update_profile",
        side_effect=ApiError(409, "DUPLICATE_EMAIL", "Cet email est déjà utilisé par un autre compte."),
    ):
        response = client.patch("/api/user/profile", json={"email": "pris@dadjauto.shop"})

    assert response.status_code == 409
    assert response.json()["error"] == "DUPLICATE_EMAIL"


# ============================================================
# Sessions
# ============================================================

def test_list_sessions(client, login_as):
    context = login_as("user")
    sessions = [make_session_response(is_current=True), make_session_response()]

    with patch("autoshop.routers.user.session_service.list_sessions", return_value=sessions) as mock_list:
        response = client.get("/api/user/sessions")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [s["is_current"] for s in data["sessions"]] == [True, False]
    assert "token" not in data["sessions"][0]
    assert mock_list.call_args.args[1:] == (context.user_id, context.token)


def test_terminate_session(client, login_as):
    context = login_as("user")
    session_id = uuid.uuid4()

    with patch("autoshop.routers.user.session_service.terminate_session") as mock_terminate:
        response = client.delete(f"/api/user/sessions/{session_id}")

    assert response.status_code == 200
    assert mock_terminate.call_args.args[1:] == (context.user_id, session_id, context.token)


def test_terminate_session_courante(client, login_as):
    login_as("user")
    with patch(
        "autoshop.routers.user.session_service.terminate_session",
        side_effect=ApiError(400, "CURRENT_SESSION", "Impossible de révoquer la session courante."),
    ):
        response = client.delete(f"/api/user/sessions/{uuid.uuid4()}")

    assert response.status_code == 400
    assert response.json()["error"] == "CURRENT_SESSION"


def test_terminate_session_id_invalide(client, login_as):
    login_as("user")
    response = client.delete("/api/user/sessions/pas-un-uuid")
    assert response.status_code == 400


def test_terminate_other_sessions(client, login_as):
    login_as("admin")
    with patch("autoshop.routers.user.session_service.terminate_other_sessions", return_value=2):
        response = client.delete("/api/user/sessions")

    assert response.status_code == 200
    assert response.json()["terminated_count"] == 2


# ============================================================
# Export et suppression du compte
# ============================================================

def test_export(client, login_as, mock_db):
    context = login_as("user")
    mock_db.execute.return_value.scalars.return_value.all.return_value = []

    response = client.get("/api/user/export")

    assert response.status_code == 200
    data = response.json()
    assert data["profile"]["email"] == context.user.email
    assert data["address"]["country"] == "Philippines"
    assert data["sessions"] == []
    assert data["metadata"]["total_active_sessions"] == 0


def test_delete_account(client, login_as):
    context = login_as("user")
    body = {"password": "Secret123", "confirmation_word": "SUPPRIMER", "provided_word": "SUPPRIMER"}

    with patch("autoshop.routers.user.user_service.delete_account") as mock_delete:
        response = client.request("DELETE", "/api/user/account", json=body)

    assert response.status_code == 200
    assert mock_delete.call_args.args[1] is context.user


def test_delete_account_champs_manquants(client, login_as):
    login_as("user")
    response = client.request("DELETE", "/api/user/account", json={"password": "Secret123"})
    assert response.status_code == 400
    assert response.json()["error"] == "MISSING_FIELDS"
