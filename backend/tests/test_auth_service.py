"""
Tests unitaires pour le service d'authentification.
Couverture : hachage bcrypt, JWT, connexion, vérification du token, déconnexion.
"""

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import jwt
import pytest
from sqlalchemy.exc import OperationalError

from autoshop.config import settings
from autoshop.errors import ApiError
from autoshop.services.auth_service import (
    INVALID_CREDENTIALS_MESSAGE,
    authenticate,
    create_access_token,
    decode_access_token,
    hash_password,
    login,
    logout,
    verify_password,
)
from autoshop.services.session_service import hash_token

from conftest import make_user


# --- Helpers ---

def make_db(user=None, session=None):
    db = MagicMock()
    db.get.return_value = user
    db.execute.return_value.scalar.return_value = session if session is not None else user
    return db


def make_session(user_id, token="tok"):
    session = MagicMock()
    session.id = uuid.uuid4()
    session.user_id = user_id
    session.token_hash = hash_token(token)
    return session


def encode(payload, secret=None):
    return jwt.encode(payload, secret or settings.SECRET_KEY, algorithm=settings.ALGORITHM)


# ============================================================
# Mots de passe
# ============================================================

def test_hash_password_format_bcrypt():
    hashed = hash_password("Secret123")
    assert hashed.startswith("$2")
    assert hashed != hash_password("Secret123"), "Chaque hash doit avoir son propre sel"


def test_verify_password_correct_et_incorrect():
    hashed = hash_password("Secret123")
    assert verify_password("Secret123", hashed) is True
    assert verify_password("Secret124", hashed) is False


def test_verify_password_hash_malforme():
    """Un hash corrompu en base ne doit jamais correspondre (ni lever d'exception)."""
    assert verify_password("Secret123", "pas-un-hash") is False


# ============================================================
# JWT
# ============================================================

def test_create_access_token_contient_id_et_role():
    user_id = uuid.uuid4()
    token, expires_at = create_access_token(user_id, "staff")
    payload = decode_access_token(token)
    assert payload["sub"] == str(user_id)
    assert payload["role"] == "staff"
    assert payload["exp"] - payload["iat"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    assert expires_at > datetime.now()


def test_decode_token_absent():
    with pytest.raises(ApiError) as exc:
        decode_access_token(None)
    assert exc.value.error == "NO_TOKEN"
    assert exc.value.status_code == 401


def test_decode_token_expire_donne_expired_token():
    """Un token expiré mais bien signé → EXPIRED_TOKEN, jamais INVALID_TOKEN."""
    now = datetime.now(timezone.utc)
    for age in (timedelta(seconds=1), timedelta(hours=2), timedelta(days=30)):
        token = encode({"sub": str(uuid.uuid4()), "iat": now - age - timedelta(hours=1), "exp": now - age})
        with pytest.raises(ApiError) as exc:
            decode_access_token(token)
        assert exc.value.error == "EXPIRED_TOKEN"


def test_decode_token_mauvaise_signature():
    now = datetime.now(timezone.utc)
    token = encode({"sub": "x", "exp": now + timedelta(hours=1)}, secret="autre-secret")
    with pytest.raises(ApiError) as exc:
        decode_access_token(token)
    assert exc.value.error == "INVALID_TOKEN"


def test_decode_token_malforme():
    with pytest.raises(ApiError) as exc:
        decode_access_token("pas.un.jwt")
    assert exc.value.error == "INVALID_TOKEN"


def test_decode_token_sans_sub():
    token = encode({"exp": datetime.now(timezone.utc) + timedelta(hours=1)})
    with pytest.raises(ApiError) as exc:
        decode_access_token(token)
    assert exc.value.error == "INVALID_TOKEN"


# ============================================================
# login
# ============================================================

def test_login_succes_ouvre_une_session():
    user = make_user(role="staff", password_hash=hash_password("Secret123"))
    db = make_db(user=user)

    with patch("autoshop.services.auth_service.session_service.create_session") as mock_create:
        result = login(db, "client@dadjauto.shop", "Secret123", user_agent="Mozilla/5.0 (X11; Linux x86_64) Firefox/120.0", ip_address="10.0.0.5")

    assert result.user.email == user.email
    assert result.user.role == "staff"
    assert "password_hash" not in result.user.model_dump()
    assert decode_access_token(result.token)["sub"] == str(user.id)

    kwargs = mock_create.call_args.kwargs
    assert kwargs["user_id"] == user.id
    assert kwargs["token"] == result.token
    assert kwargs["ip_address"] == "10.0.0.5"


def test_login_email_inconnu_verifie_quand_meme_un_hash():
    """Email inconnu → INVALID_CREDENTIALS, après un bcrypt factice (même coût)."""
    db = make_db(user=None)

    with patch("autoshop.services.auth_service.verify_password", return_value=False) as mock_verify:
        with pytest.raises(ApiError) as exc:
            login(db, "inconnu@dadjauto.shop", "Secret123")

    assert exc.value.status_code == 401
    assert exc.value.error == "INVALID_CREDENTIALS"
    mock_verify.assert_called_once()


def test_login_mauvais_mot_de_passe_meme_message_que_email_inconnu():
    user = make_user(password_hash=hash_password("Secret123"))

    with pytest.raises(ApiError) as wrong_password:
        login(make_db(user=user), "a@b.com", "wrong")
    with pytest.raises(ApiError) as unknown_email:
        login(make_db(user=None), "a@b.com", "wrong")

    assert wrong_password.value.status_code == unknown_email.value.status_code == 401
    assert wrong_password.value.to_dict() == unknown_email.value.to_dict()
    assert wrong_password.value.message == INVALID_CREDENTIALS_MESSAGE


def test_login_mauvais_mot_de_passe_aucune_session():
    user = make_user(password_hash=hash_password("Secret123"))
    with patch("autoshop.services.auth_service.session_service.create_session") as mock_create:
        with pytest.raises(ApiError):
            login(make_db(user=user), "a@b.com", "wrong")
    mock_create.assert_not_called()


def test_login_compte_desactive():
    user = make_user(is_active=False, password_hash=hash_password("Secret123"))
    with pytest.raises(ApiError) as exc:
        login(make_db(user=user), user.email, "Secret123")
    assert exc.value.error == "INVALID_USER"


# ============================================================
# authenticate
# ============================================================

def test_authenticate_token_emis_par_login_accepte():
    user = make_user(role="admin")
    token, _ = create_access_token(user.id, user.role)
    session = make_session(user.id, token)
    db = make_db(user=user, session=session)

    context = authenticate(db, token)

    assert context.user_id == user.id
    assert context.role == "admin"
    assert context.token == token
    assert context.session_id == session.id
    db.commit.assert_called_once()


def test_authenticate_utilisateur_desactive():
    user = make_user(is_active=False)
    token, _ = create_access_token(user.id, user.role)
    with pytest.raises(ApiError) as exc:
        authenticate(make_db(user=user, session=make_session(user.id, token)), token)
    assert exc.value.error == "INVALID_USER"


def test_authenticate_utilisateur_supprime():
    token, _ = create_access_token(uuid.uuid4(), "user")
    db = MagicMock()
    db.get.return_value = None
    with pytest.raises(ApiError) as exc:
        authenticate(db, token)
    assert exc.value.error == "INVALID_USER"


def test_authenticate_session_revoquee():
    user = make_user()
    token, _ = create_access_token(user.id, user.role)
    db = MagicMock()
    db.get.return_value = user
    db.execute.return_value.scalar.return_value = None

    with pytest.raises(ApiError) as exc:
        authenticate(db, token)
    assert exc.value.error == "INVALID_TOKEN"


def test_authenticate_sub_non_uuid():
    token = encode({"sub": "pas-un-uuid", "exp": datetime.now(timezone.utc) + timedelta(hours=1)})
    with pytest.raises(ApiError) as exc:
        authenticate(MagicMock(), token)
    assert exc.value.error == "INVALID_TOKEN"


# ============================================================
# logout
# ============================================================

def test_logout_sans_token():
    with pytest.raises(ApiError) as exc:
        logout(MagicMock(), None)
    assert exc.value.error == "NO_TOKEN"


def test_logout_supprime_la_session():
    db = MagicMock()
    db.execute.return_value.rowcount = 1
    assert logout(db, "tok") is True
    db.commit.assert_called_once()


def test_logout_echec_base_non_bloquant():
    """Une erreur base est journalisée, jamais remontée au client."""
    db = MagicMock()
    db.execute.side_effect = OperationalError("DELETE", {}, Exception("connexion perdue"))

    assert logout(db, "tok") is False
    db.rollback.assert_called_once()
