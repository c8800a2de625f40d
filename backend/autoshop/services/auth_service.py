"""
Service d'authentification : hachage bcrypt, émission et vérification des JWT.

Flux de connexion :
  1. Rechercher l'utilisateur par email
  2. Vérifier le mot de passe (bcrypt, même coût si l'email est inconnu)
  3. Émettre un JWT signé valable 1 heure (sub = id utilisateur)
  4. Enregistrer la session (appareil, navigateur, IP) dans user_sessions

Chaque requête protégée repasse par authenticate() : signature, expiration,
compte toujours actif, session toujours présente (non révoquée).
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional, Tuple

import bcrypt
import jwt
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from autoshop.config import settings
from autoshop.errors import (
    EXPIRED_TOKEN,
    INVALID_CREDENTIALS,
    INVALID_TOKEN,
    INVALID_USER,
    NO_TOKEN,
    ApiError,
)
from autoshop.models.session import UserSession
from autoshop.models.user import User
from autoshop.schemas.auth import LoginResponse, UserPublic
from autoshop.services import session_service
from autoshop.services.session_service import hash_token

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Email ou mot de passe invalide."


@dataclass
class AuthContext:
    """Identité authentifiée d'une requête, passée explicitement aux handlers."""
    user: User
    role: str
    token: str
    session_id: uuid.UUID

    @property
    def user_id(self) -> uuid.UUID:
        return self.user.id


# --- Mots de passe ---

def hash_password(password: str) -> str:
    """Hache un mot de passe avec bcrypt (sel aléatoire)."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Compare un mot de passe à son hash bcrypt. Un hash malformé ne correspond à rien."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


@lru_cache
def _dummy_hash() -> str:
    return hash_password("autoshop-dummy-password")


# --- JWT ---

def create_access_token(user_id: uuid.UUID, role: str) -> Tuple[str, datetime]:
    """
    Émet un JWT HS256 portant l'id utilisateur (sub) et le rôle.
    Retourne le token et son expiration (heure locale naïve, comme les colonnes DateTime).
    """
    now = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + lifetime,
    }
    token = jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return token, datetime.now() + lifetime


def decode_access_token(token: Optional[str]) -> dict:
    """
    Vérifie signature et expiration d'un JWT.
    Un token expiré mais correctement signé donne toujours EXPIRED_TOKEN.
    """
    if not token:
        raise ApiError(401, NO_TOKEN, "Token d'accès requis.")
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise ApiError(401, EXPIRED_TOKEN, "Token expiré.")
    except jwt.InvalidTokenError:
        raise ApiError(401, INVALID_TOKEN, "Token invalide.")


# --- Connexion / vérification / déconnexion ---

def login(
    db: Session,
    email: str,
    password: str,
    user_agent: Optional[str] = None,
    ip_address: str = "Unknown",
) -> LoginResponse:
    """
    Authentifie un utilisateur et ouvre une session.

    Email inconnu et mot de passe incorrect restent deux branches distinctes
    (journalisées séparément) mais renvoient le même message au client.
    """
    user = db.execute(select(User).where(User.email == email)).scalar()

    if user is None:
        verify_password(password, _dummy_hash())
        logger.warning("Échec de connexion : aucun compte pour %s", email)
        raise ApiError(401, INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

    if not verify_password(password, user.password_hash):
        logger.warning("Échec de connexion : mot de passe incorrect (utilisateur %s)", user.id)
        raise ApiError(401, INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

    if not user.is_active:
        logger.warning("Connexion refusée : compte désactivé (utilisateur %s)", user.id)
        raise ApiError(401, INVALID_USER, "Utilisateur introuvable ou désactivé.")

    token, expires_at = create_access_token(user.id, user.role)
    session_service.create_session(
        db,
        user_id=user.id,
        token=token,
        expires_at=expires_at,
        user_agent=user_agent,
        ip_address=ip_address,
    )

    logger.info("Connexion réussie : utilisateur %s (%s)", user.id, user.role)
    return LoginResponse(
        message="Connexion réussie.",
        token=token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserPublic.model_validate(user),
    )


def authenticate(db: Session, token: Optional[str]) -> AuthContext:
    """
    Résout l'identité portée par un bearer token.

    Lève ApiError : NO_TOKEN, INVALID_TOKEN, EXPIRED_TOKEN ou INVALID_USER
    (compte supprimé ou désactivé depuis l'émission du token).
    """
    payload = decode_access_token(token)

    try:
        user_id = uuid.UUID(str(payload["sub"]))
    except ValueError:
        raise ApiError(401, INVALID_TOKEN, "Token invalide.")

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise ApiError(401, INVALID_USER, "Utilisateur introuvable ou désactivé.")

    session = db.execute(
        select(UserSession).where(UserSession.token_hash == hash_token(token))
    ).scalar()
    if session is None or session.user_id != user.id:
        raise ApiError(401, INVALID_TOKEN, "Session révoquée.")

    session.last_activity = datetime.now()
    db.commit()

    return AuthContext(user=user, role=user.role, token=token, session_id=session.id)


def logout(db: Session, token: Optional[str]) -> bool:
    """
    Déconnexion au mieux : supprime la session liée au token si elle existe.
    Un échec côté base est journalisé sans bloquer la déconnexion du client.
    Retourne True si une session a été supprimée.
    """
    if not token:
        raise ApiError(401, NO_TOKEN, "Token d'accès requis.")

    try:
        result = db.execute(
            delete(UserSession).where(UserSession.token_hash == hash_token(token))
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Invalidation de la session impossible à la déconnexion : %s", exc)
        return False

    removed = bool(result.rowcount)
    logger.info("Déconnexion : session %s", "supprimée" if removed else "déjà absente")
    return removed
