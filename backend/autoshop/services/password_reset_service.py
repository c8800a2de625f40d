"""
Service de réinitialisation du mot de passe.

Cycle de vie d'un token :
  Demandé → Valide (non utilisé, non expiré) → Consommé
                                             → Expiré

Un token introuvable, expiré ou déjà utilisé donne toujours la même réponse
(NOT_FOUND) pour ne pas révéler son état.
"""

import logging
import re
import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from autoshop.config import settings
from autoshop.errors import MISSING_FIELDS, NOT_FOUND, WEAK_PASSWORD, ApiError
from autoshop.models.password_reset import PasswordResetToken
from autoshop.models.user import User
from autoshop.services import session_service
from autoshop.services.auth_service import hash_password
from autoshop.services.email_service import send_password_reset_email

logger = logging.getLogger(__name__)

GENERIC_RESET_MESSAGE = (
    "Si un compte existe pour cette adresse, un lien de réinitialisation a été envoyé."
)
INVALID_TOKEN_MESSAGE = "Lien de réinitialisation invalide ou expiré."
MIN_PASSWORD_LENGTH = 8
# bcrypt refuse les mots de passe de plus de 72 octets
MAX_PASSWORD_BYTES = 72


def validate_password_strength(password: str) -> None:
    """Entre 8 caractères et 72 octets, avec une majuscule, une minuscule et un chiffre."""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ApiError(
            400, WEAK_PASSWORD,
            f"Le mot de passe doit contenir au moins {MIN_PASSWORD_LENGTH} caractères.",
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ApiError(
            400, WEAK_PASSWORD,
            f"Le mot de passe ne doit pas dépasser {MAX_PASSWORD_BYTES} octets.",
        )
    if not (
        re.search(r"[A-Z]", password)
        and re.search(r"[a-z]", password)
        and re.search(r"\d", password)
    ):
        raise ApiError(
            400, WEAK_PASSWORD,
            "Le mot de passe doit contenir au moins une majuscule, une minuscule et un chiffre.",
        )


def generate_reset_token() -> str:
    """Token aléatoire cryptographiquement sûr (32 octets, 64 caractères hexadécimaux)."""
    return secrets.token_hex(32)


def build_reset_url(token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/auth/reset-password?token={token}"


def request_reset(
    db: Session,
    email: str,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    """
    Crée un token de réinitialisation et envoie le lien par email.

    Sans compte actif pour cet email, ne fait rien : la réponse HTTP reste
    identique dans les deux cas. Avec background_tasks, l'envoi SMTP a lieu
    après la réponse, dont la durée ne dépend donc pas de l'existence du compte.
    """
    user = db.execute(
        select(User).where(User.email == email, User.is_active.is_(True))
    ).scalar()

    if user is None:
        logger.info("Réinitialisation demandée pour un email sans compte actif")
        return

    token = generate_reset_token()
    db.add(PasswordResetToken(
        email=user.email,
        token=token,
        expires_at=datetime.now() + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
        used=False,
    ))
    db.commit()
    logger.info("Token de réinitialisation créé pour l'utilisateur %s", user.id)

    recipient_name = user.name or user.email
    if background_tasks is not None:
        background_tasks.add_task(_send_reset_email, user.email, recipient_name, token)
    else:
        _send_reset_email(user.email, recipient_name, token)


def _send_reset_email(to_email: str, recipient_name: str, token: str) -> None:
    """Un échec SMTP est journalisé sans faire échouer la demande."""
    try:
        send_password_reset_email(
            to_email=to_email,
            recipient_name=recipient_name,
            reset_url=build_reset_url(token),
            expires_minutes=settings.RESET_TOKEN_EXPIRE_MINUTES,
        )
    except Exception as exc:
        logger.warning("Envoi de l'email de réinitialisation à %s impossible : %s", to_email, exc)


def verify_token(db: Session, token: Optional[str]) -> PasswordResetToken:
    """
    Retourne l'enregistrement d'un token utilisable.
    Lève MISSING_FIELDS (400) si aucun token, NOT_FOUND (404) s'il est inconnu,
    expiré ou déjà utilisé.
    """
    if not token:
        raise ApiError(400, MISSING_FIELDS, "Le token de réinitialisation est requis.")

    record = db.execute(
        select(PasswordResetToken).where(PasswordResetToken.token == token)
    ).scalar()

    if record is None or record.used or record.expires_at <= datetime.now():
        raise ApiError(404, NOT_FOUND, INVALID_TOKEN_MESSAGE)
    return record


def reset_password(db: Session, token: Optional[str], new_password: Optional[str]) -> None:
    """
    Change le mot de passe à l'aide d'un token valide.

    Étapes :
    1. Valider les champs et la robustesse du mot de passe
    2. Revalider le token (non utilisé, non expiré)
    3. En une seule transaction : consommer le token (UPDATE conditionnel sur
       used = false), mettre à jour le hash, révoquer les sessions ouvertes
    4. Supprimer les tokens expirés de cet email (sans bloquer en cas d'échec)
    """
    if not token or not new_password:
        raise ApiError(400, MISSING_FIELDS, "Le token et le nouveau mot de passe sont requis.")

    validate_password_strength(new_password)
    record = verify_token(db, token)

    user = db.execute(
        select(User).where(User.email == record.email, User.is_active.is_(True))
    ).scalar()
    if user is None:
        raise ApiError(404, NOT_FOUND, INVALID_TOKEN_MESSAGE)

    new_hash = hash_password(new_password)

    try:
        consumed = db.execute(
            update(PasswordResetToken)
            .where(
                PasswordResetToken.id == record.id,
                PasswordResetToken.used.is_(False),
            )
            .values(used=True)
        )
        if consumed.rowcount != 1:
            # Consommé entre-temps par une requête concurrente
            db.rollback()
            raise ApiError(404, NOT_FOUND, INVALID_TOKEN_MESSAGE)

        user.password_hash = new_hash
        session_service.revoke_all_sessions(db, user.id)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("Mot de passe réinitialisé pour l'utilisateur %s", user.id)

    try:
        db.execute(
            delete(PasswordResetToken).where(
                PasswordResetToken.email == record.email,
                PasswordResetToken.expires_at < datetime.now(),
            )
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Nettoyage des tokens expirés de %s impossible : %s", record.email, exc)


def purge_expired_tokens(db: Session) -> int:
    """Supprime les tokens expirés ou déjà utilisés. Retourne le nombre supprimé."""
    result = db.execute(
        delete(PasswordResetToken).where(
            or_(
                PasswordResetToken.expires_at <= datetime.now(),
                PasswordResetToken.used.is_(True),
            )
        )
    )
    db.commit()
    return result.rowcount or 0
