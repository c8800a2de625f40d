"""
Service métier pour les comptes utilisateurs.
Gère la création (CLI), le profil, l'export des données et la suppression du compte.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from autoshop.errors import (
    CONFIRMATION_MISMATCH,
    DUPLICATE_EMAIL,
    INVALID_CREDENTIALS,
    MISSING_FIELDS,
    ApiError,
)
from autoshop.models.password_reset import PasswordResetToken
from autoshop.models.session import UserSession
from autoshop.models.user import ROLES, User
from autoshop.schemas.user import (
    AccountDeleteRequest,
    DashboardStats,
    ExportAddress,
    ExportMetadata,
    ExportProfile,
    ProfileUpdate,
    UserDataExport,
    UserSummary,
)
from autoshop.services import session_service
from autoshop.services.auth_service import hash_password, verify_password

logger = logging.getLogger(__name__)


def get_by_email(db: Session, email: str) -> Optional[User]:
    return db.execute(select(User).where(User.email == email.strip().lower())).scalar()


def create_user(
    db: Session,
    email: str,
    password: str,
    role: str = "user",
    name: Optional[str] = None,
) -> User:
    """
    Crée un utilisateur avec un mot de passe haché.
    Lève ValueError si le rôle est inconnu ou si l'email est déjà utilisé.
    """
    if role not in ROLES:
        raise ValueError(f"Rôle invalide. Valeurs acceptées : {', '.join(ROLES)}")
    if get_by_email(db, email) is not None:
        raise ValueError(f"Un compte existe déjà pour {email}.")

    user = User(
        email=email.strip().lower(),
        password_hash=hash_password(password),
        role=role,
        name=name,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Utilisateur créé : %s (%s)", user.id, user.role)
    return user


def update_profile(db: Session, user: User, data: ProfileUpdate) -> User:
    """
    Met à jour les champs fournis du profil.
    Lève DUPLICATE_EMAIL (409) si le nouvel email appartient déjà à un autre compte.
    """
    update_data = data.model_dump(exclude_unset=True)

    new_email = update_data.get("email")
    if new_email is not None and new_email != user.email:
        taken = db.execute(
            select(User.id).where(User.email == new_email, User.id != user.id)
        ).scalar()
        if taken is not None:
            raise ApiError(409, DUPLICATE_EMAIL, "Cet email est déjà utilisé par un autre compte.")
    elif new_email is None:
        update_data.pop("email", None)

    for field, value in update_data.items():
        setattr(user, field, value)

    try:
        db.commit()
    except IntegrityError:
        # Email pris entre la vérification et le commit
        db.rollback()
        raise ApiError(409, DUPLICATE_EMAIL, "Cet email est déjà utilisé par un autre compte.")

    db.refresh(user)
    logger.info("Profil mis à jour : utilisateur %s (%s)", user.id, ", ".join(sorted(update_data)))
    return user


def export_user_data(db: Session, user: User, current_token: str) -> UserDataExport:
    """Rassemble profil, adresse et sessions actives pour l'export JSON/PDF du front."""
    sessions = session_service.list_sessions(db, user.id, current_token)

    return UserDataExport(
        profile=ExportProfile(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            profile_picture=user.profile_picture,
        ),
        address=ExportAddress(
            street=user.street,
            barangay=user.barangay,
            city=user.city,
            province=user.province,
            region=user.region,
            country=user.country,
        ),
        sessions=sessions,
        metadata=ExportMetadata(
            export_date=datetime.now(),
            account_created=user.created_at,
            last_updated=user.updated_at,
            total_active_sessions=len(sessions),
        ),
    )


def delete_account(db: Session, user: User, data: AccountDeleteRequest) -> None:
    """
    Supprime définitivement le compte après vérification du mot de passe
    et du mot de confirmation saisi par l'utilisateur.

    Les sessions et les tokens de réinitialisation du compte sont supprimés
    dans la même transaction.
    """
    if not data.password or not data.confirmation_word or not data.provided_word:
        raise ApiError(
            400, MISSING_FIELDS,
            "Mot de passe, mot de confirmation et saisie de confirmation sont requis.",
        )

    if not verify_password(data.password, user.password_hash):
        logger.warning("Suppression de compte refusée : mot de passe incorrect (utilisateur %s)", user.id)
        raise ApiError(401, INVALID_CREDENTIALS, "Mot de passe incorrect.")

    if data.provided_word != data.confirmation_word:
        raise ApiError(400, CONFIRMATION_MISMATCH, "Le mot de confirmation ne correspond pas.")

    user_id = user.id
    db.execute(delete(UserSession).where(UserSession.user_id == user_id))
    db.execute(delete(PasswordResetToken).where(PasswordResetToken.email == user.email))
    db.delete(user)
    db.commit()
    logger.info("Compte supprimé : utilisateur %s", user_id)


def list_users(db: Session) -> List[UserSummary]:
    """Retourne tous les utilisateurs, du plus récent au plus ancien."""
    users = db.execute(select(User).order_by(User.created_at.desc())).scalars().all()
    return [UserSummary.model_validate(u) for u in users]


def get_dashboard_stats(db: Session, current_user: User) -> DashboardStats:
    total = db.execute(select(func.count()).select_from(User)).scalar() or 0
    active = db.execute(
        select(func.count()).select_from(User).where(User.is_active.is_(True))
    ).scalar() or 0

    return DashboardStats(
        total_users=total,
        active_users=active,
        inactive_users=total - active,
        current_user=UserSummary.model_validate(current_user),
    )
