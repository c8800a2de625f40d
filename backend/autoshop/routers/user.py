"""
Router du compte utilisateur : profil, sessions actives, export et suppression.
Accessible à tout utilisateur authentifié, quel que soit son rôle.
"""

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from autoshop.database import get_db
from autoshop.dependencies import get_auth_context
from autoshop.errors import ACCOUNT_ERROR, EXPORT_ERROR, PROFILE_ERROR, SESSIONS_ERROR, ApiError
from autoshop.schemas.auth import MessageResponse, UserPublic
from autoshop.schemas.session import SessionListResponse, SessionsTerminated
from autoshop.schemas.user import (
    AccountDeleteRequest,
    ProfileResponse,
    ProfileUpdate,
    UserDataExport,
)
from autoshop.services import session_service, user_service
from autoshop.services.auth_service import AuthContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["Compte utilisateur"])


@router.get("/profile", response_model=ProfileResponse, summary="Profil de l'utilisateur connecté")
def get_profile(context: AuthContext = Depends(get_auth_context)):
    return ProfileResponse(
        message="Profil récupéré.",
        user=UserPublic.model_validate(context.user),
    )


@router.patch("/profile", response_model=ProfileResponse, summary="Modifier son profil")
def update_profile(
    data: ProfileUpdate,
    context: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """
    Met à jour les champs fournis (nom, email, photo, adresse).
    Pas de restriction de rôle : tout utilisateur authentifié modifie son propre profil.
    """
    try:
        user = user_service.update_profile(db, context.user, data)
    except SQLAlchemyError as exc:
        logger.error("Erreur base lors de la mise à jour du profil : %s", exc, exc_info=True)
        raise ApiError(500, PROFILE_ERROR, "Impossible de mettre à jour le profil.")
    return ProfileResponse(message="Profil mis à jour.", user=UserPublic.model_validate(user))


@router.get("/sessions", response_model=SessionListResponse, summary="Lister ses sessions actives")
def list_sessions(context: AuthContext = Depends(get_auth_context), db: Session = Depends(get_db)):
    """Sessions non expirées, la plus récemment active en premier ; is_current marque celle de la requête."""
    try:
        sessions = session_service.list_sessions(db, context.user_id, context.token)
    except SQLAlchemyError as exc:
        logger.error("Erreur base lors de la liste des sessions : %s", exc, exc_info=True)
        raise ApiError(500, SESSIONS_ERROR, "Impossible de récupérer les sessions.")
    return SessionListResponse(message="Sessions récupérées.", sessions=sessions, total=len(sessions))


@router.delete("/sessions/{session_id}", response_model=MessageResponse, summary="Révoquer une session")
def terminate_session(
    session_id: uuid.UUID,
    context: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """
    Révoque une autre session de l'utilisateur.
    La session courante ne peut pas être révoquée ici (utiliser /api/auth/logout).
    """
    try:
        session_service.terminate_session(db, context.user_id, session_id, context.token)
    except SQLAlchemyError as exc:
        logger.error("Erreur base lors de la révocation de session : %s", exc, exc_info=True)
        raise ApiError(500, SESSIONS_ERROR, "Impossible de révoquer la session.")
    return MessageResponse(message="Session révoquée.")


@router.delete("/sessions", response_model=SessionsTerminated, summary="Déconnecter les autres appareils")
def terminate_other_sessions(
    context: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    try:
        count = session_service.terminate_other_sessions(db, context.user_id, context.token)
    except SQLAlchemyError as exc:
        logger.error("Erreur base lors de la révocation des sessions : %s", exc, exc_info=True)
        raise ApiError(500, SESSIONS_ERROR, "Impossible de révoquer les sessions.")
    return SessionsTerminated(message="Autres sessions révoquées.", terminated_count=count)


@router.get("/export", response_model=UserDataExport, summary="Exporter ses données")
def export_data(context: AuthContext = Depends(get_auth_context), db: Session = Depends(get_db)):
    """Retourne profil, adresse, sessions actives et métadonnées (mis en forme JSON/PDF par le front)."""
    try:
        return user_service.export_user_data(db, context.user, context.token)
    except SQLAlchemyError as exc:
        logger.error("Erreur base lors de l'export des données : %s", exc, exc_info=True)
        raise ApiError(500, EXPORT_ERROR, "Impossible d'exporter les données.")


@router.delete("/account", response_model=MessageResponse, summary="Supprimer son compte")
def delete_account(
    data: AccountDeleteRequest,
    context: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    """
    Suppression définitive, après vérification du mot de passe et du mot de confirmation.
    Les sessions et tokens de réinitialisation du compte sont supprimés avec lui.
    """
    try:
        user_service.delete_account(db, context.user, data)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Erreur base lors de la suppression du compte : %s", exc, exc_info=True)
        raise ApiError(500, ACCOUNT_ERROR, "Impossible de supprimer le compte.")
    return MessageResponse(message="Compte supprimé.")
