"""
Router d'authentification : connexion, déconnexion, mot de passe oublié.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from autoshop.database import get_db
from autoshop.dependencies import get_bearer_token
from autoshop.errors import LOGIN_ERROR, NOT_IMPLEMENTED, RESET_ERROR, ApiError
from autoshop.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ResetPasswordRequest,
    ResetTokenStatus,
)
from autoshop.services import auth_service, password_reset_service
from autoshop.services.session_service import get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentification"])


@router.post("/login", response_model=LoginResponse, summary="Connexion")
def login(data: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """
    Vérifie email et mot de passe, émet un JWT valable 1 heure et ouvre une session.
    Email inconnu et mot de passe incorrect renvoient la même réponse 401.
    """
    try:
        return auth_service.login(
            db,
            email=data.email,
            password=data.password,
            user_agent=request.headers.get("user-agent"),
            ip_address=get_client_ip(request),
        )
    except SQLAlchemyError as exc:
        logger.error("Erreur base lors de la connexion : %s", exc, exc_info=True)
        raise ApiError(500, LOGIN_ERROR, "Erreur interne lors de la connexion.")


@router.post("/logout", response_model=MessageResponse, summary="Déconnexion")
def logout(token: Optional[str] = Depends(get_bearer_token), db: Session = Depends(get_db)):
    """
    Supprime la session liée au token. Au mieux : un échec côté serveur est
    journalisé et la déconnexion est tout de même confirmée au client.
    """
    auth_service.logout(db, token)
    return MessageResponse(message="Déconnexion réussie.")


@router.post("/register", status_code=501, summary="Inscription (non implémentée)")
def register():
    """Placeholder : l'inscription en libre-service n'est pas encore disponible."""
    raise ApiError(501, NOT_IMPLEMENTED, "L'inscription n'est pas encore disponible.")


@router.post("/forgot-password", response_model=MessageResponse, summary="Mot de passe oublié")
def forgot_password(
    data: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """
    Envoie un lien de réinitialisation si un compte actif existe.
    La réponse est identique que l'email existe ou non ; l'email part après la réponse.
    """
    try:
        password_reset_service.request_reset(db, data.email, background_tasks)
    except SQLAlchemyError as exc:
        logger.error("Erreur base lors de la demande de réinitialisation : %s", exc, exc_info=True)
        raise ApiError(500, RESET_ERROR, "Impossible de traiter la demande de réinitialisation.")
    return MessageResponse(message=password_reset_service.GENERIC_RESET_MESSAGE)


@router.get("/verify-reset-token", response_model=ResetTokenStatus, summary="Vérifier un lien de réinitialisation")
def verify_reset_token(token: Optional[str] = None, db: Session = Depends(get_db)):
    """Token inconnu, expiré ou déjà utilisé → 404 avec un message unique."""
    try:
        password_reset_service.verify_token(db, token)
    except SQLAlchemyError as exc:
        logger.error("Erreur base lors de la vérification du token : %s", exc, exc_info=True)
        raise ApiError(500, RESET_ERROR, "Impossible de vérifier le lien de réinitialisation.")
    return ResetTokenStatus(message="Lien de réinitialisation valide.", valid=True)


@router.post("/reset-password", response_model=MessageResponse, summary="Réinitialiser le mot de passe")
def reset_password(data: ResetPasswordRequest, db: Session = Depends(get_db)):
    """
    Change le mot de passe avec un token valide (usage unique).
    Le mot de passe doit faire au moins 8 caractères avec majuscule, minuscule et chiffre.
    """
    try:
        password_reset_service.reset_password(db, data.token, data.password)
    except SQLAlchemyError as exc:
        logger.error("Erreur base lors de la réinitialisation : %s", exc, exc_info=True)
        raise ApiError(500, RESET_ERROR, "Impossible de réinitialiser le mot de passe.")
    return MessageResponse(message="Mot de passe réinitialisé.")
