"""
Dépendances FastAPI pour l'authentification et le contrôle des rôles.

Aucun état d'authentification global : chaque handler protégé reçoit
explicitement un AuthContext résolu à partir du header Authorization.
"""

import logging
from typing import Iterable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from autoshop.database import get_db
from autoshop.errors import AUTH_ERROR, INSUFFICIENT_ROLE, NO_AUTH, ApiError
from autoshop.services import auth_service
from autoshop.services.auth_service import AuthContext

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Token extrait de `Authorization: Bearer <token>`, ou None s'il est absent."""
    if credentials is None:
        return None
    return credentials.credentials


def get_auth_context(
    token: Optional[str] = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Authentifie la requête ; les erreurs de token remontent en 401 avec leur code."""
    try:
        return auth_service.authenticate(db, token)
    except SQLAlchemyError as exc:
        logger.error("Erreur base lors de l'authentification : %s", exc, exc_info=True)
        raise ApiError(500, AUTH_ERROR, "Échec de l'authentification.")


def check_roles(context: Optional[AuthContext], allowed_roles: Iterable[str]) -> AuthContext:
    """
    Vérifie que l'identité authentifiée possède l'un des rôles autorisés.
    Lève NO_AUTH (401) sans identité, INSUFFICIENT_ROLE (403) sinon.
    """
    if context is None:
        raise ApiError(401, NO_AUTH, "Authentification requise.")

    roles = list(allowed_roles)
    if context.role not in roles:
        logger.warning(
            "Accès refusé à l'utilisateur %s : rôle %s, requis %s",
            context.user_id, context.role, roles,
        )
        raise ApiError(
            403, INSUFFICIENT_ROLE, "Permissions insuffisantes.",
            required=roles, current=context.role,
        )
    return context


def require_roles(*roles: str):
    """Fabrique de dépendance : `Depends(require_roles("staff", "admin"))`."""

    def role_checker(context: AuthContext = Depends(get_auth_context)) -> AuthContext:
        return check_roles(context, roles)

    return role_checker
