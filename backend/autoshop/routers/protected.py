"""
Routes réservées au personnel : liste des utilisateurs (admin) et statistiques (staff, admin).
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from autoshop.database import get_db
from autoshop.dependencies import require_roles
from autoshop.errors import STATS_ERROR, USERS_ERROR, ApiError
from autoshop.schemas.user import DashboardStatsResponse, UserListResponse
from autoshop.services import user_service
from autoshop.services.auth_service import AuthContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/protected", tags=["Administration"])


@router.get("/users", response_model=UserListResponse, summary="Lister les utilisateurs (admin)")
def list_users(
    context: AuthContext = Depends(require_roles("admin")),
    db: Session = Depends(get_db),
):
    try:
        users = user_service.list_users(db)
    except SQLAlchemyError as exc:
        logger.error("Erreur base lors de la liste des utilisateurs : %s", exc, exc_info=True)
        raise ApiError(500, USERS_ERROR, "Impossible de récupérer les utilisateurs.")
    return UserListResponse(message="Utilisateurs récupérés.", users=users, total=len(users))


@router.get("/dashboard-stats", response_model=DashboardStatsResponse, summary="Statistiques du tableau de bord")
def dashboard_stats(
    context: AuthContext = Depends(require_roles("staff", "admin")),
    db: Session = Depends(get_db),
):
    """Nombre total d'utilisateurs, actifs et inactifs, plus l'utilisateur courant."""
    try:
        stats = user_service.get_dashboard_stats(db, context.user)
    except SQLAlchemyError as exc:
        logger.error("Erreur base lors du calcul des statistiques : %s", exc, exc_info=True)
        raise ApiError(500, STATS_ERROR, "Impossible de calculer les statistiques.")
    return DashboardStatsResponse(message="Statistiques récupérées.", stats=stats)
