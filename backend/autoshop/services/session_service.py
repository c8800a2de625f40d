"""
Registre des sessions actives : création à la connexion, liste, révocation.
"""

import hashlib
import logging
import re
import uuid
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import Request
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from autoshop.errors import CURRENT_SESSION, FORBIDDEN, NOT_FOUND, ApiError
from autoshop.models.session import UserSession
from autoshop.schemas.session import SessionResponse

logger = logging.getLogger(__name__)

# Ordre important : les UA mobiles contiennent aussi "Linux" / "Mac OS X",
# et ceux d'Edge et d'Opera contiennent aussi "Chrome".
_DEVICE_PATTERNS = [
    (r"Android", "Android"),
    (r"iPhone", "iPhone"),
    (r"iPad", "iPad"),
    (r"Windows NT 11", "Windows 11"),
    (r"Windows NT 10", "Windows 10"),
    (r"Windows", "Windows"),
    (r"Mac OS X", "macOS"),
    (r"Linux", "Linux"),
]

_BROWSER_PATTERNS = [
    (r"Edg/", "Edge"),
    (r"OPR/|Opera", "Opera"),
    (r"Chrome|CriOS", "Chrome"),
    (r"Firefox|FxiOS", "Firefox"),
    (r"Safari", "Safari"),
]


def hash_token(token: str) -> str:
    """Empreinte SHA-256 d'un bearer token (seule forme stockée en base)."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def parse_user_agent(user_agent: Optional[str]) -> Tuple[str, str]:
    """Extrait (appareil, navigateur) d'un User-Agent, avec des valeurs par défaut."""
    if not user_agent:
        return "Unknown Device", "Unknown Browser"

    device = next(
        (name for pattern, name in _DEVICE_PATTERNS if re.search(pattern, user_agent, re.I)),
        "Unknown Device",
    )
    browser = next(
        (name for pattern, name in _BROWSER_PATTERNS if re.search(pattern, user_agent, re.I)),
        "Unknown Browser",
    )
    return device, browser


def get_client_ip(request: Request) -> str:
    """Adresse IP du client, en tenant compte des proxies (X-Forwarded-For, X-Real-IP)."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "Unknown"


def create_session(
    db: Session,
    user_id: uuid.UUID,
    token: str,
    expires_at: datetime,
    user_agent: Optional[str] = None,
    ip_address: str = "Unknown",
) -> UserSession:
    """Enregistre une nouvelle session ; seule l'empreinte du token est stockée."""
    device, browser = parse_user_agent(user_agent)
    now = datetime.now()
    session = UserSession(
        user_id=user_id,
        token_hash=hash_token(token),
        device=device,
        browser=browser,
        ip_address=ip_address or "Unknown",
        last_activity=now,
        created_at=now,
        expires_at=expires_at,
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


def list_sessions(db: Session, user_id: uuid.UUID, current_token: str) -> List[SessionResponse]:
    """Sessions non expirées de l'utilisateur, de la plus récemment active à la plus ancienne."""
    current_hash = hash_token(current_token)
    sessions = db.execute(
        select(UserSession)
        .where(
            UserSession.user_id == user_id,
            UserSession.expires_at > datetime.now(),
        )
        .order_by(UserSession.last_activity.desc())
    ).scalars().all()

    return [_to_response(s, is_current=s.token_hash == current_hash) for s in sessions]


def terminate_session(
    db: Session,
    user_id: uuid.UUID,
    session_id: uuid.UUID,
    current_token: str,
) -> None:
    """
    Révoque une session de l'utilisateur.

    Lève ApiError :
    - NOT_FOUND (404) si la session n'existe pas
    - CURRENT_SESSION (400) si c'est la session courante (utiliser la déconnexion)
    - FORBIDDEN (403) si elle appartient à un autre utilisateur
    """
    session = db.get(UserSession, session_id)
    if session is None:
        raise ApiError(404, NOT_FOUND, "Session introuvable.")

    if session.token_hash == hash_token(current_token):
        raise ApiError(
            400,
            CURRENT_SESSION,
            "Impossible de révoquer la session courante. Utilisez la déconnexion.",
        )

    if session.user_id != user_id:
        logger.warning(
            "Tentative de révocation de la session %s par l'utilisateur %s (propriétaire %s)",
            session_id, user_id, session.user_id,
        )
        raise ApiError(403, FORBIDDEN, "Cette session ne vous appartient pas.")

    db.delete(session)
    db.commit()
    logger.info("Session %s révoquée par l'utilisateur %s", session_id, user_id)


def terminate_other_sessions(db: Session, user_id: uuid.UUID, current_token: str) -> int:
    """Révoque toutes les sessions de l'utilisateur sauf la courante. Retourne le nombre supprimé."""
    result = db.execute(
        delete(UserSession).where(
            UserSession.user_id == user_id,
            UserSession.token_hash != hash_token(current_token),
        )
    )
    db.commit()
    count = result.rowcount or 0
    logger.info("%d autre(s) session(s) révoquée(s) pour l'utilisateur %s", count, user_id)
    return count


def revoke_all_sessions(db: Session, user_id: uuid.UUID) -> None:
    """Supprime toutes les sessions d'un utilisateur, sans commit (fait partie d'une transaction plus large)."""
    db.execute(delete(UserSession).where(UserSession.user_id == user_id))


def purge_expired_sessions(db: Session, purge_all: bool = False) -> int:
    """Supprime les sessions expirées (ou toutes si purge_all). Retourne le nombre supprimé."""
    stmt = delete(UserSession)
    if not purge_all:
        stmt = stmt.where(UserSession.expires_at <= datetime.now())
    result = db.execute(stmt)
    db.commit()
    return result.rowcount or 0


def _to_response(session: UserSession, is_current: bool) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        device=session.device,
        browser=session.browser,
        ip_address=session.ip_address,
        location=session.location,
        last_activity=session.last_activity,
        created_at=session.created_at,
        expires_at=session.expires_at,
        is_current=is_current,
    )
