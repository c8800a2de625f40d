"""
Planificateur APScheduler pour le nettoyage périodique des sessions et des
tokens de réinitialisation expirés.

Le job s'exécute toutes les CLEANUP_INTERVAL_MINUTES minutes.
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from autoshop.config import settings
from autoshop.database import SessionLocal

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def _purge_expired_scheduled() -> None:
    """
    Tâche planifiée : supprime les sessions expirées puis les tokens de
    réinitialisation expirés ou déjà utilisés.
    Import local pour éviter les imports circulaires.
    """
    from autoshop.services.password_reset_service import purge_expired_tokens
    from autoshop.services.session_service import purge_expired_sessions

    db = SessionLocal()
    try:
        sessions = purge_expired_sessions(db)
        tokens = purge_expired_tokens(db)
        logger.info(
            "Nettoyage : %d session(s) expirée(s), %d token(s) de réinitialisation supprimé(s)",
            sessions, tokens,
        )
    except Exception as exc:
        db.rollback()
        logger.error("Erreur lors du nettoyage des sessions et tokens expirés : %s", exc)
    finally:
        db.close()


def start_scheduler() -> None:
    """Démarre le planificateur en arrière-plan (appelé au démarrage de l'API)."""
    scheduler.add_job(
        _purge_expired_scheduled,
        trigger="interval",
        minutes=settings.CLEANUP_INTERVAL_MINUTES,
        id="purge_expired_sessions",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        "Scheduler démarré, nettoyage des sessions toutes les %d minutes.",
        settings.CLEANUP_INTERVAL_MINUTES,
    )


def stop_scheduler() -> None:
    """Arrête le planificateur proprement (appelé à l'arrêt de l'API)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler arrêté.")
