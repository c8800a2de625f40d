"""
Tests de la tâche planifiée de nettoyage.
"""

from unittest.mock import MagicMock, patch

from sqlalchemy.exc import OperationalError

from autoshop.scheduler import _purge_expired_scheduled


def test_purge_planifiee_sessions_et_tokens():
    db = MagicMock()
    db.execute.return_value.rowcount = 1

    with patch("autoshop.scheduler.SessionLocal", return_value=db):
        _purge_expired_scheduled()

    assert db.execute.call_count == 2
    assert db.commit.call_count == 2
    db.close.assert_called_once()


def test_purge_planifiee_erreur_journalisee():
    db = MagicMock()
    db.execute.side_effect = OperationalError("DELETE", {}, Exception("base indisponible"))

    with patch("autoshop.scheduler.SessionLocal", return_value=db):
        _purge_expired_scheduled()

    db.rollback.assert_called_once()
    db.close.assert_called_once()
