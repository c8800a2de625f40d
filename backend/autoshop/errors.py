"""
Erreurs métier exposées par l'API.

Chaque erreur porte un code stable (`error`) consommé par le front : par exemple
le client distingue EXPIRED_TOKEN des autres 401 pour afficher « session expirée ».
Le rendu JSON ({"message", "error", ...}) est fait par le handler de main.py.
"""

from typing import Any, Dict


class ApiError(Exception):
    """Erreur HTTP avec code stable et champs additionnels éventuels."""

    def __init__(self, status_code: int, error: str, message: str, **extra: Any):
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.message = message
        self.extra = extra

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "error": self.error, **self.extra}


# Authentification
NO_TOKEN = "NO_TOKEN"
INVALID_TOKEN = "INVALID_TOKEN"
EXPIRED_TOKEN = "EXPIRED_TOKEN"
INVALID_USER = "INVALID_USER"
NO_AUTH = "NO_AUTH"
INSUFFICIENT_ROLE = "INSUFFICIENT_ROLE"
INVALID_CREDENTIALS = "INVALID_CREDENTIALS"

# Ressources et validation
NOT_FOUND = "NOT_FOUND"
FORBIDDEN = "FORBIDDEN"
CURRENT_SESSION = "CURRENT_SESSION"
DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
MISSING_FIELDS = "MISSING_FIELDS"
WEAK_PASSWORD = "WEAK_PASSWORD"
CONFIRMATION_MISMATCH = "CONFIRMATION_MISMATCH"
NOT_IMPLEMENTED = "NOT_IMPLEMENTED"

# Erreurs inattendues côté base (500, sans détail interne)
AUTH_ERROR = "AUTH_ERROR"
LOGIN_ERROR = "LOGIN_ERROR"
RESET_ERROR = "RESET_ERROR"
PROFILE_ERROR = "PROFILE_ERROR"
SESSIONS_ERROR = "SESSIONS_ERROR"
EXPORT_ERROR = "EXPORT_ERROR"
ACCOUNT_ERROR = "ACCOUNT_ERROR"
USERS_ERROR = "USERS_ERROR"
STATS_ERROR = "STATS_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"
