# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.
# user.py doit précéder session.py (FK user_sessions.user_id → users.id).

from autoshop.models.user import User  # noqa: F401  (doit précéder session)
from autoshop.models.session import UserSession  # noqa: F401
from autoshop.models.password_reset import PasswordResetToken  # noqa: F401
