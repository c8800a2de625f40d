"""
Modèle SQLAlchemy pour les sessions actives (une ligne par connexion).
Le token brut n'est jamais stocké : seule son empreinte SHA-256 l'est.
"""

import uuid
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import UUID

from autoshop.database import Base


class UserSession(Base):
    __tablename__ = "user_sessions"
    __table_args__ = (
        CheckConstraint("expires_at > created_at", name="ck_user_sessions_expiry"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), unique=True, nullable=False)
    device = Column(String(100), nullable=False, default="Unknown Device")
    browser = Column(String(100), nullable=False, default="Unknown Browser")
    ip_address = Column(String(64), nullable=False, default="Unknown")
    location = Column(String(255), nullable=True)
    last_activity = Column(DateTime, nullable=False, server_default=func.now())
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    expires_at = Column(DateTime, nullable=False)
