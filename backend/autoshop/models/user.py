"""
Modèle SQLAlchemy pour les utilisateurs (personnel de l'atelier et clients).
"""

import uuid
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from autoshop.database import Base

ROLES = ("user", "staff", "admin")


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'staff', 'admin')", name="ck_users_role"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user")  # user, staff, admin
    is_active = Column(Boolean, nullable=False, default=True)
    name = Column(String(200), nullable=True)
    profile_picture = Column(Text, nullable=True)

    # Adresse
    street = Column(String(255), nullable=True)
    barangay = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    province = Column(String(100), nullable=True)
    region = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
