"""
Schémas Pydantic pour le profil, l'export des données et la suppression du compte.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from autoshop.schemas.auth import UserPublic
from autoshop.schemas.session import SessionResponse


class ProfileUpdate(BaseModel):
    """Tous les champs sont optionnels ; seuls les champs fournis sont modifiés."""
    name: Optional[str] = Field(default=None, max_length=200)
    email: Optional[EmailStr] = None
    profile_picture: Optional[str] = None
    street: Optional[str] = Field(default=None, max_length=255)
    barangay: Optional[str] = Field(default=None, max_length=100)
    city: Optional[str] = Field(default=None, max_length=100)
    province: Optional[str] = Field(default=None, max_length=100)
    region: Optional[str] = Field(default=None, max_length=100)
    country: Optional[str] = Field(default=None, max_length=100)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v is not None else v


class ProfileResponse(BaseModel):
    message: str
    user: UserPublic


class AccountDeleteRequest(BaseModel):
    password: Optional[str] = None
    confirmation_word: Optional[str] = None
    provided_word: Optional[str] = None


class ExportProfile(BaseModel):
    id: uuid.UUID
    email: str
    name: Optional[str] = None
    role: str
    profile_picture: Optional[str] = None


class ExportAddress(BaseModel):
    street: Optional[str] = None
    barangay: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None


class ExportMetadata(BaseModel):
    export_date: datetime
    account_created: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    total_active_sessions: int


class UserDataExport(BaseModel):
    """Bundle consommé par les exports JSON/PDF du front."""
    profile: ExportProfile
    address: ExportAddress
    sessions: List[SessionResponse]
    metadata: ExportMetadata


class UserSummary(BaseModel):
    id: uuid.UUID
    email: str
    name: Optional[str] = None
    role: str
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UserListResponse(BaseModel):
    message: str
    users: List[UserSummary]
    total: int


class DashboardStats(BaseModel):
    total_users: int
    active_users: int
    inactive_users: int
    current_user: UserSummary


class DashboardStatsResponse(BaseModel):
    message: str
    stats: DashboardStats
