"""
Schémas Pydantic pour la liste des sessions actives.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class SessionResponse(BaseModel):
    """Une session active ; le token associé n'est jamais renvoyé au client."""
    id: uuid.UUID
    device: str
    browser: str
    ip_address: str
    location: Optional[str] = None
    last_activity: datetime
    created_at: datetime
    expires_at: datetime
    is_current: bool = False

    model_config = {"from_attributes": True}


class SessionListResponse(BaseModel):
    message: str
    sessions: List[SessionResponse]
    total: int


class SessionsTerminated(BaseModel):
    message: str
    terminated_count: int
