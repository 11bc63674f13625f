# dbkompare/schemas/achievement.py
from typing import Any, Optional

from pydantic import BaseModel, Field


class AchievementEventRequest(BaseModel):
    userId: Optional[str] = Field(None, description="ID del usuario")
    eventType: Optional[str] = Field(None, description="LOGIN, XP o GEMS")
    delta: Any = Field(None, description="Cantidad positiva para XP y GEMS")
    reason: Optional[str] = Field(None, description="Motivo del evento")

    class Config:
        json_schema_extra = {
            "example": {"userId": "b7e1c2d3-4a5b-6c7d-8e9f-0a1b2c3d4e5f", "eventType": "XP", "delta": 25}
        }


class AwardXPRequest(BaseModel):
    userId: Optional[str] = Field(None, description="ID del usuario")
    xpAmount: Any = Field(None, description="XP a otorgar")
    reason: Optional[str] = Field(None, description="Motivo")
