# dbkompare/schemas/credits.py
from typing import Any, Optional

from pydantic import BaseModel, Field


class FreeQuizCreditsRequest(BaseModel):
    """
    Ajuste del saldo de quizzes gratis. delta < 0 consume y exige quizId.
    """
    userId: Optional[str] = Field(None, description="ID del usuario")
    delta: Any = Field(None, description="Cantidad a sumar (positiva) o consumir (negativa)")
    quizId: Optional[str] = Field(None, description="Quiz desbloqueado al consumir")

    class Config:
        json_schema_extra = {
            "example": {"userId": "b7e1c2d3-4a5b-6c7d-8e9f-0a1b2c3d4e5f", "delta": -1, "quizId": "q-42"}
        }


class PlanClaimRequest(BaseModel):
    userId: Optional[str] = Field(None, description="ID del usuario")
    planId: Optional[str] = Field(None, description="ID del plan de certificación")


class InAppPurchaseRequest(BaseModel):
    userId: Optional[str] = Field(None, description="ID del usuario")
    planId: Optional[str] = Field(None, description="ID del plan comprado")
    transactionId: Optional[str] = Field(None, description="ID de la transacción de la tienda")
