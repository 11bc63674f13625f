# dbkompare/schemas/payment.py
from typing import Any, Optional

from pydantic import BaseModel, Field


class PaymentIntentRequest(BaseModel):
    userId: Optional[str] = Field(None, description="ID del usuario")
    amount: Any = Field(None, description="Importe en la unidad mínima de la moneda (céntimos)")
    currency: Optional[str] = Field(None, description="Moneda ISO, por defecto eur")


class CertificationPlanPaymentRequest(BaseModel):
    """
    Compra de un plan de certificación con un método de pago de Stripe.
    """
    userId: Optional[str] = Field(None, description="ID del usuario")
    planId: Optional[str] = Field(None, description="ID del plan")
    paymentMethodId: Optional[str] = Field(None, description="PaymentMethod de Stripe (pm_...)")

    class Config:
        json_schema_extra = {
            "example": {
                "userId": "b7e1c2d3-4a5b-6c7d-8e9f-0a1b2c3d4e5f",
                "planId": "plan-starter",
                "paymentMethodId": "pm_card_visa",
            }
        }
