# dbkompare/schemas/account.py
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class DeleteAccountRequest(BaseModel):
    """
    Schema para la solicitud de borrado de cuenta.
    """
    email: EmailStr = Field(..., description="Correo electrónico de la cuenta")
    reason: str = Field(..., description="Motivo de la solicitud", min_length=1, max_length=2000)
    requestType: Literal["account_deletion"] = Field(..., description="Tipo de solicitud")
    additionalInfo: Optional[str] = Field(None, description="Información adicional", max_length=5000)

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("reason must not be blank")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "email": "jane.doe@example.com",
                "reason": "I no longer use the service",
                "requestType": "account_deletion",
            }
        }


class CreateAdminUserRequest(BaseModel):
    username: Optional[str] = Field(None, description="Nombre visible del administrador")
    email: Optional[EmailStr] = Field(None, description="Correo electrónico (también es el usuario de Cognito)")
    password: Optional[str] = Field(None, description="Contraseña definitiva", min_length=8)
