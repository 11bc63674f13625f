# dbkompare/models/user.py
from typing import Any, List, Optional

from pydantic import Field, field_validator

from dbkompare.models.base import DynamoRecord, number_or_none


class UserRole:
    ADMIN = "ADMIN"
    VENDOR = "VENDOR"


class UserStatus:
    ACTIVE = "ACTIVE"
    DELETION_REQUESTED = "DELETION_REQUESTED"


class User(DynamoRecord):
    id: str
    cognito_id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None
    certificate_credits: Optional[float] = None
    free_quiz_credits: Optional[float] = None
    unlocked_quiz_ids: List[str] = Field(default_factory=list)
    has_claimed_free_plan: bool = False
    stripe_customer_id: Optional[str] = None
    logged_at: Optional[str] = None
    transaction_ids: List[str] = Field(default_factory=list)

    @field_validator("certificate_credits", "free_quiz_credits", mode="before")
    @classmethod
    def coerce_credits(cls, v: Any) -> Any:
        return number_or_none(v)

    @field_validator("has_claimed_free_plan", mode="before")
    @classmethod
    def coerce_flag(cls, v: Any) -> bool:
        return v is True or v == "true"

    def free_quiz_balance(self, default: int) -> int:
        """Saldo de quizzes gratis; si nunca se inicializó vale `default`."""
        if self.free_quiz_credits is None:
            return default
        return int(self.free_quiz_credits)
