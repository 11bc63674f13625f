# dbkompare/models/catalog.py
from typing import Any, List, Optional

from pydantic import Field, field_validator

from dbkompare.models.base import DynamoRecord, number_or_none


class PlanStatus:
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class CertificationPlan(DynamoRecord):
    id: str
    name: str = ""
    badge: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    certifications_unlocked: Optional[float] = None
    features: List[str] = Field(default_factory=list)
    status: str = PlanStatus.ACTIVE
    created_at: Optional[int] = None
    updated_at: Optional[int] = None

    @field_validator("price", "certifications_unlocked", mode="before")
    @classmethod
    def coerce_numbers(cls, v: Any) -> Any:
        return number_or_none(v)

    @property
    def is_free(self) -> bool:
        return self.price == 0

    @property
    def credits(self) -> int:
        return int(self.certifications_unlocked or 0)


class Group(DynamoRecord):
    id: str
    name: str = ""
    description: Optional[str] = None
    quiz_ids: List[str] = Field(default_factory=list)
    certificate_taken_by: List[str] = Field(default_factory=list)
    status: Optional[str] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
