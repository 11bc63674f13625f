# dbkompare/models/certificate.py
from typing import Any, Dict, Optional

from pydantic import Field

from dbkompare.models.base import DynamoRecord


class CertificateStatus:
    ACTIVE = "ACTIVE"
    REVOKED = "REVOKED"


class Certificate(DynamoRecord):
    id: str
    subject_id: str
    user_id: str
    submission_id: Optional[str] = None
    issue_date: int
    status: str = CertificateStatus.ACTIVE
    meta_data: Dict[str, Any] = Field(default_factory=dict)
    eligible_for_credits: bool = False
    certificate_url: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == CertificateStatus.ACTIVE
