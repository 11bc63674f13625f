# dbkompare/services/certificate_service.py
import logging
from datetime import datetime
from statistics import mean
from typing import Any, Callable, Dict, List, Optional

from dbkompare.core.errors import (
    ConditionFailedError,
    ConflictError,
    GroupIncompleteError,
    NotFoundError,
    ValidationError,
)
from dbkompare.crud import crud_certificate, crud_group, crud_submission, crud_user
from dbkompare.db.dynamodb import DynamoDBStore, Put
from dbkompare.models.catalog import Group
from dbkompare.models.certificate import Certificate, CertificateStatus
from dbkompare.models.quiz import Quiz
from dbkompare.models.user import User
from dbkompare.utils.helpers import (
    format_certificate_datetime,
    generate_certificate_id,
    to_millis,
    utc_now,
)
from dbkompare.utils.pdf_utils import (
    COLOR_PRIMARY,
    COLOR_TEXT,
    CertificateContent,
    Segment,
    render_certificate,
)

logger = logging.getLogger(__name__)

CERTIFICATES_PREFIX = "CERTIFICATES"


def certificate_key(certificate_id: str, user_id: str, suffix: str) -> str:
    return f"{CERTIFICATES_PREFIX}/{certificate_id}-{user_id}-{suffix}.pdf"


def is_eligible_for_credits(user: User, threshold: int) -> bool:
    return (user.certificate_credits or 0) > threshold


class CertificateIssuer:
    """
    Genera el PDF de un certificado a partir de la plantilla y lo sube a S3.
    """

    def __init__(self, settings, storage, clock: Callable[[], datetime] = utc_now):
        self.settings = settings
        self.storage = storage
        self.clock = clock

    def verify_url(self, certificate_id: str) -> str:
        return f"{self.settings.CERTIFICATE_VERIFY_BASE_URL.rstrip('/')}/{certificate_id}"

    def render_and_upload(self, certificate_id: str, recipient_name: str,
                          completion: List[Segment], key: str) -> str:
        template = self.storage.fetch_object(self.settings.BUCKET_NAME, self.settings.CERTIFICATE_TEMPLATE_KEY)
        pdf_bytes = render_certificate(template, CertificateContent(
            recipient_name=recipient_name,
            certificate_id=certificate_id,
            verify_url=self.verify_url(certificate_id),
            completion=completion,
        ))
        return self.storage.upload_object(
            self.settings.BUCKET_NAME, key, pdf_bytes, acl="private", content_type="application/pdf"
        )

    def issue_for_submission(self, user: User, quiz: Quiz, submission_id: str,
                             certificate_id: str, percentage_score: float,
                             issued_at: datetime) -> str:
        completion = (
            f"For successfully completing {quiz.name} with score of "
            f"{round(percentage_score)}% on {format_certificate_datetime(issued_at)}."
        )
        return self.render_and_upload(
            certificate_id,
            recipient_name(user),
            [(completion, COLOR_TEXT)],
            certificate_key(certificate_id, user.id, submission_id),
        )

    def issue_for_group(self, user: User, group: Group, certificate_id: str, issued_at: datetime) -> str:
        completion = [
            ("For successfully completing all quizzes in the", COLOR_TEXT),
            (group.name, COLOR_PRIMARY),
            (f"group on {format_certificate_datetime(issued_at)}.", COLOR_TEXT),
        ]
        return self.render_and_upload(
            certificate_id,
            recipient_name(user),
            completion,
            certificate_key(certificate_id, user.id, "group"),
        )


def recipient_name(user: User) -> str:
    return user.name or user.email or ""


class GroupCertificateService:
    """
    Certificado de grupo: exige haber aprobado todos los quizzes del grupo.
    Es idempotente por (usuario, grupo).
    """

    def __init__(self, store: DynamoDBStore, issuer: CertificateIssuer, settings,
                 clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.issuer = issuer
        self.settings = settings
        self.clock = clock

    def issue(self, group_id: Optional[str], user_id: Optional[str]) -> Dict[str, Any]:
        if not group_id or not user_id:
            raise ValidationError("Missing required parameters: groupId, userId")

        group = crud_group.get_group(self.store, group_id)
        if group is None:
            raise NotFoundError("Group not found")
        user = crud_user.get_user(self.store, user_id)
        if user is None:
            raise NotFoundError("User not found")

        group_quiz_ids = list(dict.fromkeys(group.quiz_ids))
        if not group_quiz_ids:
            raise ValidationError("Group has no quizzes")

        passing = [
            s for s in crud_submission.list_user_submissions(self.store, user_id)
            if s.passed and s.quiz_id in group_quiz_ids
        ]
        passed_ids = {s.quiz_id for s in passing}
        remaining = [qid for qid in group_quiz_ids if qid not in passed_ids]
        if remaining:
            raise GroupIncompleteError(
                f"You must pass all quizzes in this group. {len(remaining)} quiz(es) remaining.",
                data={
                    "totalQuizzes": len(group_quiz_ids),
                    "passedQuizzes": len(group_quiz_ids) - len(remaining),
                    "remainingQuizzes": len(remaining),
                },
            )

        existing = crud_certificate.find_active_certificate(self.store, user_id, group_id)
        if existing is not None:
            logger.info(f"Group certificate {existing.id} already issued to user {user_id}")
            crud_group.add_certificate_holder(self.store, group, user_id)
            return {"certificate": existing, "alreadyExists": True}

        issued_at = self.clock()
        certificate_id = generate_certificate_id()
        certificate_url = self.issuer.issue_for_group(user, group, certificate_id, issued_at)

        certificate = Certificate(
            id=certificate_id,
            subject_id=group_id,
            user_id=user_id,
            submission_id=None,
            issue_date=to_millis(issued_at),
            status=CertificateStatus.ACTIVE,
            meta_data={
                "averageScore": round(mean(s.percentage_score for s in passing)),
                "groupName": group.name,
                "totalQuizzes": len(group_quiz_ids),
                "passedQuizzes": len(passed_ids),
            },
            eligible_for_credits=is_eligible_for_credits(user, self.settings.CREDITS_ELIGIBILITY_THRESHOLD),
            certificate_url=certificate_url,
        )
        try:
            self.store.put(Put(table=self.store.tables.certificates, item=certificate.to_item(), unique_on="id"))
        except ConditionFailedError as e:
            raise ConflictError("Certificate id collision, please retry") from e

        crud_group.add_certificate_holder(self.store, group, user_id)
        logger.info(f"Group certificate {certificate_id} issued to user {user_id} for group {group_id}")
        return {"certificate": certificate, "alreadyExists": False}
