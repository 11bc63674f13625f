# dbkompare/services/submission_service.py
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from dbkompare.core.errors import ConditionFailedError, ConflictError, NotFoundError, ValidationError
from dbkompare.crud import crud_certificate, crud_quiz, crud_submission, crud_user
from dbkompare.db.dynamodb import DynamoDBStore, Put, Update
from dbkompare.models.certificate import Certificate, CertificateStatus
from dbkompare.models.quiz import Answer, Submission, SubmissionStatus
from dbkompare.services.certificate_service import CertificateIssuer, is_eligible_for_credits
from dbkompare.services.scoring import score_submission
from dbkompare.utils.helpers import generate_certificate_id, to_millis, utc_now

logger = logging.getLogger(__name__)


class SubmissionService:
    """
    Corrige un intento, emite el certificado si aprueba y registra
    submission + certificado + crédito en una sola transacción.
    """

    def __init__(self, store: DynamoDBStore, issuer: CertificateIssuer, settings,
                 clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.issuer = issuer
        self.settings = settings
        self.clock = clock

    def submit(self, quiz_id: Optional[str], user_id: Optional[str],
               answers: Optional[List[Any]]) -> Dict[str, Any]:
        if not quiz_id or not user_id or answers is None:
            raise ValidationError("Missing required fields: quizId, userId, answers")
        if not isinstance(answers, list) or not answers:
            raise ValidationError("Answers must be a non-empty array")
        try:
            parsed_answers = [a if isinstance(a, Answer) else Answer.model_validate(a) for a in answers]
        except PydanticValidationError as e:
            raise ValidationError("Each answer needs questionId and selectedOptionIds") from e

        # Quiz y usuario se leen en paralelo
        with ThreadPoolExecutor(max_workers=2) as pool:
            quiz_future = pool.submit(crud_quiz.get_quiz_with_questions, self.store, quiz_id)
            user_future = pool.submit(crud_user.get_user, self.store, user_id)
            quiz = quiz_future.result()
            user = user_future.result()

        if quiz is None:
            raise NotFoundError("Quiz not found")
        if user is None:
            raise NotFoundError("User not found")

        score = score_submission(quiz, parsed_answers)
        submitted_at = self.clock()
        submission_id = str(uuid.uuid4())
        certificate_id = generate_certificate_id() if score.passed else None

        submission = Submission(
            id=submission_id,
            quiz_id=quiz_id,
            user_id=user_id,
            created_at=to_millis(submitted_at),
            answers=parsed_answers,
            correct_count=score.correct_count,
            total_questions=score.total_questions,
            total_score=score.total_score,
            percentage_score=score.percentage_score,
            passing_percentage=score.passing_percentage,
            status=SubmissionStatus.PASSED if score.passed else SubmissionStatus.FAILED,
            certificate_id=certificate_id,
            quiz_details=quiz.details(),
        )
        operations = [Put(table=self.store.tables.submissions, item=submission.to_item(), unique_on="id")]

        eligible = is_eligible_for_credits(user, self.settings.CREDITS_ELIGIBILITY_THRESHOLD)
        certificate_url = None
        if score.passed:
            certificate_url = self.issuer.issue_for_submission(
                user, quiz, submission_id, certificate_id, score.percentage_score, submitted_at
            )
            certificate = Certificate(
                id=certificate_id,
                subject_id=quiz_id,
                user_id=user_id,
                submission_id=submission_id,
                issue_date=to_millis(submitted_at),
                status=CertificateStatus.ACTIVE,
                meta_data={"score": score.percentage_score, "quizName": quiz.name},
                eligible_for_credits=eligible,
                certificate_url=certificate_url,
            )
            operations.append(Put(table=self.store.tables.certificates, item=certificate.to_item(), unique_on="id"))
            operations.append(Update(
                table=self.store.tables.users,
                key={"id": user_id},
                increment={"certificateCredits": 1},
                require_exists="id",
            ))

        try:
            self.store.transact_write(operations)
        except ConditionFailedError as e:
            logger.error(f"Submission transaction rejected for user {user_id}, quiz {quiz_id}: {e.message}")
            raise ConflictError("Submission could not be recorded, please retry") from e

        logger.info(
            f"Submission {submission_id} recorded: user={user_id} quiz={quiz_id} "
            f"score={score.percentage_score:.2f}% status={submission.status}"
        )
        return {
            "submissionId": submission_id,
            "correctCount": score.correct_count,
            "totalQuestions": score.total_questions,
            "percentageScore": round(score.percentage_score),
            "passed": score.passed,
            "passingPercentage": score.passing_percentage,
            "eligibleForCredits": eligible,
            "certificateUrl": certificate_url,
            "certificateId": certificate_id,
        }

    def get_submission_details(self, submission_id: str) -> Dict[str, Any]:
        """
        Submission con los detalles del quiz y la elegibilidad de su certificado.
        """
        submission = crud_submission.get_submission(self.store, submission_id)
        if submission is None:
            raise NotFoundError("Submission not found")

        details = submission.to_item()
        quiz = crud_quiz.get_quiz_with_questions(self.store, submission.quiz_id)
        if quiz is not None:
            details["quizDetails"] = {
                **quiz.details(),
                "questions": [q.to_item() for q in quiz.questions],
            }

        eligible = False
        if submission.certificate_id:
            certificate = crud_certificate.get_certificate(self.store, submission.certificate_id)
            eligible = bool(certificate and certificate.eligible_for_credits)
        details["eligibleForCredits"] = eligible
        return details
