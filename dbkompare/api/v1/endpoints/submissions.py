# dbkompare/api/v1/endpoints/submissions.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from dbkompare.core.deps import get_group_certificate_service, get_submission_service
from dbkompare.schemas.submission import QuizSubmissionRequest
from dbkompare.services.certificate_service import GroupCertificateService
from dbkompare.services.submission_service import SubmissionService
from dbkompare.utils.responses import send_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", summary="Corrige un intento de quiz y emite el certificado si aprueba")
def create_quiz_submission(
    request: QuizSubmissionRequest,
    service: SubmissionService = Depends(get_submission_service),
):
    logger.info(f"POST /quiz-submissions - user={request.userId}, quiz={request.quizId}")
    result = service.submit(request.quizId, request.userId, request.answers)
    message = "Quiz passed, certificate issued" if result["passed"] else "Quiz submitted"
    return send_response(200, message, result)


@router.get("/group-certificate", summary="Emite (o devuelve) el certificado de un grupo")
def get_group_certificate(
    groupId: Optional[str] = Query(None, description="ID del grupo"),
    userId: Optional[str] = Query(None, description="ID del usuario"),
    service: GroupCertificateService = Depends(get_group_certificate_service),
):
    logger.info(f"GET /quiz-submissions/group-certificate - group={groupId}, user={userId}")
    result = service.issue(groupId, userId)
    message = "Group certificate already exists" if result["alreadyExists"] else "Group certificate generated successfully"
    return send_response(200, message, result)


@router.get("/{submission_id}", summary="Detalle de un intento")
def get_quiz_submission(
    submission_id: str,
    service: SubmissionService = Depends(get_submission_service),
):
    logger.info(f"GET /quiz-submissions/{submission_id}")
    return send_response(200, "Submission retrieved successfully", service.get_submission_details(submission_id))
