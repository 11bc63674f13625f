# dbkompare/api/v1/endpoints/quizzes.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from dbkompare.core.deps import get_catalog_service, require_admin
from dbkompare.schemas.catalog import CreateQuestionsRequest
from dbkompare.services.catalog_service import CatalogService
from dbkompare.utils.responses import send_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", summary="Lista de quizzes")
def list_quizzes(
    status: str = Query("ACTIVE", description="Estado del quiz"),
    difficulty: Optional[str] = Query(None, description="Filtro por dificultad"),
    groupName: Optional[str] = Query(None, description="Filtro por grupo"),
    userId: Optional[str] = Query(None, description="Marca los quizzes ya realizados por el usuario"),
    service: CatalogService = Depends(get_catalog_service),
):
    logger.info(f"GET /quizzes - status={status}, difficulty={difficulty}, group={groupName}")
    quizzes = service.list_quizzes(status, difficulty, groupName, userId)
    return send_response(200, "Quizzes retrieved successfully", quizzes)


@router.get("/{quiz_id}", summary="Quiz con sus preguntas")
def get_quiz(
    quiz_id: str,
    service: CatalogService = Depends(get_catalog_service),
):
    logger.info(f"GET /quizzes/{quiz_id}")
    return send_response(200, "Quiz retrieved successfully", service.get_quiz(quiz_id))


@router.post("/questions", summary="Alta masiva de preguntas")
def create_quiz_questions(
    request: CreateQuestionsRequest,
    claims: dict = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    logger.info(f"POST /quizzes/questions - admin={claims.get('sub')}, quiz={request.quizId}")
    result = service.create_questions(request.questions, request.quizId)
    return send_response(200, "Questions created successfully", result)
