# dbkompare/api/v1/endpoints/users.py
import logging

from fastapi import APIRouter, Depends

from dbkompare.core.deps import get_account_service, get_credit_ledger, get_user_service, require_admin
from dbkompare.schemas.account import CreateAdminUserRequest, DeleteAccountRequest
from dbkompare.schemas.credits import FreeQuizCreditsRequest, PlanClaimRequest
from dbkompare.services.account_service import AccountService
from dbkompare.services.credit_service import CreditLedger
from dbkompare.services.user_service import UserService
from dbkompare.utils.responses import send_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/free-quiz-credits", summary="Suma o consume quizzes gratis")
def adjust_free_quiz_credits(
    request: FreeQuizCreditsRequest,
    ledger: CreditLedger = Depends(get_credit_ledger),
):
    logger.info(f"POST /users/free-quiz-credits - user={request.userId}, delta={request.delta}")
    result = ledger.adjust_free_quiz_credits(request.userId, request.delta, request.quizId)
    return send_response(200, "Free quiz credits updated successfully", result)


@router.post("/free-plan", summary="Reclama el plan gratuito (una sola vez)")
def consume_free_plan(
    request: PlanClaimRequest,
    ledger: CreditLedger = Depends(get_credit_ledger),
):
    logger.info(f"POST /users/free-plan - user={request.userId}, plan={request.planId}")
    result = ledger.consume_free_plan(request.userId, request.planId)
    return send_response(200, "Free plan claimed successfully", result)


@router.post("/delete-request", summary="Solicitud de borrado de cuenta")
def request_account_deletion(
    request: DeleteAccountRequest,
    service: AccountService = Depends(get_account_service),
):
    logger.info(f"POST /users/delete-request - email={request.email}")
    result = service.request_deletion(request.email, request.reason, request.additionalInfo)
    return send_response(200, "Account deletion request received", result)


@router.post("/admin", summary="Alta de un administrador en Cognito y en Users")
def create_admin_user(
    request: CreateAdminUserRequest,
    claims: dict = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    logger.info(f"POST /users/admin - admin={claims.get('sub')}, email={request.email}")
    result = service.create_admin_user(request.username, request.email, request.password)
    return send_response(200, "Admin Created Successfully", result)


@router.get("/{user_id}", summary="Usuario con saldos y métricas de logros")
def get_user_by_id(
    user_id: str,
    service: UserService = Depends(get_user_service),
):
    logger.info(f"GET /users/{user_id}")
    return send_response(200, "User details with achievement metrics", service.get_user_details(user_id))
