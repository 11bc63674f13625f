# dbkompare/api/v1/endpoints/payments.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.concurrency import run_in_threadpool

from dbkompare.core.deps import get_credit_ledger, get_payment_service
from dbkompare.schemas.credits import InAppPurchaseRequest, PlanClaimRequest
from dbkompare.schemas.payment import CertificationPlanPaymentRequest, PaymentIntentRequest
from dbkompare.services.credit_service import CreditLedger
from dbkompare.services.payment_service import PaymentService
from dbkompare.utils.responses import send_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/intent", summary="Crea un PaymentIntent de Stripe")
def create_payment_intent(
    request: PaymentIntentRequest,
    service: PaymentService = Depends(get_payment_service),
):
    logger.info(f"POST /payments/intent - user={request.userId}, amount={request.amount}")
    result = service.create_payment_intent(request.userId, request.amount, request.currency)
    return send_response(200, "Payment intent created successfully", result)


@router.post("/certification-plan", summary="Compra un plan de certificación")
def purchase_certification_plan(
    request: CertificationPlanPaymentRequest,
    service: PaymentService = Depends(get_payment_service),
):
    logger.info(f"POST /payments/certification-plan - user={request.userId}, plan={request.planId}")
    result = service.purchase_certification_plan(request.userId, request.paymentMethodId, request.planId)
    if result.get("requiresAction"):
        return send_response(200, "Payment requires authentication", result)
    return send_response(200, "Certification plan purchased successfully", result)


@router.post("/plan-credits", summary="Abona los quizzes gratis de un plan comprado")
def update_user_credits_from_plan(
    request: PlanClaimRequest,
    ledger: CreditLedger = Depends(get_credit_ledger),
):
    logger.info(f"POST /payments/plan-credits - user={request.userId}, plan={request.planId}")
    result = ledger.grant_plan_credits(request.userId, request.planId)
    return send_response(200, "User credits updated successfully", result)


@router.post("/in-app-purchase", summary="Abona una compra in-app (idempotente por transactionId)")
def update_user_credits_from_in_app_purchase(
    request: InAppPurchaseRequest,
    ledger: CreditLedger = Depends(get_credit_ledger),
):
    logger.info(f"POST /payments/in-app-purchase - user={request.userId}, tx={request.transactionId}")
    result = ledger.grant_in_app_purchase(request.userId, request.planId, request.transactionId)
    if result["duplicate"]:
        return send_response(200, "Duplicate transactionId ignored", result)
    return send_response(200, "User credits updated successfully", result)


@router.post("/webhook", summary="Webhook de Stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    service: PaymentService = Depends(get_payment_service),
):
    payload = await request.body()
    logger.info("POST /payments/webhook")
    result = await run_in_threadpool(service.handle_webhook, payload, stripe_signature)
    return send_response(200, "Webhook processed", result)
