# dbkompare/services/payment_service.py
"""
Pagos con Stripe: PaymentIntents para planes de certificación y webhook.

Los créditos de un pago se aplican con el id del PaymentIntent como clave
de idempotencia, así la confirmación síncrona y el webhook pueden llegar
ambos sin duplicar créditos.
"""
import json
from typing import Any, Dict, Optional

import stripe

from dbkompare.core.errors import NotFoundError, UpstreamError, ValidationError
from dbkompare.core.logging_config import get_service_logger
from dbkompare.crud import crud_plan, crud_user
from dbkompare.db.dynamodb import DynamoDBStore
from dbkompare.models.user import User
from dbkompare.services.credit_service import CreditLedger, is_number

logger = get_service_logger(__name__, "stripe")

INTENT_SUCCEEDED = "succeeded"
EVENT_PAYMENT_SUCCEEDED = "payment_intent.succeeded"
EVENT_PAYMENT_FAILED = "payment_intent.payment_failed"


class StripeGateway:
    """
    Envoltorio mínimo de la API de Stripe usada por las funciones.
    """

    def __init__(self, api_key: str, webhook_secret: str = ""):
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def create_customer(self, email: Optional[str], name: Optional[str], user_id: str) -> str:
        customer = stripe.Customer.create(
            api_key=self.api_key,
            email=email,
            name=name,
            metadata={"userId": user_id},
        )
        return customer["id"]

    def create_payment_intent(self, **params) -> Dict[str, Any]:
        return stripe.PaymentIntent.create(api_key=self.api_key, **params)

    def confirm_payment_intent(self, intent_id: str, payment_method: str) -> Dict[str, Any]:
        return stripe.PaymentIntent.confirm(intent_id, api_key=self.api_key, payment_method=payment_method)

    def construct_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """
        Verifica la firma del webhook y devuelve el evento como dict plano.
        Los StripeObject de versiones recientes del SDK no son dicts.
        """
        if hasattr(payload, "decode"):
            payload = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(
            payload, signature, self.webhook_secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
        )
        return json.loads(payload)


class PaymentService:

    def __init__(self, store: DynamoDBStore, gateway: StripeGateway, ledger: CreditLedger, settings):
        self.store = store
        self.gateway = gateway
        self.ledger = ledger
        self.settings = settings

    def _require_user(self, user_id: str) -> User:
        user = crud_user.get_user(self.store, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _ensure_customer(self, user: User) -> str:
        """Crea el cliente de Stripe la primera vez y guarda su id."""
        if user.stripe_customer_id:
            return user.stripe_customer_id
        try:
            customer_id = self.gateway.create_customer(user.email, user.name, user.id)
        except stripe.StripeError as e:
            logger.error(f"Stripe customer creation failed for user {user.id}: {str(e)}")
            raise UpstreamError("Payment provider error") from e
        crud_user.update_user(self.store, user.id, assign={"stripeCustomerId": customer_id})
        logger.info(f"Created Stripe customer {customer_id} for user {user.id}")
        return customer_id

    def create_payment_intent(self, user_id: Optional[str], amount: Any,
                              currency: Optional[str] = None) -> Dict[str, Any]:
        if not user_id:
            raise ValidationError("userId is required")
        if not is_number(amount) or amount <= 0:
            raise ValidationError("amount must be a positive number")

        user = self._require_user(user_id)
        customer_id = self._ensure_customer(user)
        try:
            intent = self.gateway.create_payment_intent(
                amount=int(round(amount)),
                currency=(currency or self.settings.PAYMENT_CURRENCY).lower(),
                customer=customer_id,
                automatic_payment_methods={"enabled": True},
                metadata={"userId": user_id},
            )
        except stripe.StripeError as e:
            logger.error(f"PaymentIntent creation failed for user {user_id}: {str(e)}")
            raise UpstreamError("Payment provider error") from e
        return {"free": False, "clientSecret": intent["client_secret"]}

    def purchase_certification_plan(self, user_id: Optional[str], payment_method_id: Optional[str],
                                    plan_id: Optional[str]) -> Dict[str, Any]:
        """
        Compra de un plan de certificación. Los planes gratuitos no pasan por
        Stripe; los de pago se confirman en el acto y, si el banco exige 3-D
        Secure, se devuelve el client secret para completarlo en el cliente.
        """
        if not user_id or not plan_id:
            raise ValidationError("userId and planId are required")

        user = self._require_user(user_id)
        plan = crud_plan.get_plan(self.store, plan_id)
        if plan is None:
            raise NotFoundError("Certification plan not found")

        if plan.is_free:
            result = self.ledger.add_certificate_credits(user_id, plan.credits)
            return {"free": True, "status": INTENT_SUCCEEDED, **result}

        if not payment_method_id:
            raise ValidationError("paymentMethodId is required for paid plans")

        customer_id = self._ensure_customer(user)
        try:
            intent = self.gateway.create_payment_intent(
                amount=int(round((plan.price or 0) * 100)),
                currency=self.settings.PAYMENT_CURRENCY,
                customer=customer_id,
                payment_method=payment_method_id,
                automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
                metadata={
                    "userId": user_id,
                    "planId": plan_id,
                    "certificationsUnlocked": str(plan.credits),
                },
            )
            confirmed = self.gateway.confirm_payment_intent(intent["id"], payment_method_id)
        except stripe.StripeError as e:
            logger.error(f"Payment for plan {plan_id} failed for user {user_id}: {str(e)}")
            raise UpstreamError("Payment provider error") from e

        if confirmed["status"] == INTENT_SUCCEEDED:
            result = self.ledger.add_certificate_credits(user_id, plan.credits, payment_id=confirmed["id"])
            logger.info(f"Plan {plan_id} purchased by user {user_id} (intent {confirmed['id']})")
            return {"free": False, "status": INTENT_SUCCEEDED, "paymentIntentId": confirmed["id"], **result}

        logger.info(f"Payment intent {confirmed['id']} requires action: {confirmed['status']}")
        return {
            "free": False,
            "status": confirmed["status"],
            "requiresAction": True,
            "paymentIntentId": confirmed["id"],
            "clientSecret": confirmed["client_secret"],
        }

    def handle_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        if not signature:
            raise ValidationError("Missing Stripe signature")
        try:
            event = self.gateway.construct_event(payload, signature)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning(f"Rejected Stripe webhook: {str(e)}")
            raise ValidationError("Invalid webhook payload or signature") from e

        event_type = event["type"]
        intent = event["data"]["object"]
        metadata = intent.get("metadata") or {}

        if event_type == EVENT_PAYMENT_SUCCEEDED:
            user_id = metadata.get("userId")
            credits = int(metadata.get("certificationsUnlocked") or 0)
            if not user_id or credits <= 0:
                logger.info(f"Payment {intent['id']} succeeded without plan metadata, nothing to apply")
                return {"received": True, "type": event_type}
            result = self.ledger.add_certificate_credits(user_id, credits, payment_id=intent["id"])
            return {"received": True, "type": event_type, **result}

        if event_type == EVENT_PAYMENT_FAILED:
            error = intent.get("last_payment_error") or {}
            logger.warning(
                f"Payment {intent['id']} failed for user {metadata.get('userId')}: {error.get('message')}"
            )
            return {"received": True, "type": event_type}

        logger.info(f"Unhandled Stripe event type {event_type}")
        return {"received": True, "type": event_type}
