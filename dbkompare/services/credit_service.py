# dbkompare/services/credit_service.py
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from dbkompare.core.errors import ConditionFailedError, ConflictError, NotFoundError, ValidationError
from dbkompare.crud import crud_plan, crud_user
from dbkompare.db.dynamodb import DynamoDBStore
from dbkompare.models.catalog import CertificationPlan
from dbkompare.models.user import User
from dbkompare.utils.helpers import to_millis, utc_now

logger = logging.getLogger(__name__)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class CreditLedger:
    """
    Saldo de quizzes gratis (freeQuizCredits) y créditos de certificación
    (certificateCredits) de cada usuario.
    """

    def __init__(self, store: DynamoDBStore, settings, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.settings = settings
        self.clock = clock

    # ── Helpers ──

    def _require_user(self, user_id: str) -> User:
        user = crud_user.get_user(self.store, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _require_plan(self, plan_id: str) -> CertificationPlan:
        plan = crud_plan.get_plan(self.store, plan_id)
        if plan is None:
            raise NotFoundError("Certification plan not found")
        return plan

    def _balance(self, user: User) -> int:
        return user.free_quiz_balance(self.settings.DEFAULT_FREE_QUIZ_CREDITS)

    def _now(self) -> int:
        return to_millis(self.clock())

    # ── Quizzes gratis ──

    def adjust_free_quiz_credits(self, user_id: Optional[str], delta: Any,
                                 quiz_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Suma o resta quizzes gratis. Un consumo (delta < 0) debe indicar
        qué quiz se desbloquea y el saldo nunca queda negativo.
        """
        if not user_id:
            raise ValidationError("userId is required")
        if not is_number(delta):
            raise ValidationError("delta must be a number")

        user = self._require_user(user_id)
        new_balance = self._balance(user) + delta
        if new_balance < 0:
            raise ValidationError("Insufficient free quiz credits to apply this change")
        if delta < 0 and not quiz_id:
            raise ValidationError("quizId is required when consuming a free quiz credit")

        changes: Dict[str, Any] = {
            "assign": {"freeQuizCredits": new_balance, "updatedAt": self._now()},
            "require_equals": ("freeQuizCredits", user.free_quiz_credits),
        }
        if delta < 0:
            changes["append"] = {"unlockedQuizIds": [quiz_id]}
        else:
            changes["set_if_missing"] = {"unlockedQuizIds": []}

        try:
            updated = crud_user.update_user(self.store, user_id, **changes)
        except ConditionFailedError as e:
            logger.warning(f"Free quiz credits for user {user_id} changed concurrently, update rejected")
            raise ConflictError("Free quiz credits changed while updating, please retry") from e
        logger.info(f"Free quiz credits for user {user_id}: {self._balance(user)} -> {new_balance}")
        return {
            "userId": user_id,
            "freeQuizCredits": updated.free_quiz_credits,
            "unlockedQuizIds": updated.unlocked_quiz_ids,
        }

    def consume_free_plan(self, user_id: Optional[str], plan_id: Optional[str]) -> Dict[str, Any]:
        """
        El plan gratuito se puede reclamar una sola vez por usuario.
        """
        if not user_id or not plan_id:
            raise ValidationError("userId and planId are required")

        user = self._require_user(user_id)
        if user.has_claimed_free_plan:
            raise ConflictError("Free plan has already been claimed. You can only claim it once.")

        plan = self._require_plan(plan_id)
        if not plan.is_free:
            raise ValidationError("This is not a free plan. Please use the payment flow for paid plans.")
        if plan.credits <= 0:
            raise ValidationError("This plan does not unlock any certifications")

        new_balance = self._balance(user) + plan.credits
        try:
            updated = crud_user.update_user(
                self.store,
                user_id,
                assign={"freeQuizCredits": new_balance, "hasClaimedFreePlan": True, "updatedAt": self._now()},
                require_not_true="hasClaimedFreePlan",
            )
        except ConditionFailedError as e:
            raise ConflictError("Free plan has already been claimed. You can only claim it once.") from e

        logger.info(f"User {user_id} claimed free plan {plan_id}: +{plan.credits} free quiz credits")
        return {
            "userId": user_id,
            "planId": plan_id,
            "creditsAdded": plan.credits,
            "freeQuizCredits": updated.free_quiz_credits,
            "hasClaimedFreePlan": True,
        }

    def grant_plan_credits(self, user_id: Optional[str], plan_id: Optional[str]) -> Dict[str, Any]:
        """
        Compra de plan confirmada por la plataforma: suma quizzes gratis.
        """
        if not user_id or not plan_id:
            raise ValidationError("userId and planId are required")
        user = self._require_user(user_id)
        plan = self._require_plan(plan_id)

        new_balance = self._balance(user) + plan.credits
        updated = crud_user.update_user(
            self.store,
            user_id,
            assign={"freeQuizCredits": new_balance, "updatedAt": self._now()},
        )
        logger.info(f"Granted {plan.credits} free quiz credits to user {user_id} from plan {plan_id}")
        return {"userId": user_id, "creditsAdded": plan.credits, "freeQuizCredits": updated.free_quiz_credits}

    def grant_in_app_purchase(self, user_id: Optional[str], plan_id: Optional[str],
                              transaction_id: Optional[str]) -> Dict[str, Any]:
        """
        Igual que grant_plan_credits pero idempotente por transactionId:
        una transacción repetida no suma créditos.
        """
        if not user_id or not plan_id or not transaction_id:
            raise ValidationError("userId, planId and transactionId are required")
        user = self._require_user(user_id)
        plan = self._require_plan(plan_id)

        duplicate = {"userId": user_id, "transactionId": transaction_id, "creditsAdded": 0}
        if transaction_id in user.transaction_ids:
            logger.info(f"Duplicate in-app transaction {transaction_id} for user {user_id} ignored")
            return {"duplicate": True, **duplicate}

        try:
            updated = crud_user.update_user(
                self.store,
                user_id,
                assign={"freeQuizCredits": self._balance(user) + plan.credits, "updatedAt": self._now()},
                append={"transactionIds": [transaction_id]},
                exclude_from_list=("transactionIds", transaction_id),
            )
        except ConditionFailedError:
            logger.info(f"Duplicate in-app transaction {transaction_id} for user {user_id} ignored")
            return {"duplicate": True, **duplicate}

        logger.info(f"In-app purchase {transaction_id}: +{plan.credits} free quiz credits for user {user_id}")
        return {
            "duplicate": False,
            "userId": user_id,
            "transactionId": transaction_id,
            "creditsAdded": plan.credits,
            "freeQuizCredits": updated.free_quiz_credits,
        }

    # ── Créditos de certificación ──

    def add_certificate_credits(self, user_id: str, amount: int,
                                payment_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Suma créditos de certificación. Con `payment_id` la operación es
        idempotente: el mismo pago sólo se aplica una vez.
        """
        changes: Dict[str, Any] = {
            "increment": {"certificateCredits": amount},
            "assign": {"updatedAt": self._now()},
        }
        if payment_id:
            changes["append"] = {"processedPaymentIds": [payment_id]}
            changes["exclude_from_list"] = ("processedPaymentIds", payment_id)

        try:
            updated = crud_user.update_user(self.store, user_id, **changes)
        except ConditionFailedError:
            if crud_user.get_user(self.store, user_id) is None:
                raise NotFoundError("User not found")
            logger.info(f"Payment {payment_id} already applied to user {user_id}")
            return {"userId": user_id, "creditsAdded": 0, "alreadyApplied": True}

        logger.info(f"Added {amount} certificate credits to user {user_id} (payment={payment_id})")
        return {
            "userId": user_id,
            "creditsAdded": amount,
            "certificateCredits": updated.certificate_credits,
            "alreadyApplied": False,
        }
