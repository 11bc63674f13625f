# dbkompare/services/user_service.py
"""
Alta y consulta de usuarios.

El alta normal llega desde el trigger PostConfirmation de Cognito; los
administradores se crean desde la API. En ambos casos el item de Users
empieza con los quizzes gratis por defecto y sin créditos de certificación.
"""
import html
import json
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from dbkompare.core.errors import ConditionFailedError, ConflictError, NotFoundError, ValidationError
from dbkompare.crud import crud_user
from dbkompare.db.dynamodb import DynamoDBStore
from dbkompare.models.user import User, UserRole, UserStatus
from dbkompare.services.achievement_service import AchievementTracker, to_iso
from dbkompare.services.credit_service import is_number
from dbkompare.utils.helpers import utc_now

logger = logging.getLogger(__name__)

POST_CONFIRMATION_SIGN_UP = "PostConfirmation_ConfirmSignUp"
GOOGLE_PROVIDER = "Google"


def new_user_html(name: str, email: str, role: str) -> str:
    return f"""
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <p>A new user has registered:</p>
        <ul>
            <li><strong>Name:</strong> {html.escape(name or '')}</li>
            <li><strong>Email:</strong> {html.escape(email or '')}</li>
            <li><strong>Role:</strong> {html.escape(role)}</li>
        </ul>
    </body>
    </html>
    """


def social_provider(user_attributes: Dict[str, Any]) -> Optional[str]:
    """Proveedor del primer login social (atributo `identities`, JSON en texto)."""
    identities = user_attributes.get("identities")
    if not identities:
        return None
    try:
        parsed = json.loads(identities) if isinstance(identities, str) else identities
    except ValueError:
        logger.warning("Unparseable identities attribute on Cognito event")
        return None
    if isinstance(parsed, list) and parsed and isinstance(parsed[0], dict):
        return parsed[0].get("providerName")
    return None


class UserService:

    def __init__(self, store: DynamoDBStore, directory, settings,
                 send_email: Callable[[str, str, str], bool], clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.directory = directory
        self.settings = settings
        self.send_email = send_email
        self.clock = clock

    def _group_for(self, role: str) -> str:
        return self.settings.ADMIN_GROUP if role == UserRole.ADMIN else self.settings.VENDOR_GROUP

    def _new_user(self, user_id: str, cognito_id: str, email: str, name: Optional[str], role: str) -> User:
        return User(
            id=user_id,
            cognito_id=cognito_id,
            email=email,
            name=name,
            role=role,
            status=UserStatus.ACTIVE,
            certificate_credits=0,
            free_quiz_credits=self.settings.DEFAULT_FREE_QUIZ_CREDITS,
            unlocked_quiz_ids=[],
            has_claimed_free_plan=False,
            logged_at=to_iso(self.clock()),
        )

    def _store_user(self, user: User) -> None:
        try:
            crud_user.create_user(self.store, user)
        except ConditionFailedError as e:
            raise ConflictError("User already exists") from e

    # ── Alta ──

    def handle_post_confirmation(self, event: Dict[str, Any]) -> Dict[str, Any]:
        """
        Trigger PostConfirmation de Cognito. Devuelve el evento sin cambios;
        cualquier otro triggerSource se ignora.
        """
        if event.get("triggerSource") != POST_CONFIRMATION_SIGN_UP:
            return event

        attributes = event.get("request", {}).get("userAttributes", {})
        cognito_id = attributes.get("sub")
        username = event.get("userName") or cognito_id
        role = attributes.get("custom:role") or UserRole.VENDOR
        extra_attributes: Dict[str, str] = {}
        if social_provider(attributes) == GOOGLE_PROVIDER:
            role = UserRole.VENDOR
            extra_attributes["email_verified"] = "true"

        user = self._new_user(str(uuid.uuid4()), cognito_id, attributes.get("email"), attributes.get("name"), role)
        self._store_user(user)

        group = self._group_for(role)
        self.directory.add_user_to_group(username, group)
        self.directory.update_user_attributes(
            username, {"custom:userId": user.id, "custom:role": role, **extra_attributes}
        )
        logger.info(f"User {user.id} provisioned for Cognito user {username} in group {group}")

        if not self.send_email(
            self.settings.ADMIN_EMAIL,
            f"New User Registered: {user.name or user.email}",
            new_user_html(user.name, user.email, role),
        ):
            logger.warning(f"Admin notification for new user {user.id} could not be sent")
        return event

    def create_admin_user(self, username: Optional[str], email: Optional[str],
                          password: Optional[str]) -> Dict[str, Any]:
        if not username or not email or not password:
            raise ValidationError("Missing required parameters")
        if not self.settings.COGNITO_USER_POOL_ID:
            raise ValidationError("Cognito user pool is not configured")

        user_id = str(uuid.uuid4())
        cognito_username = self.directory.create_user(email, {
            "email": email,
            "name": username,
            "email_verified": "true",
            "custom:role": UserRole.ADMIN,
            "custom:userId": user_id,
        })
        self.directory.set_password(email, password, permanent=True)
        self.directory.add_user_to_group(email, self.settings.ADMIN_GROUP)

        user = self._new_user(user_id, cognito_username, email, username, UserRole.ADMIN)
        self._store_user(user)
        logger.info(f"Admin user {user_id} created for {email}")
        return user.to_item()

    # ── Consulta ──

    def get_user_details(self, user_id: Optional[str]) -> Dict[str, Any]:
        """
        Item del usuario con los saldos normalizados y sus métricas de logros.
        """
        if not user_id:
            raise ValidationError("User id is required")
        item = self.store.get_item(self.store.tables.users, {"id": user_id})
        if item is None:
            raise NotFoundError(f"User with id {user_id} not found.")

        metrics = AchievementTracker(self.store, self.clock).get_metrics(user_id)
        free_credits = item.get("freeQuizCredits")
        unlocked = item.get("unlockedQuizIds")
        return {
            **item,
            "freeQuizCredits": free_credits if is_number(free_credits)
            else self.settings.DEFAULT_FREE_QUIZ_CREDITS,
            "unlockedQuizIds": unlocked if isinstance(unlocked, list) else [],
            "metrics": {"streak": metrics["streak"], "xp": metrics["xp"], "gems": metrics["gems"]},
        }
