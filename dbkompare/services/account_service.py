# dbkompare/services/account_service.py
import html
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from dbkompare.core.errors import NotFoundError
from dbkompare.crud import crud_user
from dbkompare.db.dynamodb import DynamoDBStore
from dbkompare.models.user import UserStatus
from dbkompare.utils.helpers import to_millis, utc_now

logger = logging.getLogger(__name__)


def user_confirmation_html(name: str, support_email: str) -> str:
    return f"""
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <h2 style="color: #213197;">Account deletion request received</h2>
        <p>Hello {html.escape(name)},</p>
        <p>We have received your request to delete your DBKompare account.
        Our team will process it and confirm by email once your data has been removed.</p>
        <p>If you did not make this request, please contact {support_email} immediately.</p>
        <p>The DBKompare team</p>
    </body>
    </html>
    """


def admin_notification_html(email: str, reason: str, additional_info: Optional[str], user_id: str) -> str:
    return f"""
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <h2 style="color: #213197;">New account deletion request</h2>
        <ul>
            <li><strong>User ID:</strong> {user_id}</li>
            <li><strong>Email:</strong> {html.escape(email)}</li>
            <li><strong>Reason:</strong> {html.escape(reason)}</li>
            <li><strong>Additional info:</strong> {html.escape(additional_info or 'N/A')}</li>
        </ul>
    </body>
    </html>
    """


class AccountService:

    def __init__(self, store: DynamoDBStore, settings, send_email: Callable[[str, str, str], bool],
                 clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.settings = settings
        self.send_email = send_email
        self.clock = clock

    def request_deletion(self, email: str, reason: str, additional_info: Optional[str] = None) -> Dict[str, Any]:
        """
        Marca la cuenta y avisa al usuario y al administrador.
        Los emails son informativos: si fallan se registra y se continúa.
        """
        user = crud_user.get_user_by_email(self.store, email)
        if user is None:
            raise NotFoundError("User not found")

        crud_user.update_user(
            self.store,
            user.id,
            assign={
                "status": UserStatus.DELETION_REQUESTED,
                "deletionRequest": {
                    "reason": reason,
                    "additionalInfo": additional_info,
                    "requestedAt": to_millis(self.clock()),
                },
            },
        )

        user_notified = self.send_email(
            email,
            "Your DBKompare account deletion request",
            user_confirmation_html(user.name or email, self.settings.SUPPORT_EMAIL),
        )
        admin_notified = self.send_email(
            self.settings.ADMIN_EMAIL,
            f"Account deletion request: {email}",
            admin_notification_html(email, reason, additional_info, user.id),
        )
        if not user_notified or not admin_notified:
            logger.warning(f"Deletion request for {user.id} stored but some notifications failed")

        logger.info(f"Account deletion requested for user {user.id}")
        return {"userId": user.id, "status": UserStatus.DELETION_REQUESTED,
                "userNotified": user_notified, "adminNotified": admin_notified}
