# dbkompare/services/identity_service.py
import logging
from typing import Dict

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from dbkompare.core.errors import ConflictError, UpstreamError

logger = logging.getLogger(__name__)


def to_attribute_list(attributes: Dict[str, str]) -> list:
    return [{"Name": name, "Value": value} for name, value in attributes.items()]


class CognitoDirectory:
    """
    Operaciones de administración sobre el user pool de Cognito.
    """

    def __init__(self, settings, client=None):
        self.settings = settings
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client("cognito-idp", region_name=self.settings.AWS_REGION)
        return self._client

    @property
    def pool_id(self) -> str:
        return self.settings.COGNITO_USER_POOL_ID

    def _call(self, operation: str, **kwargs):
        try:
            return getattr(self.client, operation)(UserPoolId=self.pool_id, **kwargs)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            logger.error(f"Cognito {operation} failed ({code}): {str(e)}")
            if code == "UsernameExistsException":
                raise ConflictError("A user with this email already exists") from e
            raise UpstreamError("Identity provider error") from e
        except BotoCoreError as e:
            logger.error(f"Cognito {operation} failed: {str(e)}")
            raise UpstreamError("Identity provider error") from e

    def create_user(self, username: str, attributes: Dict[str, str]) -> str:
        """Alta sin email de invitación; devuelve el Username asignado por Cognito."""
        response = self._call(
            "admin_create_user",
            Username=username,
            UserAttributes=to_attribute_list(attributes),
            MessageAction="SUPPRESS",
        )
        return response["User"]["Username"]

    def set_password(self, username: str, password: str, permanent: bool = True) -> None:
        self._call("admin_set_user_password", Username=username, Password=password, Permanent=permanent)

    def add_user_to_group(self, username: str, group_name: str) -> None:
        self._call("admin_add_user_to_group", Username=username, GroupName=group_name)
        logger.info(f"Cognito user {username} added to group {group_name}")

    def update_user_attributes(self, username: str, attributes: Dict[str, str]) -> None:
        self._call("admin_update_user_attributes", Username=username,
                   UserAttributes=to_attribute_list(attributes))
