# dbkompare/services/storage_service.py
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from dbkompare.core.errors import UpstreamError

logger = logging.getLogger(__name__)


class S3Storage:
    """
    Almacenamiento de objetos (plantillas y certificados generados).
    """

    def __init__(self, settings, client=None):
        self.settings = settings
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client("s3", region_name=self.settings.AWS_REGION)
        return self._client

    def fetch_object(self, bucket: str, key: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
            return response["Body"].read()
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in ("NoSuchKey", "404"):
                logger.error(f"Object not found: s3://{bucket}/{key}")
                raise UpstreamError(f"Storage object not found: {key}") from e
            logger.error(f"Error fetching s3://{bucket}/{key}: {str(e)}")
            raise UpstreamError("Failed to read from storage") from e
        except BotoCoreError as e:
            logger.error(f"Error fetching s3://{bucket}/{key}: {str(e)}")
            raise UpstreamError("Failed to read from storage") from e

    def upload_object(self, bucket: str, key: str, body: bytes,
                      acl: str = "private", content_type: str = "application/pdf") -> str:
        """
        Sube un objeto y devuelve su referencia s3://bucket/key.
        """
        try:
            self.client.put_object(Bucket=bucket, Key=key, Body=body, ACL=acl, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error uploading s3://{bucket}/{key}: {str(e)}")
            raise UpstreamError("Failed to upload to storage") from e
        logger.info(f"Uploaded s3://{bucket}/{key} ({len(body)} bytes)")
        return f"s3://{bucket}/{key}"
