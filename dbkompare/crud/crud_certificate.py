# dbkompare/crud/crud_certificate.py
from typing import List, Optional

from dbkompare.db.dynamodb import DynamoDBStore
from dbkompare.models.certificate import Certificate

USER_INDEX = "byUser"


def get_certificate(store: DynamoDBStore, certificate_id: str) -> Optional[Certificate]:
    item = store.get_item(store.tables.certificates, {"id": certificate_id})
    return Certificate.model_validate(item) if item else None


def list_user_certificates(store: DynamoDBStore, user_id: str) -> List[Certificate]:
    items = store.query_index(store.tables.certificates, USER_INDEX, "userId", user_id)
    return [Certificate.model_validate(item) for item in items]


def find_active_certificate(store: DynamoDBStore, user_id: str, subject_id: str) -> Optional[Certificate]:
    """
    Certificado ACTIVE del usuario para un sujeto (quiz o grupo), si existe.
    """
    for certificate in list_user_certificates(store, user_id):
        if certificate.subject_id == subject_id and certificate.is_active:
            return certificate
    return None
