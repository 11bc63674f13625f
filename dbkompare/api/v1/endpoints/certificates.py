# dbkompare/api/v1/endpoints/certificates.py
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from dbkompare.core.deps import get_catalog_service, require_admin
from dbkompare.services.catalog_service import CatalogService
from dbkompare.utils.responses import send_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{certificate_id}", summary="Certificado con su quiz y su usuario")
def get_certificate(
    certificate_id: str,
    service: CatalogService = Depends(get_catalog_service),
):
    logger.info(f"GET /certificates/{certificate_id}")
    return send_response(200, "Certificate retrieved successfully", service.get_certificate(certificate_id))


@router.patch("/{certificate_id}", summary="Actualiza status, metaData o eligibleForCredits")
def update_certificate(
    certificate_id: str,
    patch: Dict[str, Any] = Body(...),
    claims: dict = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    logger.info(f"PATCH /certificates/{certificate_id} - admin={claims.get('sub')}")
    return send_response(200, "Certificate updated successfully", service.update_certificate(certificate_id, patch))
