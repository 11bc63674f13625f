# dbkompare/api/v1/endpoints/plans.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from dbkompare.core.deps import get_catalog_service, require_admin
from dbkompare.schemas.catalog import PlanCreateRequest, PlanStatusRequest
from dbkompare.services.catalog_service import CatalogService
from dbkompare.utils.responses import send_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", summary="Planes de certificación ordenados por precio")
def list_certification_plans(
    status: Optional[str] = Query(None, description="ACTIVE o INACTIVE"),
    service: CatalogService = Depends(get_catalog_service),
):
    logger.info(f"GET /certification-plans - status={status}")
    return send_response(200, "Certification plans retrieved successfully", service.list_plans(status))


@router.get("/{plan_id}", summary="Detalle de un plan")
def get_certification_plan(
    plan_id: str,
    service: CatalogService = Depends(get_catalog_service),
):
    logger.info(f"GET /certification-plans/{plan_id}")
    return send_response(200, "Certification plan retrieved successfully", service.get_plan(plan_id))


@router.post("", summary="Crea planes (o los planes por defecto)")
def create_certification_plans(
    request: Optional[PlanCreateRequest] = None,
    claims: dict = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    logger.info(f"POST /certification-plans - admin={claims.get('sub')}")
    plans = service.create_plans(request.plans if request else None)
    return send_response(200, "Certification plans created successfully", plans)


@router.patch("/{plan_id}/status", summary="Activa o desactiva un plan")
def update_certification_plan_status(
    plan_id: str,
    request: PlanStatusRequest,
    claims: dict = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    logger.info(f"PATCH /certification-plans/{plan_id}/status - status={request.status}")
    return send_response(200, "Certification plan updated successfully", service.update_plan_status(plan_id, request.status))
