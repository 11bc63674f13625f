# dbkompare/api/v1/endpoints/groups.py
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from dbkompare.core.deps import get_catalog_service, require_admin
from dbkompare.schemas.catalog import GroupCreateRequest
from dbkompare.services.catalog_service import CatalogService
from dbkompare.utils.responses import send_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", summary="Lista de grupos")
def list_groups(service: CatalogService = Depends(get_catalog_service)):
    logger.info("GET /groups")
    return send_response(200, "Groups retrieved successfully", service.list_groups())


@router.post("", summary="Crea un grupo de quizzes")
def create_group(
    request: GroupCreateRequest,
    claims: dict = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    logger.info(f"POST /groups - admin={claims.get('sub')}, name={request.name}")
    group = service.create_group(request.name, request.description, request.quizIds)
    return send_response(200, "Group created successfully", group)


@router.patch("/{group_id}", summary="Actualiza un grupo")
def update_group(
    group_id: str,
    patch: Dict[str, Any] = Body(...),
    claims: dict = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    logger.info(f"PATCH /groups/{group_id} - admin={claims.get('sub')}")
    return send_response(200, "Group updated successfully", service.update_group(group_id, patch))


@router.delete("/{group_id}", summary="Elimina un grupo")
def delete_group(
    group_id: str,
    claims: dict = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    logger.info(f"DELETE /groups/{group_id} - admin={claims.get('sub')}")
    service.delete_group(group_id)
    return send_response(200, "Group deleted successfully", {"id": group_id})
