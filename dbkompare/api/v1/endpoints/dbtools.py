# dbkompare/api/v1/endpoints/dbtools.py
import logging

from fastapi import APIRouter, Depends

from dbkompare.core.deps import get_dbtool_service, require_admin
from dbkompare.schemas.catalog import DbToolCreateRequest, DbToolIdsRequest, DbToolUpdateRequest
from dbkompare.services.dbtool_service import DbToolService
from dbkompare.utils.responses import send_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", summary="Alta de una herramienta de base de datos")
def add_db_tool(
    request: DbToolCreateRequest,
    claims: dict = Depends(require_admin),
    service: DbToolService = Depends(get_dbtool_service),
):
    logger.info(f"POST /dbtools - admin={claims.get('sub')}, tool={request.tool_name}, autofill={request.autofill}")
    result = service.create_tool(request.tool_fields(), autofill=request.autofill)
    return send_response(200, "DB tool created successfully", result)


@router.post("/by-ids", summary="Fichas de varias herramientas, opcionalmente completadas con OpenAI")
def get_db_tools_by_ids(
    request: DbToolIdsRequest,
    service: DbToolService = Depends(get_dbtool_service),
):
    logger.info(f"POST /dbtools/by-ids - populate={request.isPopulate}")
    return send_response(200, "db tools details", service.get_tools(request.ids, populate=request.isPopulate))


@router.patch("/{tool_id}", summary="Actualiza una herramienta")
def update_db_tool(
    tool_id: str,
    request: DbToolUpdateRequest,
    claims: dict = Depends(require_admin),
    service: DbToolService = Depends(get_dbtool_service),
):
    logger.info(f"PATCH /dbtools/{tool_id} - admin={claims.get('sub')}")
    return send_response(200, "DB Tool updated successfully", service.update_tool(tool_id, request.changes()))


@router.delete("/{tool_id}", summary="Elimina una herramienta")
def delete_db_tool(
    tool_id: str,
    claims: dict = Depends(require_admin),
    service: DbToolService = Depends(get_dbtool_service),
):
    logger.info(f"DELETE /dbtools/{tool_id} - admin={claims.get('sub')}")
    return send_response(200, "DB Tool deleted successfully", service.delete_tool(tool_id))
