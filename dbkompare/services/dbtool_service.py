# dbkompare/services/dbtool_service.py
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from dbkompare.core.errors import ConditionFailedError, NotFoundError, ValidationError
from dbkompare.db.dynamodb import DynamoDBStore, Put, Update
from dbkompare.services.text_generation_service import AUTOFILL_FIELDS, TextGenerationService, missing_fields
from dbkompare.utils.helpers import to_millis, utc_now

logger = logging.getLogger(__name__)


class DbToolStatus:
    ACTIVE = "ACTIVE"
    DISABLED = "DISABLED"

    ALL = (ACTIVE, DISABLED)


# Campos editables de una ficha; los de texto se guardan recortados
EDITABLE_FIELDS = [
    "category_id", "tool_name", "tool_description", "home_page_url", "access_control",
    "version_control", "support_for_workflow", "web_access", "deployment_options_on_prem_or_saas",
    "free_community_edition", "authentication_protocol_supported",
    "api_integration_with_upstream_downstream_systems", "user_created_tags_comments",
    "customization_possible", "modern_ways_of_deployment", "support_import_export_formats",
    "useful_links", "price", "dbkompare_view", "ai_capabilities", "core_features", "status",
]
TRIMMED_FIELDS = ("tool_name", "tool_description")


def normalize_tool_field(field: str, value: Any) -> Any:
    if field in TRIMMED_FIELDS:
        return value.strip() if isinstance(value, str) else ""
    if field == "core_features":
        return value if isinstance(value, list) else []
    if field in ("category_id", "status"):
        return value
    return value or ""


class DbToolService:
    """
    Fichas de herramientas de base de datos del comparador.
    """

    def __init__(self, store: DynamoDBStore, text_generation: TextGenerationService,
                 clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.text_generation = text_generation
        self.clock = clock

    @property
    def table(self) -> str:
        return self.store.tables.db_tools

    def _require_tool(self, tool_id: Optional[str]) -> Dict[str, Any]:
        if not tool_id:
            raise ValidationError("Missing tool ID")
        tool = self.store.get_item(self.table, {"id": tool_id})
        if tool is None:
            raise NotFoundError("DB Tool not found")
        return tool

    def create_tool(self, tool: Dict[str, Any], autofill: bool = False) -> Dict[str, Any]:
        if not isinstance(tool.get("tool_name"), str) or not tool["tool_name"].strip():
            raise ValidationError("tool_name is required")
        if not tool.get("category_id"):
            raise ValidationError("category_id is required")

        item = {k: v for k, v in tool.items() if v is not None}
        generated: Dict[str, Any] = {}
        if autofill:
            generated = self.text_generation.populate_tool_fields(item, missing_fields(item))
            item.update(generated)

        now = to_millis(self.clock())
        item.update({
            "id": str(uuid.uuid4()),
            "tool_name": tool["tool_name"].strip(),
            "status": item.get("status") or DbToolStatus.ACTIVE,
            "createdAt": now,
            "updatedAt": now,
        })
        self.store.put(Put(table=self.table, item=item, unique_on="id"))
        logger.info(f"DB tool {item['id']} ({item['tool_name']}) created, {len(generated)} fields autofilled")
        return {"tool": item, "autofilledFields": sorted(generated)}

    def update_tool(self, tool_id: Optional[str], changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Actualiza sólo los campos editables presentes en `changes`.
        """
        self._require_tool(tool_id)

        assign = {
            field: normalize_tool_field(field, changes[field])
            for field in EDITABLE_FIELDS if field in changes
        }
        if "status" in assign and assign["status"] not in DbToolStatus.ALL:
            raise ValidationError("Invalid status value")
        if not assign:
            raise ValidationError("At least one field is required for update")
        if "tool_name" in assign and not assign["tool_name"]:
            raise ValidationError("tool_name must not be blank")

        assign["updatedAt"] = to_millis(self.clock())
        try:
            updated = self.store.update(Update(
                table=self.table, key={"id": tool_id}, assign=assign, require_exists="id",
            ))
        except ConditionFailedError as e:
            raise NotFoundError("DB Tool not found") from e
        logger.info(f"DB tool {tool_id} updated: {', '.join(sorted(assign))}")
        return updated

    def delete_tool(self, tool_id: Optional[str]) -> Dict[str, Any]:
        tool = self._require_tool(tool_id)
        self.store.delete_item(self.table, {"id": tool_id})
        logger.info(f"DB tool {tool_id} ({tool.get('tool_name')}) deleted")
        return tool

    def get_tools(self, tool_ids: Any, populate: bool = False) -> List[Dict[str, Any]]:
        """
        Fichas por id con el nombre y la descripción de su categoría. Con
        `populate` se completan con OpenAI sin guardar el resultado.
        """
        if not isinstance(tool_ids, list):
            raise ValidationError("An array of DB Tool IDs is required")
        ids = list(dict.fromkeys(i for i in tool_ids if isinstance(i, str) and i))
        tools = self.store.batch_get(self.table, [{"id": i} for i in ids]) if ids else []
        if not tools:
            raise NotFoundError("No db tool found for the provided IDs")

        category_ids = list({t["category_id"] for t in tools if isinstance(t.get("category_id"), str)})
        categories = {
            c["id"]: c
            for c in self.store.batch_get(self.store.tables.db_tool_categories, [{"id": i} for i in category_ids])
        } if category_ids else {}

        result = []
        for tool in tools:
            category = categories.get(tool.get("category_id")) or {}
            tool = {
                **tool,
                "category_name": category.get("name") or "",
                "category_description": category.get("description") or "",
            }
            if populate:
                tool.update(self.text_generation.populate_tool_fields(tool, AUTOFILL_FIELDS))
            result.append(tool)
        return result
