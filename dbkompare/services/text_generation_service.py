# dbkompare/services/text_generation_service.py
"""
Autocompletado de fichas de herramientas con OpenAI.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from openai import OpenAI, OpenAIError

logger = logging.getLogger(__name__)

# Valores permitidos para los campos de tipo desplegable
ALLOWED_VALUES: Dict[str, List[Any]] = {
    "access_control": ["Yes", "No", "Limited", "DoesNotMatter"],
    "version_control": ["Yes", "No", "DoesNotMatter"],
    "support_for_workflow": ["Yes", "No", "DoesNotMatter"],
    "web_access": ["Yes", "No", "DoesNotMatter"],
    "deployment_options_on_prem_or_saas": [1, 2, 3, "DoesNotMatter"],
    "free_community_edition": [1, 2, 3, 4, "DoesNotMatter"],
    "authentication_protocol_supported": [1, 2, 3, 4, "DoesNotMatter"],
    "api_integration_with_upstream_downstream_systems": ["Yes but limited", "No", "Limited", "DoesNotMatter"],
    "user_created_tags_comments": ["DoesNotMatter", "Yes", "No", "LimitedFunctionality"],
    "customization_possible": ["Yes", "No", "Limited functionality", "DoesNotMatter"],
    "modern_ways_of_deployment": [1, 2, 3, "DoesNotMatter"],
    "ai_capabilities": ["Yes", "No", "Limited"],
    "support_import_export_formats": ["Yes", "No", "Limited functionality"],
}

TEXT_FIELDS = ["tool_description", "price", "dbkompare_view", "core_features", "useful_links"]
AUTOFILL_FIELDS = TEXT_FIELDS + list(ALLOWED_VALUES)

SYSTEM_PROMPT = (
    "You are a helpful assistant that provides accurate information about database tools. "
    "Return only valid JSON without markdown formatting. Try to fill all requested fields with "
    "the best available information or reasonable defaults from the provided options."
)


def missing_fields(tool: Dict[str, Any]) -> List[str]:
    return [f for f in AUTOFILL_FIELDS if tool.get(f) in (None, "", [])]


def build_prompt(tool: Dict[str, Any], fields: Sequence[str]) -> str:
    rules = "\n".join(
        f"- {f}: Must be one of [{', '.join(json.dumps(v) for v in ALLOWED_VALUES[f])}]"
        for f in fields if f in ALLOWED_VALUES
    )
    features = tool.get("core_features")
    return (
        f"You are a database tool expert. Provide accurate information for "
        f"{tool.get('tool_name') or 'this database tool'}.\n\n"
        f"Fields that need information: {', '.join(fields)}\n\n"
        f"Return a JSON object with these fields.\n\n"
        f"STRICT VALIDATION RULES (select the best matching value for each field):\n{rules}\n\n"
        f"Context about the tool:\n"
        f"- Name: {tool.get('tool_name') or 'N/A'}\n"
        f"- Category: {tool.get('category_name') or 'N/A'}\n"
        f"- URL: {tool.get('home_page_url') or 'N/A'}\n"
        f"- Features: {', '.join(features) if isinstance(features, list) else 'N/A'}\n\n"
        f"\"core_features\" and \"useful_links\" MUST be JSON arrays of strings. "
        f"Numeric options MUST be returned as integers. Only return the JSON object."
    )


def strip_code_fences(content: str) -> str:
    return content.replace("```json", "").replace("```", "").strip()


def select_valid_fields(data: Dict[str, Any], fields: Sequence[str]) -> Dict[str, Any]:
    """
    Sólo se aceptan campos pedidos, no vacíos y, si son desplegables,
    con un valor de la lista permitida.
    """
    result: Dict[str, Any] = {}
    for field in fields:
        value = data.get(field)
        if value is None or value == "" or value == []:
            continue
        if field in ALLOWED_VALUES and value not in ALLOWED_VALUES[field]:
            logger.warning(f"Discarding generated value {value!r} for {field}")
            continue
        result[field] = value
    return result


class TextGenerationService:

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", client: Optional[OpenAI] = None):
        self.model = model
        self._api_key = api_key
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self._api_key)
        return self._client

    def populate_tool_fields(self, tool: Dict[str, Any], fields: Sequence[str]) -> Dict[str, Any]:
        """
        Pide a OpenAI los campos que faltan. Un fallo del modelo no bloquea
        el alta de la herramienta: se registra y se devuelve {}.
        """
        if not fields:
            return {}
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(tool, fields)},
                ],
                temperature=0.7,
                max_tokens=1000,
            )
            content = (response.choices[0].message.content or "").strip()
            data = json.loads(strip_code_fences(content))
        except (OpenAIError, json.JSONDecodeError, IndexError) as e:
            logger.error(f"Autofill failed for {tool.get('tool_name')}: {str(e)}")
            return {}

        if not isinstance(data, dict):
            logger.error(f"Autofill for {tool.get('tool_name')} returned a non-object response")
            return {}
        populated = select_valid_fields(data, fields)
        logger.info(f"Autofill populated {len(populated)}/{len(fields)} fields for {tool.get('tool_name')}")
        return populated
