# dbkompare/models/base.py
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DynamoRecord(BaseModel):
    """
    Base de los items guardados en DynamoDB.
    Los atributos se almacenan en camelCase; en Python se usan en snake_case.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_item(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def number_or_none(value: Any) -> Any:
    """Valores numéricos mal guardados (cadenas vacías, texto) se tratan como ausentes."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
