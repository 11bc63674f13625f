# dbkompare/db/dynamodb.py
"""
Acceso a DynamoDB para todas las funciones.

Las escrituras se describen con objetos `Put` y `Update` en lugar de
concatenar expresiones a mano; el mismo objeto sirve para una llamada
individual y para `TransactWriteItems`.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import boto3
from boto3.dynamodb.conditions import Attr, Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError

from dbkompare.core.errors import ConditionFailedError, PersistenceError

logger = logging.getLogger(__name__)

BATCH_GET_LIMIT = 100
BATCH_WRITE_LIMIT = 25


@dataclass(frozen=True)
class TableNames:
    users: str
    quizzes: str
    questions: str
    submissions: str
    certificates: str
    groups: str
    achievements: str
    plans: str
    db_tools: str
    db_tool_categories: str

    @classmethod
    def from_settings(cls, settings) -> "TableNames":
        return cls(
            users=settings.USERS_TABLE,
            quizzes=settings.QUIZZES_TABLE,
            questions=settings.QUIZ_QUESTIONS_TABLE,
            submissions=settings.QUIZ_SUBMISSIONS_TABLE,
            certificates=settings.CERTIFICATES_TABLE,
            groups=settings.GROUPS_TABLE,
            achievements=settings.USER_ACHIEVEMENTS_TABLE,
            plans=settings.CERTIFICATION_PLANS_TABLE,
            db_tools=settings.DB_TOOLS_TABLE,
            db_tool_categories=settings.DB_TOOL_CATEGORIES_TABLE,
        )


@dataclass
class Put:
    """Alta de un item; `unique_on` añade attribute_not_exists(<attr>)."""
    table: str
    item: Dict[str, Any]
    unique_on: Optional[str] = None


@dataclass
class Update:
    """
    Parche estructurado sobre un item existente.

    assign:            attr = valor
    set_if_missing:    attr = if_not_exists(attr, valor)
    increment:         attr = if_not_exists(attr, 0) + valor
    append:            attr = list_append(if_not_exists(attr, []), valores)
    add:               ADD attr valor (contadores atómicos)
    require_exists:    attribute_exists(attr)
    exclude_from_list: (attr, valor) -> el valor aún no está en la lista
    require_not_true:  el flag no existe o es false
    require_equals:    (attr, valor) -> attr vale exactamente valor; con None, attr no existe
    """
    table: str
    key: Dict[str, Any]
    assign: Dict[str, Any] = field(default_factory=dict)
    set_if_missing: Dict[str, Any] = field(default_factory=dict)
    increment: Dict[str, Any] = field(default_factory=dict)
    append: Dict[str, List[Any]] = field(default_factory=dict)
    add: Dict[str, Any] = field(default_factory=dict)
    require_exists: Optional[str] = None
    exclude_from_list: Optional[Tuple[str, Any]] = None
    require_not_true: Optional[str] = None
    require_equals: Optional[Tuple[str, Any]] = None


WriteOp = Union[Put, Update]


# ============= CONVERSIÓN DE TIPOS =============

def to_dynamo(value: Any) -> Any:
    """Convierte floats a Decimal de forma recursiva (boto3 no acepta float)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dynamo(v) for v in value]
    return value


def from_dynamo(value: Any) -> Any:
    """Convierte Decimal a int/float de forma recursiva."""
    if isinstance(value, Decimal):
        return int(value) if value % 1 == 0 else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    if isinstance(value, set):
        return [from_dynamo(v) for v in value]
    return value


# ============= EXPRESIONES =============

def build_update_expression(update: Update) -> Dict[str, Any]:
    """
    Traduce un `Update` a los argumentos de update_item.

    Los nombres de atributo siempre van como placeholders (#fN) para
    no chocar con palabras reservadas como `status` o `value`.
    """
    placeholders: Dict[str, str] = {}
    values: Dict[str, Any] = {}

    def name(attr: str) -> str:
        if attr not in placeholders:
            placeholders[attr] = f"#f{len(placeholders)}"
        return placeholders[attr]

    def value(val: Any) -> str:
        ph = f":v{len(values)}"
        values[ph] = val
        return ph

    set_parts: List[str] = []
    add_parts: List[str] = []
    conditions: List[str] = []

    for attr, val in update.assign.items():
        set_parts.append(f"{name(attr)} = {value(val)}")
    for attr, val in update.set_if_missing.items():
        n = name(attr)
        set_parts.append(f"{n} = if_not_exists({n}, {value(val)})")
    for attr, val in update.increment.items():
        n = name(attr)
        set_parts.append(f"{n} = if_not_exists({n}, {value(0)}) + {value(val)}")
    for attr, items in update.append.items():
        n = name(attr)
        set_parts.append(f"{n} = list_append(if_not_exists({n}, {value([])}), {value(list(items))})")
    for attr, val in update.add.items():
        add_parts.append(f"{name(attr)} {value(val)}")

    if not set_parts and not add_parts:
        raise ValueError("Update has no changes")

    if update.require_exists:
        conditions.append(f"attribute_exists({name(update.require_exists)})")
    if update.exclude_from_list:
        attr, val = update.exclude_from_list
        n = name(attr)
        conditions.append(f"(attribute_not_exists({n}) OR NOT contains({n}, {value(val)}))")
    if update.require_not_true:
        n = name(update.require_not_true)
        conditions.append(f"(attribute_not_exists({n}) OR {n} = {value(False)})")
    if update.require_equals:
        attr, val = update.require_equals
        n = name(attr)
        if val is None:
            conditions.append(f"attribute_not_exists({n})")
        else:
            conditions.append(f"{n} = {value(val)}")

    clauses = []
    if set_parts:
        clauses.append("SET " + ", ".join(set_parts))
    if add_parts:
        clauses.append("ADD " + ", ".join(add_parts))

    kwargs: Dict[str, Any] = {
        "UpdateExpression": " ".join(clauses),
        "ExpressionAttributeNames": {ph: attr for attr, ph in placeholders.items()},
        "ExpressionAttributeValues": to_dynamo(values),
    }
    if conditions:
        kwargs["ConditionExpression"] = " AND ".join(conditions)
    return kwargs


def build_put_kwargs(put: Put) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"Item": to_dynamo(put.item)}
    if put.unique_on:
        kwargs["ConditionExpression"] = "attribute_not_exists(#pk)"
        kwargs["ExpressionAttributeNames"] = {"#pk": put.unique_on}
    return kwargs


@contextmanager
def translate_client_errors(operation: str):
    """Convierte errores de botocore en errores de dominio."""
    try:
        yield
    except ClientError as e:
        error = e.response.get("Error", {})
        code = error.get("Code", "")
        if code == "ConditionalCheckFailedException":
            raise ConditionFailedError(f"Conditional check failed during {operation}") from e
        if code == "TransactionCanceledException":
            reasons = [r.get("Code") for r in e.response.get("CancellationReasons", [])]
            if "ConditionalCheckFailed" in reasons:
                raise ConditionFailedError(f"Conditional check failed during {operation}") from e
        logger.error(f"DynamoDB {operation} failed: {code} {error.get('Message', '')}")
        raise PersistenceError(f"Database error during {operation}") from e
    except BotoCoreError as e:
        logger.error(f"DynamoDB {operation} failed: {str(e)}")
        raise PersistenceError(f"Database error during {operation}") from e


class DynamoDBStore:
    """Cliente DynamoDB con inicialización perezosa"""

    def __init__(self, settings, resource=None):
        self.settings = settings
        self.tables = TableNames.from_settings(settings)
        self._dynamodb = resource
        self._serializer = TypeSerializer()

    @property
    def dynamodb(self):
        if self._dynamodb is None:
            kwargs = {"region_name": self.settings.AWS_REGION}
            # Sólo LocalStack usa endpoint explícito
            if self.settings.DYNAMODB_ENDPOINT:
                kwargs["endpoint_url"] = self.settings.DYNAMODB_ENDPOINT
            self._dynamodb = boto3.resource("dynamodb", **kwargs)
        return self._dynamodb

    def table(self, name: str):
        return self.dynamodb.Table(name)

    # ── Lecturas ──

    def get_item(self, table: str, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with translate_client_errors(f"get_item on {table}"):
            response = self.table(table).get_item(Key=key)
        item = response.get("Item")
        return from_dynamo(item) if item else None

    def query_index(self, table: str, index_name: str, key_name: str, key_value: Any,
                    scan_forward: bool = True) -> List[Dict[str, Any]]:
        """Consulta un GSI siguiendo LastEvaluatedKey hasta agotar resultados."""
        kwargs = {
            "IndexName": index_name,
            "KeyConditionExpression": Key(key_name).eq(key_value),
            "ScanIndexForward": scan_forward,
        }
        return self._paginate(table, "query", kwargs)

    def query_partition(self, table: str, key_name: str, key_value: Any,
                        sort_key_name: Optional[str] = None,
                        sort_prefix: Optional[str] = None) -> List[Dict[str, Any]]:
        condition = Key(key_name).eq(key_value)
        if sort_key_name and sort_prefix:
            condition = condition & Key(sort_key_name).begins_with(sort_prefix)
        return self._paginate(table, "query", {"KeyConditionExpression": condition})

    def scan(self, table: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        kwargs: Dict[str, Any] = {}
        if filters:
            condition = None
            for attr, val in filters.items():
                clause = Attr(attr).eq(val)
                condition = clause if condition is None else condition & clause
            kwargs["FilterExpression"] = condition
        return self._paginate(table, "scan", kwargs)

    def _paginate(self, table: str, method: str, kwargs: Dict[str, Any]) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        handle = self.table(table)
        while True:
            with translate_client_errors(f"{method} on {table}"):
                response = getattr(handle, method)(**kwargs)
            items.extend(from_dynamo(i) for i in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def batch_get(self, table: str, keys: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        for start in range(0, len(keys), BATCH_GET_LIMIT):
            request = {table: {"Keys": list(keys[start:start + BATCH_GET_LIMIT])}}
            while request:
                with translate_client_errors(f"batch_get on {table}"):
                    response = self.dynamodb.batch_get_item(RequestItems=request)
                items.extend(from_dynamo(i) for i in response.get("Responses", {}).get(table, []))
                request = response.get("UnprocessedKeys") or None
        return items

    # ── Escrituras ──

    def put(self, op: Put) -> None:
        with translate_client_errors(f"put_item on {op.table}"):
            self.table(op.table).put_item(**build_put_kwargs(op))

    def update(self, op: Update) -> Dict[str, Any]:
        with translate_client_errors(f"update_item on {op.table}"):
            response = self.table(op.table).update_item(
                Key=op.key, ReturnValues="ALL_NEW", **build_update_expression(op)
            )
        return from_dynamo(response.get("Attributes", {}))

    def delete_item(self, table: str, key: Dict[str, Any]) -> None:
        with translate_client_errors(f"delete_item on {table}"):
            self.table(table).delete_item(Key=key)

    def batch_write(self, table: str, items: Iterable[Dict[str, Any]]) -> None:
        with translate_client_errors(f"batch_write on {table}"):
            with self.table(table).batch_writer() as writer:
                for item in items:
                    writer.put_item(Item=to_dynamo(item))

    def transact_write(self, ops: Sequence[WriteOp]) -> None:
        """Aplica todas las operaciones o ninguna."""
        transact_items = [self._serialize_op(op) for op in ops]
        with translate_client_errors("transact_write_items"):
            self.dynamodb.meta.client.transact_write_items(TransactItems=transact_items)

    def _serialize(self, mapping: Dict[str, Any]) -> Dict[str, Any]:
        return {k: self._serializer.serialize(v) for k, v in to_dynamo(mapping).items()}

    def _serialize_op(self, op: WriteOp) -> Dict[str, Any]:
        if isinstance(op, Put):
            kwargs = build_put_kwargs(op)
            body = {"TableName": op.table, "Item": self._serialize(kwargs.pop("Item"))}
            body.update(kwargs)
            return {"Put": body}
        kwargs = build_update_expression(op)
        kwargs["ExpressionAttributeValues"] = self._serialize(kwargs["ExpressionAttributeValues"])
        return {"Update": {"TableName": op.table, "Key": self._serialize(op.key), **kwargs}}
