# dbkompare/crud/crud_user.py
from typing import Dict, List, Optional, Sequence

from dbkompare.db.dynamodb import DynamoDBStore, Put, Update
from dbkompare.models.user import User

EMAIL_INDEX = "byEmail"


def get_user(store: DynamoDBStore, user_id: str) -> Optional[User]:
    """
    Obtiene un usuario por su id.
    """
    item = store.get_item(store.tables.users, {"id": user_id})
    return User.model_validate(item) if item else None


def get_user_by_email(store: DynamoDBStore, email: str) -> Optional[User]:
    items = store.query_index(store.tables.users, EMAIL_INDEX, "email", email)
    return User.model_validate(items[0]) if items else None


def get_users_by_ids(store: DynamoDBStore, user_ids: Sequence[str]) -> Dict[str, User]:
    """
    Lectura en lote; los ids inexistentes simplemente no aparecen.
    """
    unique_ids: List[str] = list(dict.fromkeys(user_ids))
    items = store.batch_get(store.tables.users, [{"id": uid} for uid in unique_ids])
    return {item["id"]: User.model_validate(item) for item in items}


def update_user(store: DynamoDBStore, user_id: str, **changes) -> User:
    """
    Actualiza un usuario existente. `changes` son los argumentos de `Update`.
    """
    attrs = store.update(Update(
        table=store.tables.users,
        key={"id": user_id},
        require_exists="id",
        **changes,
    ))
    return User.model_validate(attrs)


def create_user(store: DynamoDBStore, user: User) -> User:
    """
    Alta de un usuario; falla con ConditionFailedError si el id ya existe.
    """
    store.put(Put(table=store.tables.users, item=user.to_item(), unique_on="id"))
    return user
