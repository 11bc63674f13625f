# dbkompare/crud/crud_group.py
from typing import List, Optional

from dbkompare.core.errors import ConditionFailedError
from dbkompare.db.dynamodb import DynamoDBStore, Put, Update
from dbkompare.models.catalog import Group


def get_group(store: DynamoDBStore, group_id: str) -> Optional[Group]:
    item = store.get_item(store.tables.groups, {"id": group_id})
    return Group.model_validate(item) if item else None


def list_groups(store: DynamoDBStore) -> List[Group]:
    groups = [Group.model_validate(item) for item in store.scan(store.tables.groups)]
    return sorted(groups, key=lambda g: g.name.lower())


def create_group(store: DynamoDBStore, group: Group) -> Group:
    store.put(Put(table=store.tables.groups, item=group.to_item(), unique_on="id"))
    return group


def update_group(store: DynamoDBStore, group_id: str, **changes) -> Group:
    attrs = store.update(Update(
        table=store.tables.groups,
        key={"id": group_id},
        require_exists="id",
        **changes,
    ))
    return Group.model_validate(attrs)


def add_certificate_holder(store: DynamoDBStore, group: Group, user_id: str) -> Group:
    """
    Añade el usuario a certificateTakenBy una sola vez.
    """
    if user_id in group.certificate_taken_by:
        return group
    try:
        return update_group(
            store,
            group.id,
            append={"certificateTakenBy": [user_id]},
            exclude_from_list=("certificateTakenBy", user_id),
        )
    except ConditionFailedError:
        # Otra petición ya lo añadió
        return get_group(store, group.id) or group


def delete_group(store: DynamoDBStore, group_id: str) -> None:
    store.delete_item(store.tables.groups, {"id": group_id})
