# dbkompare/crud/crud_plan.py
from typing import List, Optional

from dbkompare.db.dynamodb import DynamoDBStore, Update
from dbkompare.models.catalog import CertificationPlan


def get_plan(store: DynamoDBStore, plan_id: str) -> Optional[CertificationPlan]:
    item = store.get_item(store.tables.plans, {"id": plan_id})
    return CertificationPlan.model_validate(item) if item else None


def list_plans(store: DynamoDBStore, status: Optional[str] = None) -> List[CertificationPlan]:
    filters = {"status": status} if status else None
    plans = [CertificationPlan.model_validate(i) for i in store.scan(store.tables.plans, filters)]
    return sorted(plans, key=lambda p: p.price or 0)


def create_plans(store: DynamoDBStore, plans: List[CertificationPlan]) -> None:
    store.batch_write(store.tables.plans, [plan.to_item() for plan in plans])


def update_plan_status(store: DynamoDBStore, plan_id: str, status: str, now: int) -> CertificationPlan:
    attrs = store.update(Update(
        table=store.tables.plans,
        key={"id": plan_id},
        assign={"status": status, "updatedAt": now},
        require_exists="id",
    ))
    return CertificationPlan.model_validate(attrs)
