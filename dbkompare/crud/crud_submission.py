# dbkompare/crud/crud_submission.py
from typing import List, Optional

from dbkompare.db.dynamodb import DynamoDBStore
from dbkompare.models.quiz import Submission

USER_INDEX = "byUser"


def get_submission(store: DynamoDBStore, submission_id: str) -> Optional[Submission]:
    item = store.get_item(store.tables.submissions, {"id": submission_id})
    return Submission.model_validate(item) if item else None


def list_user_submissions(store: DynamoDBStore, user_id: str) -> List[Submission]:
    items = store.query_index(store.tables.submissions, USER_INDEX, "userId", user_id)
    return [Submission.model_validate(item) for item in items]
