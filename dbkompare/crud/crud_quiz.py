# dbkompare/crud/crud_quiz.py
from typing import Dict, Iterable, List, Optional, Sequence

from dbkompare.db.dynamodb import DynamoDBStore
from dbkompare.models.quiz import Question, Quiz

STATUS_INDEX = "byStatus"


def get_quiz(store: DynamoDBStore, quiz_id: str) -> Optional[Quiz]:
    item = store.get_item(store.tables.quizzes, {"id": quiz_id})
    return Quiz.model_validate(item) if item else None


def get_questions(store: DynamoDBStore, question_ids: Sequence[str]) -> List[Question]:
    """
    Devuelve las preguntas en el mismo orden que `question_ids`.
    Los ids que no existen se omiten.
    """
    unique_ids = list(dict.fromkeys(question_ids))
    if not unique_ids:
        return []
    items = store.batch_get(store.tables.questions, [{"id": qid} for qid in unique_ids])
    by_id: Dict[str, Question] = {item["id"]: Question.model_validate(item) for item in items}
    return [by_id[qid] for qid in unique_ids if qid in by_id]


def get_quiz_with_questions(store: DynamoDBStore, quiz_id: str) -> Optional[Quiz]:
    quiz = get_quiz(store, quiz_id)
    if quiz is None:
        return None
    quiz.questions = get_questions(store, quiz.question_ids)
    return quiz


def list_quizzes(store: DynamoDBStore, status: str) -> List[Quiz]:
    items = store.query_index(store.tables.quizzes, STATUS_INDEX, "status", status)
    return [Quiz.model_validate(item) for item in items]


def create_questions(store: DynamoDBStore, items: Iterable[dict]) -> None:
    store.batch_write(store.tables.questions, items)
