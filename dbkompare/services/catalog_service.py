# dbkompare/services/catalog_service.py
"""
Consultas de catálogo y mutaciones de administración: quizzes, preguntas,
grupos, certificados y planes de certificación.
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from dbkompare.core.errors import NotFoundError, ValidationError
from dbkompare.crud import crud_certificate, crud_group, crud_plan, crud_quiz, crud_submission, crud_user
from dbkompare.db.dynamodb import DynamoDBStore, Update
from dbkompare.models.catalog import CertificationPlan, Group, PlanStatus
from dbkompare.models.certificate import CertificateStatus
from dbkompare.utils.helpers import to_millis, utc_now

logger = logging.getLogger(__name__)

QUESTION_BATCH_SIZE = 25

CERTIFICATE_PATCH_FIELDS = {"status", "metaData", "eligibleForCredits"}
GROUP_PATCH_FIELDS = {"name", "description", "quizIds", "status"}

DEFAULT_PLANS = [
    {"name": "Promotional Pack", "badge": "Free", "price": 0, "certificationsUnlocked": 1,
     "description": "Try your first certification for free",
     "features": ["1 certification", "Verifiable PDF certificate"]},
    {"name": "Starter", "badge": "Starter", "price": 59.9, "certificationsUnlocked": 2,
     "description": "Get started with two certifications",
     "features": ["2 certifications", "Verifiable PDF certificates"]},
    {"name": "Professional", "badge": "Popular", "price": 79.9, "certificationsUnlocked": 3,
     "description": "Three certifications for growing professionals",
     "features": ["3 certifications", "Verifiable PDF certificates", "Leaderboard ranking"]},
    {"name": "Expert", "badge": "Expert", "price": 89.9, "certificationsUnlocked": 5,
     "description": "Five certifications across database categories",
     "features": ["5 certifications", "Verifiable PDF certificates", "Group certificates"]},
    {"name": "Master", "badge": "Best value", "price": 99.9, "certificationsUnlocked": 10,
     "description": "Ten certifications for the complete DBKompare track",
     "features": ["10 certifications", "Verifiable PDF certificates", "Group certificates"]},
]


def reject_unknown_fields(patch: Dict[str, Any], allowed: set) -> None:
    unknown = sorted(set(patch) - allowed)
    if unknown:
        raise ValidationError(f"Unsupported fields: {', '.join(unknown)}")
    if not patch:
        raise ValidationError("No fields to update")


def validate_question(index: int, item: Any) -> Dict[str, Any]:
    """Valida una pregunta del alta masiva y devuelve el item a guardar."""
    prefix = f"Item {index}"
    if not isinstance(item, dict):
        raise ValidationError(f"{prefix}: must be an object")
    if not isinstance(item.get("question"), str) or not item["question"].strip():
        raise ValidationError(f"{prefix}: question text is required")
    options = item.get("options")
    if not isinstance(options, list) or len(options) < 2:
        raise ValidationError(f"{prefix}: at least two options are required")

    parsed_options = []
    for option in options:
        if not isinstance(option, dict) or not isinstance(option.get("text"), str) or not option["text"].strip():
            raise ValidationError(f"{prefix}: every option needs a text")
        if not isinstance(option.get("isCorrect"), bool):
            raise ValidationError(f"{prefix}: isCorrect must be a boolean")
        parsed_options.append({"id": str(uuid.uuid4()), "text": option["text"].strip(), "isCorrect": option["isCorrect"]})

    correct = sum(1 for o in parsed_options if o["isCorrect"])
    if correct == 0:
        raise ValidationError(f"{prefix}: at least one option must be correct")

    points = item.get("points", 1)
    if isinstance(points, bool) or not isinstance(points, (int, float)) or points <= 0:
        raise ValidationError(f"{prefix}: points must be a positive number")

    question = {
        "id": str(uuid.uuid4()),
        "question": item["question"].strip(),
        "options": parsed_options,
        "isMultipleAnswer": correct > 1,
        "points": points,
        "status": item.get("status") or "ACTIVE",
    }
    for optional in ("explanation", "difficulty", "category", "tags"):
        if item.get(optional) is not None:
            question[optional] = item[optional]
    return question


def validate_plan(index: int, plan: Any) -> Dict[str, Any]:
    prefix = f"Plan {index}"
    if not isinstance(plan, dict):
        raise ValidationError(f"{prefix}: must be an object")
    if not isinstance(plan.get("name"), str) or not plan["name"].strip():
        raise ValidationError(f"{prefix}: name is required")
    price = plan.get("price")
    if isinstance(price, bool) or not isinstance(price, (int, float)) or price < 0:
        raise ValidationError(f"{prefix}: price must be a non-negative number")
    unlocked = plan.get("certificationsUnlocked")
    if isinstance(unlocked, bool) or not isinstance(unlocked, int) or unlocked <= 0:
        raise ValidationError(f"{prefix}: certificationsUnlocked must be a positive integer")
    features = plan.get("features", [])
    if not isinstance(features, list) or not all(isinstance(f, str) for f in features):
        raise ValidationError(f"{prefix}: features must be a list of strings")
    return plan


class CatalogService:

    def __init__(self, store: DynamoDBStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def _now(self) -> int:
        return to_millis(self.clock())

    # ── Quizzes ──

    def list_quizzes(self, status: str = "ACTIVE", difficulty: Optional[str] = None,
                     group_name: Optional[str] = None, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        quizzes = crud_quiz.list_quizzes(self.store, status)
        if difficulty:
            quizzes = [q for q in quizzes if (q.difficulty or "").lower() == difficulty.lower()]
        if group_name:
            quizzes = [q for q in quizzes if (q.group_name or "").lower() == group_name.lower()]

        taken = set()
        if user_id:
            taken = {s.quiz_id for s in crud_submission.list_user_submissions(self.store, user_id)}

        return [
            {**quiz.to_item(), "totalQuestions": len(quiz.question_ids), "taken": quiz.id in taken}
            for quiz in sorted(quizzes, key=lambda q: q.name.lower())
        ]

    def get_quiz(self, quiz_id: str) -> Dict[str, Any]:
        """Quiz con sus preguntas, sin revelar qué opciones son correctas."""
        quiz = crud_quiz.get_quiz_with_questions(self.store, quiz_id)
        if quiz is None:
            raise NotFoundError("Quiz not found")
        questions = []
        for question in quiz.questions:
            item = question.to_item()
            item["isMultipleAnswer"] = question.is_multiple_answer
            item["options"] = [{"id": o.id, "text": o.text} for o in question.options]
            questions.append(item)
        return {**quiz.to_item(), "questions": questions}

    def create_questions(self, items: Any, quiz_id: Optional[str] = None) -> Dict[str, Any]:
        if not isinstance(items, list) or not items:
            raise ValidationError("questions must be a non-empty array")
        quiz = None
        if quiz_id:
            quiz = crud_quiz.get_quiz(self.store, quiz_id)
            if quiz is None:
                raise NotFoundError("Quiz not found")

        offset = len(quiz.question_ids) if quiz else 0
        questions = []
        for index, item in enumerate(items, start=1):
            question = validate_question(index, item)
            question["questionNo"] = offset + index
            questions.append(question)

        for start in range(0, len(questions), QUESTION_BATCH_SIZE):
            crud_quiz.create_questions(self.store, questions[start:start + QUESTION_BATCH_SIZE])

        question_ids = [q["id"] for q in questions]
        if quiz:
            self.store.update(Update(
                table=self.store.tables.quizzes,
                key={"id": quiz.id},
                append={"questionIds": question_ids},
                assign={"updatedAt": self._now()},
                require_exists="id",
            ))
        logger.info(f"Created {len(questions)} questions" + (f" for quiz {quiz_id}" if quiz_id else ""))
        return {"created": len(questions), "questionIds": question_ids}

    # ── Grupos ──

    def list_groups(self) -> List[Dict[str, Any]]:
        return [g.to_item() for g in crud_group.list_groups(self.store)]

    def create_group(self, name: str, description: Optional[str], quiz_ids: List[str]) -> Dict[str, Any]:
        now = self._now()
        group = Group(
            id=str(uuid.uuid4()),
            name=name,
            description=description,
            quiz_ids=list(dict.fromkeys(quiz_ids)),
            certificate_taken_by=[],
            status="ACTIVE",
            created_at=now,
            updated_at=now,
        )
        crud_group.create_group(self.store, group)
        logger.info(f"Group {group.id} created with {len(group.quiz_ids)} quizzes")
        return group.to_item()

    def update_group(self, group_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        reject_unknown_fields(patch, GROUP_PATCH_FIELDS)
        if "quizIds" in patch:
            if not isinstance(patch["quizIds"], list):
                raise ValidationError("quizIds must be an array")
            patch = {**patch, "quizIds": list(dict.fromkeys(patch["quizIds"]))}
        if crud_group.get_group(self.store, group_id) is None:
            raise NotFoundError("Group not found")
        group = crud_group.update_group(self.store, group_id, assign={**patch, "updatedAt": self._now()})
        return group.to_item()

    def delete_group(self, group_id: str) -> None:
        if crud_group.get_group(self.store, group_id) is None:
            raise NotFoundError("Group not found")
        crud_group.delete_group(self.store, group_id)
        logger.info(f"Group {group_id} deleted")

    # ── Certificados ──

    def get_certificate(self, certificate_id: str) -> Dict[str, Any]:
        certificate = crud_certificate.get_certificate(self.store, certificate_id)
        if certificate is None:
            raise NotFoundError("Certificate not found")
        quiz = crud_quiz.get_quiz(self.store, certificate.subject_id) if certificate.subject_id else None
        user = crud_user.get_user(self.store, certificate.user_id)
        return {
            **certificate.to_item(),
            "quiz": quiz.to_item() if quiz else None,
            "user": {"id": user.id, "name": user.name, "email": user.email} if user else None,
        }

    def update_certificate(self, certificate_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        reject_unknown_fields(patch, CERTIFICATE_PATCH_FIELDS)
        if "status" in patch and patch["status"] not in (CertificateStatus.ACTIVE, CertificateStatus.REVOKED):
            raise ValidationError("status must be ACTIVE or REVOKED")
        if "metaData" in patch and not isinstance(patch["metaData"], dict):
            raise ValidationError("metaData must be an object")
        if "eligibleForCredits" in patch and not isinstance(patch["eligibleForCredits"], bool):
            raise ValidationError("eligibleForCredits must be a boolean")
        if crud_certificate.get_certificate(self.store, certificate_id) is None:
            raise NotFoundError("Certificate not found")

        attrs = self.store.update(Update(
            table=self.store.tables.certificates,
            key={"id": certificate_id},
            assign={**patch, "updatedAt": self._now()},
            require_exists="id",
        ))
        logger.info(f"Certificate {certificate_id} updated: {', '.join(sorted(patch))}")
        return attrs

    # ── Planes de certificación ──

    def list_plans(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        if status and status not in (PlanStatus.ACTIVE, PlanStatus.INACTIVE):
            raise ValidationError("status must be ACTIVE or INACTIVE")
        return [p.to_item() for p in crud_plan.list_plans(self.store, status)]

    def get_plan(self, plan_id: str) -> Dict[str, Any]:
        plan = crud_plan.get_plan(self.store, plan_id)
        if plan is None:
            raise NotFoundError("Certification plan not found")
        return plan.to_item()

    def create_plans(self, plans: Optional[List[Any]] = None) -> List[Dict[str, Any]]:
        """Crea los planes recibidos o, si no llega ninguno, los planes por defecto."""
        source = plans if plans else DEFAULT_PLANS
        validated = [validate_plan(index, plan) for index, plan in enumerate(source, start=1)]
        now = self._now()
        records = [
            CertificationPlan.model_validate({
                **plan,
                "id": str(uuid.uuid4()),
                "status": plan.get("status") or PlanStatus.ACTIVE,
                "createdAt": now,
                "updatedAt": now,
            })
            for plan in validated
        ]
        crud_plan.create_plans(self.store, records)
        logger.info(f"Created {len(records)} certification plans")
        return [r.to_item() for r in records]

    def update_plan_status(self, plan_id: str, status: Optional[str]) -> Dict[str, Any]:
        if status not in (PlanStatus.ACTIVE, PlanStatus.INACTIVE):
            raise ValidationError("status must be ACTIVE or INACTIVE")
        if crud_plan.get_plan(self.store, plan_id) is None:
            raise NotFoundError("Certification plan not found")
        return crud_plan.update_plan_status(self.store, plan_id, status, self._now()).to_item()
