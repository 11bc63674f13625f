# dbkompare/models/quiz.py
from typing import Any, Dict, List, Optional, Set

from pydantic import Field, field_validator

from dbkompare.models.base import DynamoRecord, number_or_none


class Option(DynamoRecord):
    id: str
    text: str = ""
    is_correct: bool = False


class Question(DynamoRecord):
    id: str
    question: str = ""
    options: List[Option] = Field(default_factory=list)
    points: Optional[float] = None
    explanation: Optional[str] = None
    difficulty: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    question_no: Optional[int] = None

    @field_validator("points", mode="before")
    @classmethod
    def coerce_points(cls, v: Any) -> Any:
        return number_or_none(v)

    @property
    def correct_option_ids(self) -> Set[str]:
        return {o.id for o in self.options if o.is_correct}

    @property
    def is_multiple_answer(self) -> bool:
        # Se deriva de las opciones, no del flag almacenado
        return len(self.correct_option_ids) > 1

    @property
    def weight(self) -> float:
        return self.points or 1


class Quiz(DynamoRecord):
    id: str
    name: str = ""
    category: Optional[str] = None
    difficulty: Optional[str] = None
    status: Optional[str] = None
    group_name: Optional[str] = None
    question_ids: List[str] = Field(default_factory=list)
    passing_perc: Optional[float] = None
    desired_questions: Optional[float] = None
    questions: List[Question] = Field(default_factory=list, exclude=True)

    @field_validator("passing_perc", "desired_questions", mode="before")
    @classmethod
    def coerce_numbers(cls, v: Any) -> Any:
        return number_or_none(v)

    def details(self) -> Dict[str, Any]:
        return {"name": self.name, "category": self.category, "difficulty": self.difficulty}


class Answer(DynamoRecord):
    question_id: str
    selected_option_ids: List[str] = Field(default_factory=list)


class SubmissionStatus:
    PASSED = "PASSED"
    FAILED = "FAILED"


class Submission(DynamoRecord):
    id: str
    quiz_id: str
    user_id: str
    created_at: int
    answers: List[Answer] = Field(default_factory=list)
    correct_count: int
    total_questions: int
    total_score: float
    percentage_score: float
    passing_percentage: Optional[float] = None
    status: str
    certificate_id: Optional[str] = None
    quiz_details: Dict[str, Any] = Field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.status == SubmissionStatus.PASSED
