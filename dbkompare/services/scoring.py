# dbkompare/services/scoring.py
"""
Corrección de quizzes. Funciones puras, sin acceso a datos.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence

from dbkompare.models.quiz import Answer, Question, Quiz


@dataclass(frozen=True)
class ScoreResult:
    correct_count: int
    total_score: float
    total_questions: int
    percentage_score: float
    passing_percentage: Optional[float]

    @property
    def passed(self) -> bool:
        # Sin nota de corte ningún intento aprueba
        if self.passing_percentage is None:
            return False
        return self.percentage_score >= self.passing_percentage


def is_answer_correct(question: Question, selected_option_ids: Iterable[str]) -> bool:
    """
    Una sola respuesta: exactamente una opción elegida y es la correcta.
    Respuesta múltiple: el conjunto elegido es igual al conjunto correcto.
    """
    selected = list(selected_option_ids)
    correct = question.correct_option_ids
    if question.is_multiple_answer:
        return set(selected) == correct
    return len(selected) == 1 and selected[0] in correct


def score_submission(quiz: Quiz, answers: Sequence[Answer]) -> ScoreResult:
    by_question: Dict[str, Answer] = {}
    for answer in answers:
        # Si una pregunta se responde dos veces cuenta la primera respuesta
        by_question.setdefault(answer.question_id, answer)

    correct_count = 0
    total_score = 0.0
    for question in quiz.questions:
        answer = by_question.get(question.id)
        if answer is None:
            continue
        if is_answer_correct(question, answer.selected_option_ids):
            correct_count += 1
            total_score += question.weight

    denominator = quiz.desired_questions or len(quiz.questions)
    percentage = (correct_count / denominator) * 100 if denominator else 0.0

    return ScoreResult(
        correct_count=correct_count,
        total_score=total_score,
        total_questions=len(quiz.questions),
        percentage_score=percentage,
        passing_percentage=quiz.passing_perc,
    )
