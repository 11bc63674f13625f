# dbkompare/schemas/submission.py
from typing import Any, Optional

from pydantic import BaseModel, Field


class QuizSubmissionRequest(BaseModel):
    """
    Schema para enviar las respuestas de un quiz.
    """
    quizId: Optional[str] = Field(None, description="ID del quiz")
    userId: Optional[str] = Field(None, description="ID del usuario")
    answers: Optional[Any] = Field(None, description="Lista de {questionId, selectedOptionIds}")

    class Config:
        json_schema_extra = {
            "example": {
                "quizId": "2f0c3a4e-6b1d-4f3e-9d6c-1f2a3b4c5d6e",
                "userId": "b7e1c2d3-4a5b-6c7d-8e9f-0a1b2c3d4e5f",
                "answers": [
                    {"questionId": "q-1", "selectedOptionIds": ["o-2"]},
                    {"questionId": "q-2", "selectedOptionIds": ["o-1", "o-3"]},
                ],
            }
        }
