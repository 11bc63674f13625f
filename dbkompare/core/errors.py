# dbkompare/core/errors.py
"""
Errores de dominio. Cada uno conoce su código HTTP; los handlers de
excepciones de main.py los convierten en el sobre {message, data}.
"""
from typing import Any, Optional


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, data: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.data = data


class ValidationError(AppError):
    status_code = 400


class UnauthorizedError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class GroupIncompleteError(ForbiddenError):
    """El usuario aún no ha aprobado todos los quizzes del grupo."""


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class PersistenceError(AppError):
    status_code = 500


class ConditionFailedError(PersistenceError):
    """Una escritura condicional de DynamoDB no se cumplió."""


class UpstreamError(AppError):
    """Fallo de un servicio externo (Stripe, OpenAI, S3)."""
    status_code = 500
