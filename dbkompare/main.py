# dbkompare/main.py
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from dbkompare.api.v1.endpoints import (
    achievements,
    certificates,
    dbtools,
    groups,
    health,
    leaderboard,
    payments,
    plans,
    quizzes,
    submissions,
    users,
)
from dbkompare.core.config import Settings, settings as default_settings
from dbkompare.core.deps import Services, build_services
from dbkompare.core.errors import AppError
from dbkompare.core.logging_config import setup_logging
from dbkompare.middleware.request_logging import RequestLoggingMiddleware
from dbkompare.utils.responses import send_response

logger = logging.getLogger("dbkompare")


def describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "Invalid request: " + "; ".join(parts)


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
        return send_response(exc.status_code, exc.message, exc.data)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        message = describe_validation_error(exc)
        logger.info(f"{request.method} {request.url.path} rejected (400): {message}")
        return send_response(400, message)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unexpected error on {request.method} {request.url.path}: {str(exc)}")
        return send_response(500, "Internal server error")


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """
    Construye la aplicación. Los tests pasan `services` con dobles en memoria.
    """
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL, settings.LOG_TO_FILE, settings.LOG_DIR)

    app = FastAPI(
        title="DBKompare Functions API",
        description="""
        ## API de DBKompare

        **Servicios Disponibles:**
        - **Quiz submissions**: corrección de quizzes y emisión de certificados PDF
        - **Certificates**: certificados individuales y de grupo
        - **Credits & payments**: quizzes gratis, planes de certificación y Stripe
        - **Achievements**: XP, gems, rachas y ranking
        - **Catalog & admin**: quizzes, preguntas, grupos, planes y herramientas
        """,
        version="1.0.0",
        openapi_url="/openapi.json",
        docs_url="/docs",
        redoc_url=None,
    )
    app.state.services = services or build_services(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(health.router, prefix="/api/v1", tags=["Health Check"])
    app.include_router(submissions.router, prefix="/api/v1/quiz-submissions", tags=["Quiz Submissions"])
    app.include_router(certificates.router, prefix="/api/v1/certificates", tags=["Certificates"])
    app.include_router(users.router, prefix="/api/v1/users", tags=["Users & Credits"])
    app.include_router(payments.router, prefix="/api/v1/payments", tags=["Payments"])
    app.include_router(achievements.router, prefix="/api/v1/achievements", tags=["Achievements"])
    app.include_router(leaderboard.router, prefix="/api/v1/leaderboard", tags=["Leaderboard"])
    app.include_router(quizzes.router, prefix="/api/v1/quizzes", tags=["Quizzes"])
    app.include_router(groups.router, prefix="/api/v1/groups", tags=["Groups"])
    app.include_router(plans.router, prefix="/api/v1/certification-plans", tags=["Certification Plans"])
    app.include_router(dbtools.router, prefix="/api/v1/dbtools", tags=["DB Tools"])

    logger.info("DBKompare Functions API ready")
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("dbkompare.main:app", host="0.0.0.0", port=8000, reload=True)
