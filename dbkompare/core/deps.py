# dbkompare/core/deps.py
"""
Contenedor de clientes externos y dependencias de FastAPI.

Los clientes (DynamoDB, S3, Stripe, OpenAI, Cognito, SMTP, reloj) se crean una vez
en create_app y viajan en app.state; los servicios se construyen por
petición a partir de ellos.
"""
from dataclasses import dataclass
from datetime import datetime
from functools import partial
from typing import Any, Callable, Dict, Optional

from fastapi import Header, Request

from dbkompare.core.config import Settings
from dbkompare.core.email import send_email
from dbkompare.core.security import require_group
from dbkompare.db.dynamodb import DynamoDBStore
from dbkompare.services.account_service import AccountService
from dbkompare.services.achievement_service import AchievementTracker
from dbkompare.services.catalog_service import CatalogService
from dbkompare.services.certificate_service import CertificateIssuer, GroupCertificateService
from dbkompare.services.credit_service import CreditLedger
from dbkompare.services.dbtool_service import DbToolService
from dbkompare.services.identity_service import CognitoDirectory
from dbkompare.services.leaderboard_service import LeaderboardService
from dbkompare.services.payment_service import PaymentService, StripeGateway
from dbkompare.services.storage_service import S3Storage
from dbkompare.services.submission_service import SubmissionService
from dbkompare.services.text_generation_service import TextGenerationService
from dbkompare.services.user_service import UserService
from dbkompare.utils.helpers import utc_now


@dataclass
class Services:
    settings: Settings
    store: Any
    storage: Any
    payments: Any
    text_generation: Any
    send_email: Callable[[str, str, str], bool]
    clock: Callable[[], datetime] = utc_now
    directory: Any = None


def build_services(settings: Settings) -> Services:
    return Services(
        settings=settings,
        store=DynamoDBStore(settings),
        storage=S3Storage(settings),
        payments=StripeGateway(settings.STRIPE_SECRET_KEY, settings.STRIPE_WEBHOOK_SECRET),
        text_generation=TextGenerationService(settings.OPENAI_API_KEY, settings.OPENAI_MODEL),
        send_email=partial(send_email, smtp_settings=settings),
        directory=CognitoDirectory(settings),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def require_admin(request: Request, authorization: Optional[str] = Header(None)) -> Dict[str, Any]:
    services = get_services(request)
    return require_group(authorization, services.settings.ADMIN_GROUP)


# ── Fábricas de servicios ──

def certificate_issuer(services: Services) -> CertificateIssuer:
    return CertificateIssuer(services.settings, services.storage, services.clock)


def get_submission_service(request: Request) -> SubmissionService:
    services = get_services(request)
    return SubmissionService(services.store, certificate_issuer(services), services.settings, services.clock)


def get_group_certificate_service(request: Request) -> GroupCertificateService:
    services = get_services(request)
    return GroupCertificateService(services.store, certificate_issuer(services), services.settings, services.clock)


def get_credit_ledger(request: Request) -> CreditLedger:
    services = get_services(request)
    return CreditLedger(services.store, services.settings, services.clock)


def get_payment_service(request: Request) -> PaymentService:
    services = get_services(request)
    ledger = CreditLedger(services.store, services.settings, services.clock)
    return PaymentService(services.store, services.payments, ledger, services.settings)


def get_achievement_tracker(request: Request) -> AchievementTracker:
    services = get_services(request)
    return AchievementTracker(services.store, services.clock)


def get_leaderboard_service(request: Request) -> LeaderboardService:
    services = get_services(request)
    return LeaderboardService(services.store, services.clock)


def get_catalog_service(request: Request) -> CatalogService:
    services = get_services(request)
    return CatalogService(services.store, services.clock)


def get_dbtool_service(request: Request) -> DbToolService:
    services = get_services(request)
    return DbToolService(services.store, services.text_generation, services.clock)


def get_account_service(request: Request) -> AccountService:
    services = get_services(request)
    return AccountService(services.store, services.settings, services.send_email, services.clock)


def user_service(services: Services) -> UserService:
    return UserService(services.store, services.directory, services.settings, services.send_email, services.clock)


def get_user_service(request: Request) -> UserService:
    return user_service(get_services(request))
