# dbkompare/api/v1/endpoints/health.py
from fastapi import APIRouter, Depends

from dbkompare.core.deps import Services, get_services
from dbkompare.utils.helpers import utc_now
from dbkompare.utils.responses import send_response

router = APIRouter()


def configured(value: str) -> dict:
    return {"status": "ready" if value else "misconfigured"}


@router.get("/health", summary="Verifica el estado de configuración del servicio")
def check_health(services: Services = Depends(get_services)):
    """
    Health check sin llamadas a red: indica qué integraciones tienen
    credenciales configuradas.
    """
    settings = services.settings
    return send_response(200, "OK", {
        "status": "ok",
        "timestamp": utc_now().isoformat(),
        "services": {
            "dynamodb": {"status": "ready", "region": settings.AWS_REGION},
            "storage": configured(settings.BUCKET_NAME),
            "stripe": configured(settings.STRIPE_SECRET_KEY),
            "openai": configured(settings.OPENAI_API_KEY),
            "smtp": configured(settings.SMTP_USER),
        },
    })
