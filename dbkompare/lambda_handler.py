# dbkompare/lambda_handler.py
# Punto de entrada de AWS Lambda: API Gateway -> Mangum -> FastAPI
# y triggers de Cognito -> UserService

import json
import logging

from mangum import Mangum

from dbkompare.core.deps import user_service
from dbkompare.main import app
from dbkompare.utils.responses import CORS_HEADERS

logger = logging.getLogger("dbkompare")

asgi_handler = Mangum(app, lifespan="off")


def cognito_trigger_handler(event, context):
    """
    Los triggers de Cognito esperan el evento de vuelta; un error se
    propaga para que Cognito lo muestre al usuario.
    """
    logger.info(f"Cognito trigger {event.get('triggerSource')} for {event.get('userName')}")
    try:
        return user_service(app.state.services).handle_post_confirmation(event)
    except Exception as e:
        logger.exception(f"Cognito trigger {event.get('triggerSource')} failed: {str(e)}")
        raise


def handler(event, context):
    """
    Handler de Lambda para todas las rutas /api/v1/* y los triggers de Cognito.
    Si Mangum falla antes de llegar a FastAPI se devuelve igualmente el sobre.
    """
    if isinstance(event, dict) and "triggerSource" in event:
        return cognito_trigger_handler(event, context)
    try:
        return asgi_handler(event, context)
    except Exception as e:
        logger.exception(f"Unhandled error in Lambda handler: {str(e)}")
        return {
            "statusCode": 500,
            "body": json.dumps({"message": "Internal server error", "data": None}),
            "headers": {"Content-Type": "application/json", **CORS_HEADERS},
        }
