# dbkompare/utils/responses.py
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Allow-Methods": "*",
}


def send_response(status_code: int, message: str, data: Optional[Any] = None) -> JSONResponse:
    """
    Sobre común de todas las respuestas: {"message": ..., "data": ...}
    """
    return JSONResponse(
        status_code=status_code,
        content={"message": message, "data": jsonable_encoder(data)},
        headers=CORS_HEADERS,
    )
