# dbkompare/utils/helpers.py
import secrets
import string
from datetime import datetime, timezone

CERTIFICATE_ID_ALPHABET = string.ascii_uppercase + string.digits
CERTIFICATE_ID_LENGTH = 12


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def generate_certificate_id() -> str:
    """Código público del certificado: 12 caracteres alfanuméricos en mayúsculas."""
    return "".join(secrets.choice(CERTIFICATE_ID_ALPHABET) for _ in range(CERTIFICATE_ID_LENGTH))


def ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_certificate_datetime(moment: datetime) -> str:
    """
    Fecha impresa en los certificados, siempre en UTC.
    Ejemplo: '19th October 2026 14:05:03 UTC'
    """
    moment = moment.astimezone(timezone.utc)
    return f"{ordinal(moment.day)} {moment.strftime('%B %Y %H:%M:%S')} UTC"
