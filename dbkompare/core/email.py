# dbkompare/core/email.py
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from dbkompare.core.config import Settings, settings

logger = logging.getLogger(__name__)


def send_email(
    email_to: str,
    subject: str,
    html_content: str,
    smtp_settings: Settings = settings,
) -> bool:
    """
    Envía un email usando SMTP.

    Args:
        email_to: Email del destinatario
        subject: Asunto del email
        html_content: Contenido HTML del email
        smtp_settings: Configuración SMTP a usar

    Returns:
        True si el email se envió exitosamente, False en caso contrario
    """
    if not smtp_settings.SMTP_USER:
        logger.warning(f"SMTP not configured, email to {email_to} not sent")
        return False

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{smtp_settings.SMTP_FROM_NAME} <{smtp_settings.SMTP_FROM_EMAIL}>"
        msg["To"] = email_to
        msg.attach(MIMEText(html_content, "html"))

        with smtplib.SMTP(smtp_settings.SMTP_HOST, smtp_settings.SMTP_PORT) as server:
            server.starttls()
            server.login(smtp_settings.SMTP_USER, smtp_settings.SMTP_PASSWORD)
            server.send_message(msg)

        logger.info(f"Email sent successfully to {email_to}")
        return True

    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Error sending email to {email_to}: {str(e)}")
        return False
