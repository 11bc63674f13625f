# dbkompare/core/logging_config.py
import json
import logging
import logging.config
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

# Atributos opcionales que se copian del LogRecord al JSON
CONTEXT_FIELDS = (
    "service",
    "request_id",
    "endpoint",
    "method",
    "status_code",
    "response_time_ms",
    "user_id",
    "error_code",
)


class StructuredFormatter(logging.Formatter):
    """
    Formatter que genera logs en formato JSON estructurado
    para CloudWatch Logs Insights
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def build_logging_config(level: str = "INFO", log_to_file: bool = False,
                         log_dir: str = "/tmp/logs") -> Dict[str, Any]:
    """
    Construye el diccionario para dictConfig.

    En Lambda sólo /tmp es escribible, por eso los ficheros rotados
    son opcionales y la salida principal es stdout en JSON.
    """
    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "structured",
            "level": level,
            "stream": "ext://sys.stdout",
        },
    }
    app_handlers = ["console"]

    if log_to_file:
        handlers["file_all"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "structured",
            "filename": str(Path(log_dir) / "app.log"),
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
            "level": level,
        }
        handlers["file_errors"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "structured",
            "filename": str(Path(log_dir) / "errors.log"),
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
            "level": "ERROR",
        }
        app_handlers += ["file_all", "file_errors"]

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": StructuredFormatter,
            },
        },
        "handlers": handlers,
        "loggers": {
            "dbkompare": {
                "level": level,
                "handlers": app_handlers,
                "propagate": False,
            },
            "uvicorn": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
            "botocore": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
        "root": {
            "level": "WARNING",
            "handlers": ["console"],
        },
    }


def setup_logging(level: str = "INFO", log_to_file: bool = False,
                  log_dir: str = "/tmp/logs") -> None:
    """
    Configura el sistema de logging con formato estructurado
    """
    if log_to_file:
        Path(log_dir).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(build_logging_config(level, log_to_file, log_dir))

    logger = logging.getLogger("dbkompare")
    logger.info("Logging system initialized successfully")
    if log_to_file:
        logger.info(f"Log files will be stored in: {Path(log_dir).absolute()}")


class LoggerAdapter(logging.LoggerAdapter):
    """
    Adapter personalizado para agregar contexto adicional a los logs
    """

    def __init__(self, logger: logging.Logger, extra: Dict[str, Any] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        if self.extra:
            kwargs.setdefault("extra", {}).update(self.extra)
        return msg, kwargs


def get_service_logger(name: str, service: str) -> LoggerAdapter:
    """
    Obtiene un logger etiquetado con el servicio que lo usa
    """
    return LoggerAdapter(logging.getLogger(name), {"service": service})


def log_api_request(logger: logging.Logger, method: str, endpoint: str,
                    status_code: int = None, response_time_ms: int = None,
                    user_id: str = None, **kwargs):
    """
    Registra información de una petición API con contexto estructurado

    Args:
        logger: Logger a usar
        method: Método HTTP
        endpoint: Endpoint accedido
        status_code: Código de respuesta HTTP
        response_time_ms: Tiempo de respuesta en millisegundos
        user_id: ID del usuario (si está autenticado)
        **kwargs: Información adicional
    """
    extra = {
        "method": method,
        "endpoint": endpoint,
        "service": "api",
    }

    if status_code:
        extra["status_code"] = status_code
    if response_time_ms is not None:
        extra["response_time_ms"] = response_time_ms
    if user_id:
        extra["user_id"] = user_id

    extra.update(kwargs)

    if status_code and status_code >= 500:
        logger.error(f"API request failed: {method} {endpoint}", extra=extra)
    elif status_code and status_code >= 400:
        logger.warning(f"API request rejected: {method} {endpoint}", extra=extra)
    else:
        logger.info(f"API request: {method} {endpoint}", extra=extra)
