"""Centralized logging configuration with correlation ID support."""

import logging
import os
import sys
from contextvars import ContextVar, Token
from pythonjsonlogger import jsonlogger

correlation_id_var: ContextVar[str] = ContextVar('correlation_id', default='')


class CorrelationIdFilter(logging.Filter):
    """Stamps every record with the current correlation id and the service name"""

    def __init__(self, service_name: str = ""):
        super().__init__()
        self.service_name = service_name

    def filter(self, record):
        record.correlation_id = correlation_id_var.get('')
        record.service = self.service_name
        return True


def setup_logging(service_name: str) -> None:
    """JSON logs on stdout; level from LOG_LEVEL (default INFO)"""
    logger = logging.getLogger()
    logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    logger.handlers = []

    json_handler = logging.StreamHandler(sys.stdout)
    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(service)s %(correlation_id)s %(message)s',
        rename_fields={
            'asctime': 'timestamp',
            'name': 'logger',
            'levelname': 'level',
        }
    )

    json_handler.setFormatter(formatter)
    json_handler.addFilter(CorrelationIdFilter(service_name))
    logger.addHandler(json_handler)
    logging.getLogger(__name__).info("Logging configured", extra={"log_level": logger.level})


def set_correlation_id(correlation_id: str) -> Token:
    return correlation_id_var.set(correlation_id)


def reset_correlation_id(token: Token) -> None:
    correlation_id_var.reset(token)


def get_correlation_id() -> str:
    return correlation_id_var.get('')
