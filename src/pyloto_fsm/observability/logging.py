"""Configuração de logging estruturado (JSON)."""

from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

from pyloto_fsm.observability.context import get_correlation_id, render_stack

_JSON_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s %(message)s "
    "%(correlation_id)s %(dispatch_stack)s %(service)s"
)
_TEXT_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s [%(correlation_id)s %(dispatch_stack)s] %(message)s"
)


class DispatchContextFilter(logging.Filter):
    """Insere service, correlation_id e dispatch_stack no record de log.

    Importante: nunca adicionar argumentos de eventos (payloads do host) nos logs.
    """

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self._service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        # Preserva correlation_id passado explicitamente via `extra`.
        existing = getattr(record, "correlation_id", None)
        record.correlation_id = existing if existing else get_correlation_id()
        record.dispatch_stack = render_stack()
        record.service = self._service_name
        return True


def configure_logging(level: str, service_name: str, log_format: str = "json") -> None:
    """Configura o handler raiz com os campos padrão do engine."""

    if log_format == "text":
        formatter: logging.Formatter = logging.Formatter(_TEXT_FORMAT)
    else:
        formatter = JsonFormatter(
            _JSON_FORMAT,
            rename_fields={"levelname": "level", "name": "logger"},
        )

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(DispatchContextFilter(service_name))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]


def get_logger(name: str) -> logging.Logger:
    """Retorna logger simples; o filtro injeta service/correlation_id/dispatch_stack."""

    return logging.getLogger(name)
