"""Inicialização do engine pelo host: logging e validação das configurações."""

from __future__ import annotations

from pyloto_fsm.config.settings import EngineSettings, get_settings
from pyloto_fsm.domain.errors import ConfigurationError
from pyloto_fsm.observability.logging import configure_logging


def configure_engine(settings: EngineSettings | None = None) -> EngineSettings:
    """Valida as configurações e instala o logging estruturado.

    Chamado uma vez pelo host antes de construir máquinas. Retorna as
    configurações efetivas.

    Raises:
        ConfigurationError: com todos os erros encontrados
    """
    settings = settings or get_settings()

    validation_errors: list[str] = []
    validation_errors.extend(settings.validate_logging_config())
    validation_errors.extend(settings.validate_dispatch_config())
    if validation_errors:
        raise ConfigurationError(validation_errors)

    configure_logging(
        settings.log_level.upper(),
        settings.service_name,
        log_format=settings.log_format.lower(),
    )
    return settings
