"""Configurações do engine via variáveis de ambiente (prefixo `FSM_`).

As opções de cada máquina (`set_max_dispatch_depth`, `set_serialize_dispatch`)
têm precedência sobre os valores lidos aqui.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

VALID_LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
VALID_LOG_FORMATS: frozenset[str] = frozenset({"json", "text"})


class EngineSettings(BaseSettings):
    """Configurações lidas do ambiente."""

    model_config = SettingsConfigDict(
        env_prefix="FSM_",
        case_sensitive=False,
    )

    # Aplicação
    service_name: str = "pyloto_fsm"

    # Observabilidade
    log_level: str = "INFO"
    log_format: str = "json"  # json | text

    # Dispatch
    max_dispatch_depth: int = 32  # 0 desabilita o limite de reentrância
    serialize_dispatch: bool = False  # True: RLock por máquina durante o dispatch inteiro

    def validate_logging_config(self) -> list[str]:
        """Valida nível e formato de log.

        Retorna lista de erros (vazia = OK).
        """
        errors: list[str] = []
        if self.log_level.upper() not in VALID_LOG_LEVELS:
            errors.append(
                f"FSM_LOG_LEVEL '{self.log_level}' inválido. "
                f"Valores válidos: {sorted(VALID_LOG_LEVELS)}"
            )
        if self.log_format.lower() not in VALID_LOG_FORMATS:
            errors.append("FSM_LOG_FORMAT inválido: use json | text")
        return errors

    def validate_dispatch_config(self) -> list[str]:
        """Valida limites de dispatch."""
        errors: list[str] = []
        if self.max_dispatch_depth < 0:
            errors.append("FSM_MAX_DISPATCH_DEPTH deve ser >= 0 (0 desabilita o limite)")
        return errors


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    """Retorna uma instância cacheada de EngineSettings."""
    return EngineSettings()
