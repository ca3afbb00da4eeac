"""Configuração do engine."""

from pyloto_fsm.config.settings import EngineSettings, get_settings

__all__ = ["EngineSettings", "get_settings"]
