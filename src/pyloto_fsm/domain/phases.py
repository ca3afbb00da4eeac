"""Fases de callback por escopo (global, evento, transição).

Chaves podem ser informadas como membros do enum ou como strings; são
normalizadas na construção do modelo e chaves desconhecidas são rejeitadas.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from enum import StrEnum
from types import MappingProxyType
from typing import Any, TypeVar

from pyloto_fsm.domain.errors import InvalidCallbackPhaseError


class GlobalPhase(StrEnum):
    """Fases de callbacks globais (executados para todos os eventos)."""

    BEFORE_ALL_EVENTS = "before_all_events"
    AFTER_ALL_EVENTS = "after_all_events"
    ENSURE_ALL_EVENTS = "ensure_all_events"


class EventPhase(StrEnum):
    """Fases de callbacks de um evento."""

    BEFORE = "before"
    AFTER = "after"
    ENSURE = "ensure"


class TransitionPhase(StrEnum):
    """Fases de callbacks de uma transição."""

    AFTER = "after"
    SUCCESS = "success"


PHASE_SCOPES: dict[type[StrEnum], str] = {
    GlobalPhase: "Global",
    EventPhase: "Event",
    TransitionPhase: "Transition",
}

P = TypeVar("P", GlobalPhase, EventPhase, TransitionPhase)


def parse_phase(key: Any, phase_cls: type[P]) -> P:
    """Converte `key` para o enum do escopo ou lança InvalidCallbackPhaseError."""
    if isinstance(key, phase_cls):
        return key
    # Membro de outro escopo nunca é aceito, mesmo com o mesmo valor ("after").
    if isinstance(key, StrEnum) or not isinstance(key, str):
        raise InvalidCallbackPhaseError(key, PHASE_SCOPES[phase_cls], list(phase_cls))
    try:
        return phase_cls(key)
    except ValueError:
        raise InvalidCallbackPhaseError(key, PHASE_SCOPES[phase_cls], list(phase_cls)) from None


def parse_phases(
    callbacks: Mapping[Any, Callable[..., Any]] | None,
    phase_cls: type[P],
) -> Mapping[P, Callable[..., Any]]:
    """Normaliza um mapa de callbacks para chaves do enum do escopo (somente leitura)."""
    parsed = {parse_phase(key, phase_cls): fn for key, fn in (callbacks or {}).items()}
    return MappingProxyType(parsed)


def invalid_phase_keys(
    callbacks: Mapping[Any, Any],
    phase_cls: type[StrEnum],
) -> list[Any]:
    """Chaves que não são membros do enum do escopo (usado pelo validador)."""
    return [key for key in callbacks if not isinstance(key, phase_cls)]
