"""Validação da Definition na construção da máquina (fail-fast).

Uma máquina malformada é erro de programação, não operacional: todos os
problemas são coletados e lançados juntos em um ConfigurationError.
"""

from __future__ import annotations

import logging
from enum import StrEnum

from pyloto_fsm.domain.errors import ConfigurationError, InvalidCallbackPhaseError
from pyloto_fsm.domain.models import Definition
from pyloto_fsm.domain.phases import (
    EventPhase,
    GlobalPhase,
    TransitionPhase,
    invalid_phase_keys,
)
from pyloto_fsm.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


def _invalid_callback_message(name: object, scope: str, valid: type[StrEnum]) -> str:
    return str(InvalidCallbackPhaseError(name, scope, list(valid)))


def collect_definition_errors(definition: Definition) -> list[str]:
    """Retorna lista de erros (vazia = definição válida)."""
    errors: list[str] = []

    if not definition.initial_state:
        errors.append("You must set an initial state.")
    elif definition.initial_state not in definition.states:
        # Aceita o estado inicial como origem ou destino de qualquer transição.
        errors.append(
            f"initial state {definition.initial_state} was not found in the registered states."
        )

    if not definition.events:
        errors.append("You must define at least 1 event.")

    for name in definition.duplicate_event_names:
        errors.append(f"Event {name} is declared more than once.")

    for key in invalid_phase_keys(definition.global_callbacks, GlobalPhase):
        errors.append(_invalid_callback_message(key, "Global", GlobalPhase))

    for event in definition.events.values():
        for key in invalid_phase_keys(event.callbacks, EventPhase):
            errors.append(_invalid_callback_message(key, "Event", EventPhase))
        for transition in event.transitions:
            for key in invalid_phase_keys(transition.callbacks, TransitionPhase):
                errors.append(_invalid_callback_message(key, "Transition", TransitionPhase))

    return errors


def validate_definition(definition: Definition, machine_name: str = "state_machine") -> None:
    """Lança ConfigurationError se a definição for inválida."""
    errors = collect_definition_errors(definition)
    if errors:
        logger.error(
            "fsm_definition_invalid",
            extra={"machine": machine_name, "errors": errors},
        )
        raise ConfigurationError(errors)
