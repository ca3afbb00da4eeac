"""Seleção de transição, determinística e sem side effects próprios.

Conforme o contrato de dispatch:
- Candidata: transição cujo `from_states` contém o estado atual
- Selecionada: primeira candidata (ordem de declaração) com todos os guards True
- First-match-wins: nenhuma pontuação, nenhuma avaliação posterior
"""

from __future__ import annotations

import logging

from pyloto_fsm.domain.models import Event, Transition
from pyloto_fsm.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


def select_transition(event: Event, current_state: str) -> Transition | None:
    """Retorna a transição selecionada ou None se nenhuma se aplica.

    Guards só são avaliados para candidatas; a avaliação de cada lista para no
    primeiro False.
    """
    for index, transition in enumerate(event.transitions):
        if not transition.accepts(current_state):
            continue
        if transition.guards_pass():
            logger.debug(
                "fsm_transition_selected",
                extra={
                    "event": event.name,
                    "current_state": current_state,
                    "next_state": transition.to_state,
                    "transition_index": index,
                },
            )
            return transition
    return None
