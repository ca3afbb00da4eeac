"""Pipeline de callbacks: ordem fixa em torno de uma tentativa de transição.

    before_all_events → before(event)
      → [seleção da transição]
      → after(transition) → commit → persist → success(transition)
    → after(event) → after_all_events
    → ensure(event) → ensure_all_events   (sempre, exatamente uma vez, por último)

Apenas hooks da fase `before` abortam o dispatch (a exceção é propagada).
Exceções das demais fases são observadas: logadas e registradas em
`hook_errors`, sem interromper os passos seguintes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pyloto_fsm.domain.models import Event, EventCallback, Transition
from pyloto_fsm.domain.phases import EventPhase, GlobalPhase, TransitionPhase
from pyloto_fsm.observability.logging import get_logger

if TYPE_CHECKING:
    from pyloto_fsm.application.machine import StateMachine

logger: logging.Logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class HookFailure:
    """Exceção de hook observada e não propagada.

    `phase` segue o formato `<escopo>.<fase>`: `transition.after`,
    `transition.success`, `event.after`, `event.ensure`,
    `global.after_all_events`, `global.ensure_all_events`.
    """

    phase: str
    error: Exception


class CallbackPipeline:
    """Invoca o subconjunto correto de hooks, na ordem correta."""

    def __init__(self, global_callbacks: Mapping[GlobalPhase, EventCallback]) -> None:
        self._global = global_callbacks

    def before(self, machine: StateMachine, event: Event) -> None:
        """before_all_events e depois before(event); exceções propagam."""
        fn = self._global.get(GlobalPhase.BEFORE_ALL_EVENTS)
        if fn is not None:
            fn(machine, event)
        fn = event.callbacks.get(EventPhase.BEFORE)
        if fn is not None:
            fn(machine, event)

    def after_transition(
        self,
        machine: StateMachine,
        event: Event,
        transition: Transition,
        failures: list[HookFailure],
    ) -> None:
        fn = transition.callbacks.get(TransitionPhase.AFTER)
        self._observe("transition.after", fn, failures, machine, event, transition)

    def success(
        self,
        machine: StateMachine,
        event: Event,
        transition: Transition,
        failures: list[HookFailure],
    ) -> None:
        fn = transition.callbacks.get(TransitionPhase.SUCCESS)
        self._observe("transition.success", fn, failures, machine, event, transition)

    def after(self, machine: StateMachine, event: Event, failures: list[HookFailure]) -> None:
        """after(event) e depois after_all_events."""
        self._observe("event.after", event.callbacks.get(EventPhase.AFTER), failures, machine, event)
        self._observe(
            "global.after_all_events",
            self._global.get(GlobalPhase.AFTER_ALL_EVENTS),
            failures,
            machine,
            event,
        )

    def ensure(self, machine: StateMachine, event: Event, failures: list[HookFailure]) -> None:
        """ensure(event) e depois ensure_all_events; um não impede o outro."""
        self._observe(
            "event.ensure", event.callbacks.get(EventPhase.ENSURE), failures, machine, event
        )
        self._observe(
            "global.ensure_all_events",
            self._global.get(GlobalPhase.ENSURE_ALL_EVENTS),
            failures,
            machine,
            event,
        )

    @staticmethod
    def _observe(
        phase: str,
        fn: Callable[..., Any] | None,
        failures: list[HookFailure],
        *args: Any,
    ) -> None:
        if fn is None:
            return
        try:
            fn(*args)
        except Exception as exc:
            failures.append(HookFailure(phase=phase, error=exc))
            logger.warning(
                "fsm_hook_failed",
                extra={"phase": phase, "error": type(exc).__name__},
                exc_info=True,
            )
