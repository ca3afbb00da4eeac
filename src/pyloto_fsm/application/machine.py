"""StateMachine: dispatch de eventos com pipeline de hooks.

Conforme o contrato do engine:
- Construção: opções aplicadas em ordem, Definition montada e validada
- Dispatch: único ponto que muda o estado (um commit por dispatch bem-sucedido)
- Reentrância: hooks podem chamar `dispatch` na mesma máquina
"""

from __future__ import annotations

import contextlib
import logging
import threading
import time
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from pyloto_fsm.application.callbacks import CallbackPipeline, HookFailure
from pyloto_fsm.application.dispatcher import select_transition
from pyloto_fsm.application.options import MachineConfig, SetupOption, apply_options
from pyloto_fsm.application.state_store import StateStore
from pyloto_fsm.application.validator import validate_definition
from pyloto_fsm.config.settings import EngineSettings, get_settings
from pyloto_fsm.domain.errors import (
    CannotTransitionError,
    ConfigurationError,
    DispatchDepthExceededError,
    EventNotRegisteredError,
    PersistFailedError,
)
from pyloto_fsm.domain.models import Definition, Event
from pyloto_fsm.observability.context import DispatchFrame, current_stack, dispatch_frame
from pyloto_fsm.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


@dataclass(slots=True)
class DispatchResult:
    """Resultado de um dispatch bem-sucedido.

    Contém:
    - from_state / to_state: estados antes e depois do commit
    - error: erro "sticky" definido por um hook (None por padrão)
    - hook_errors: exceções de hooks observadas e não propagadas
    """

    event_name: str
    from_state: str
    to_state: str
    error: Exception | None = None
    hook_errors: list[HookFailure] = field(default_factory=list)


class StateMachine:
    """Máquina de estados finitos embutível."""

    def __init__(self, *options: SetupOption, settings: EngineSettings | None = None) -> None:
        self._setup(apply_options(options), settings)

    @classmethod
    def from_config(
        cls, config: MachineConfig, settings: EngineSettings | None = None
    ) -> StateMachine:
        """Constrói a partir de um MachineConfig já montado."""
        machine = cls.__new__(cls)
        machine._setup(config, settings)
        return machine

    def _setup(self, config: MachineConfig, settings: EngineSettings | None) -> None:
        settings = settings or get_settings()
        settings_errors = settings.validate_dispatch_config()
        if settings_errors:
            raise ConfigurationError(settings_errors)

        definition = Definition.build(
            initial_state=config.initial_state,
            events=config.events,
            global_callbacks=config.global_callbacks,
            persist_fn=config.persist_fn,
        )
        validate_definition(definition, config.name)

        self._name = config.name
        self._definition = definition
        self._store = StateStore(definition.initial_state)
        self._pipeline = CallbackPipeline(definition.global_callbacks)
        self._max_depth = (
            settings.max_dispatch_depth
            if config.max_dispatch_depth is None
            else config.max_dispatch_depth
        )
        serialize = (
            settings.serialize_dispatch
            if config.serialize_dispatch is None
            else config.serialize_dispatch
        )
        self._dispatch_lock: threading.RLock | None = threading.RLock() if serialize else None

        logger.info(
            "fsm_machine_created",
            extra={
                "machine": self._name,
                "initial_state": definition.initial_state,
                "events_count": len(definition.events),
                "states_count": len(definition.states),
                "max_dispatch_depth": self._max_depth,
                "serialize_dispatch": serialize,
            },
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def current_state(self) -> str:
        """Estado atual (leitura sob lock)."""
        return self._store.current_state

    @property
    def initial_state(self) -> str:
        return self._definition.initial_state  # type: ignore[return-value]

    @property
    def states(self) -> frozenset[str]:
        """Estados derivados das transições declaradas."""
        return self._definition.states

    @property
    def event_names(self) -> tuple[str, ...]:
        return tuple(self._definition.events)

    @property
    def dispatch_stack(self) -> tuple[str, ...]:
        """Eventos desta máquina em andamento no contexto atual (externo primeiro)."""
        return tuple(
            frame.event_name for frame in current_stack() if frame.machine_id == id(self)
        )

    def dispatch(self, event_name: str, *args: Any, **kwargs: Any) -> DispatchResult:
        """Dispara `event_name` e executa a primeira transição disponível.

        Args:
            event_name: nome do evento registrado
            *args, **kwargs: repassados aos hooks via `event.args`/`event.kwargs`

        Returns:
            DispatchResult com o erro "sticky" do evento (se algum hook definiu)

        Raises:
            EventNotRegisteredError: evento desconhecido (nenhum hook executa)
            DispatchDepthExceededError: limite de reentrância atingido
            CannotTransitionError: nenhuma transição aplicável
            PersistFailedError: persistência falhou após o commit
            Exception: qualquer exceção de hook da fase `before`, sem alteração
        """
        declared = self._definition.events.get(event_name)
        if declared is None:
            logger.warning(
                "fsm_event_not_registered",
                extra={"machine": self._name, "event": event_name},
            )
            raise EventNotRegisteredError(event_name)

        self._check_depth(event_name)

        event = declared.bind(args, kwargs)
        failures: list[HookFailure] = []
        frame = DispatchFrame(machine_id=id(self), machine_name=self._name, event_name=event_name)
        with self._serialized(), dispatch_frame(frame):
            try:
                return self._run(event, failures)
            finally:
                self._pipeline.ensure(self, event, failures)

    def _run(self, event: Event, failures: list[HookFailure]) -> DispatchResult:
        start = time.perf_counter()
        self._pipeline.before(self, event)

        from_state = self._store.current_state
        transition = select_transition(event, from_state)
        if transition is None:
            current = self._store.current_state
            logger.debug(
                "fsm_transition_invalid",
                extra={"machine": self._name, "event": event.name, "current_state": current},
            )
            raise CannotTransitionError(current, event.name)

        self._pipeline.after_transition(self, event, transition, failures)

        self._store.set(transition.to_state)
        logger.debug(
            "fsm_transition_committed",
            extra={
                "machine": self._name,
                "event": event.name,
                "from_state": from_state,
                "next_state": transition.to_state,
            },
        )

        persist_fn = self._definition.persist_fn
        if persist_fn is not None:
            try:
                persist_fn(transition.to_state)
            except Exception as exc:
                # Estado já foi comitado; a divergência é exposta, não escondida.
                logger.error(
                    "fsm_persist_failed",
                    extra={
                        "machine": self._name,
                        "event": event.name,
                        "next_state": transition.to_state,
                        "error": type(exc).__name__,
                    },
                )
                raise PersistFailedError(exc, event.name) from exc

        self._pipeline.success(self, event, transition, failures)
        self._pipeline.after(self, event, failures)

        logger.debug(
            "fsm_dispatch_completed",
            extra={
                "machine": self._name,
                "event": event.name,
                "elapsed_ms": round((time.perf_counter() - start) * 1000, 2),
                "hook_errors_count": len(failures),
            },
        )
        return DispatchResult(
            event_name=event.name,
            from_state=from_state,
            to_state=transition.to_state,
            error=event.error,
            hook_errors=failures,
        )

    def _check_depth(self, event_name: str) -> None:
        if not self._max_depth:
            return
        stack = self.dispatch_stack
        if len(stack) >= self._max_depth:
            logger.warning(
                "fsm_dispatch_depth_exceeded",
                extra={
                    "machine": self._name,
                    "event": event_name,
                    "max_dispatch_depth": self._max_depth,
                },
            )
            raise DispatchDepthExceededError(event_name, (*stack, event_name), self._max_depth)

    @contextlib.contextmanager
    def _serialized(self) -> Iterator[None]:
        if self._dispatch_lock is None:
            yield
            return
        with self._dispatch_lock:
            yield

    def __repr__(self) -> str:
        return f"StateMachine(name={self._name!r}, current_state={self.current_state!r})"
