"""Opções de setup aplicadas em ordem sobre um MachineConfig vazio.

Cada opção pode lançar ConfigurationError, abortando a construção.

Uso típico:
    machine = StateMachine(
        set_initial("start"),
        set_events([...]),
        set_global_callbacks({"ensure_all_events": fn}),
        set_persist_fn(store.save_state),
    )
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pyloto_fsm.domain.errors import ConfigurationError
from pyloto_fsm.domain.models import Event, EventCallback, PersistFn
from pyloto_fsm.domain.phases import GlobalPhase, parse_phases


@dataclass(slots=True)
class MachineConfig:
    """Registro mutável montado pelas opções antes da validação."""

    name: str = "state_machine"
    initial_state: str | None = None
    events: list[Event] = field(default_factory=list)
    global_callbacks: Mapping[GlobalPhase, EventCallback] = field(default_factory=dict)
    persist_fn: PersistFn | None = None
    max_dispatch_depth: int | None = None  # None = valor de EngineSettings
    serialize_dispatch: bool | None = None  # None = valor de EngineSettings


SetupOption = Callable[[MachineConfig], None]


def set_initial(state: str) -> SetupOption:
    """Define o estado inicial."""

    def option(config: MachineConfig) -> None:
        config.initial_state = state

    return option


def set_events(events: Iterable[Event]) -> SetupOption:
    """Define os eventos da máquina (nomes duplicados são rejeitados na validação)."""

    def option(config: MachineConfig) -> None:
        config.events = list(events)

    return option


def set_global_callbacks(callbacks: Mapping[Any, EventCallback]) -> SetupOption:
    """Define callbacks globais (chaves em GlobalPhase ou suas strings)."""

    def option(config: MachineConfig) -> None:
        config.global_callbacks = parse_phases(callbacks, GlobalPhase)

    return option


def set_persist_fn(fn: PersistFn) -> SetupOption:
    """Define a função chamada com o novo estado após cada commit."""

    def option(config: MachineConfig) -> None:
        config.persist_fn = fn

    return option


def set_name(name: str) -> SetupOption:
    """Nome usado em logs e na pilha de dispatch."""

    def option(config: MachineConfig) -> None:
        if not name:
            raise ConfigurationError("Machine name must not be empty.")
        config.name = name

    return option


def set_max_dispatch_depth(depth: int) -> SetupOption:
    """Limite de dispatches aninhados por máquina (0 desabilita)."""

    def option(config: MachineConfig) -> None:
        if depth < 0:
            raise ConfigurationError(f"max_dispatch_depth must be >= 0, got {depth}.")
        config.max_dispatch_depth = depth

    return option


def set_serialize_dispatch(enabled: bool = True) -> SetupOption:
    """Serializa dispatches inteiros da máquina com um RLock."""

    def option(config: MachineConfig) -> None:
        config.serialize_dispatch = enabled

    return option


def apply_options(options: Iterable[SetupOption]) -> MachineConfig:
    """Aplica as opções, em ordem, sobre um MachineConfig vazio."""
    config = MachineConfig()
    for option in options:
        option(config)
    return config
