"""Modelo de definição da máquina: Transition, Event e Definition.

- Transition: aresta de um conjunto de estados de origem para um destino
- Event: operação nomeada que agrupa transições candidatas e hooks
- Definition: conjunto imutável montado uma vez na construção da máquina
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pyloto_fsm.domain.phases import EventPhase, GlobalPhase, TransitionPhase, parse_phases

if TYPE_CHECKING:
    from pyloto_fsm.application.machine import StateMachine

Guard = Callable[[], bool]
EventCallback = Callable[["StateMachine", "Event"], None]
TransitionCallback = Callable[["StateMachine", "Event", "Transition"], None]
PersistFn = Callable[[str], None]


def _as_states(states: str | Iterable[str]) -> tuple[str, ...]:
    if isinstance(states, str):
        return (states,)
    return tuple(states)


@dataclass(frozen=True, slots=True)
class Transition:
    """Transição candidata de um evento.

    `from_states` aceita um único label ou uma sequência ordenada de labels.
    """

    from_states: tuple[str, ...]
    to_state: str
    guards: tuple[Guard, ...] = ()
    callbacks: Mapping[TransitionPhase, TransitionCallback] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "from_states", _as_states(self.from_states))
        object.__setattr__(self, "guards", tuple(self.guards))
        object.__setattr__(self, "callbacks", parse_phases(self.callbacks, TransitionPhase))

    def accepts(self, state: str) -> bool:
        """True se `state` está entre os estados de origem."""
        return state in self.from_states

    def guards_pass(self) -> bool:
        """Avalia guards em ordem; para no primeiro False. Lista vazia = True."""
        return all(guard() for guard in self.guards)


@dataclass(slots=True)
class Event:
    """Evento disparável pelo host.

    Guards do evento são anexados (após os guards próprios) a cada transição
    na construção. `error` é o erro "sticky" que um hook pode definir; ele é
    devolvido ao chamador em um dispatch bem-sucedido. O engine entrega aos
    hooks uma cópia por dispatch (ver `bind`), nunca a instância declarada.
    """

    name: str
    transitions: tuple[Transition, ...]
    guards: tuple[Guard, ...] = ()
    callbacks: Mapping[EventPhase, EventCallback] = field(default_factory=dict)
    error: Exception | None = field(default=None, compare=False)
    args: tuple[Any, ...] = field(default=(), compare=False, repr=False)
    kwargs: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        self.guards = tuple(self.guards)
        self.callbacks = parse_phases(self.callbacks, EventPhase)
        if self.guards:
            self.transitions = tuple(
                Transition(
                    from_states=t.from_states,
                    to_state=t.to_state,
                    guards=(*t.guards, *self.guards),
                    callbacks=t.callbacks,
                )
                for t in self.transitions
            )
        else:
            self.transitions = tuple(self.transitions)

    def bind(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Event:
        """Cópia rasa para um único dispatch, com erro zerado e argumentos anexados.

        Não usa `dataclasses.replace`: `__post_init__` anexaria os guards do
        evento uma segunda vez.
        """
        bound = Event.__new__(Event)
        bound.name = self.name
        bound.transitions = self.transitions
        bound.guards = self.guards
        bound.callbacks = self.callbacks
        bound.error = None
        bound.args = args
        bound.kwargs = kwargs
        return bound

    def detached(self) -> Event:
        """Cópia desvinculada da instância do host, guardada na Definition."""
        return self.bind((), {})


@dataclass(frozen=True, slots=True)
class Definition:
    """Definição validada da máquina (imutável após a construção)."""

    initial_state: str | None
    events: Mapping[str, Event]
    states: frozenset[str]
    global_callbacks: Mapping[GlobalPhase, EventCallback]
    persist_fn: PersistFn | None = None
    duplicate_event_names: tuple[str, ...] = ()

    @classmethod
    def build(
        cls,
        initial_state: str | None,
        events: Iterable[Event],
        global_callbacks: Mapping[GlobalPhase, EventCallback] | None = None,
        persist_fn: PersistFn | None = None,
    ) -> Definition:
        """Indexa eventos por nome e deriva o conjunto de estados uma única vez.

        Guarda cópias dos eventos: alterar as instâncias do host depois da
        construção não afeta a máquina. Nomes repetidos ficam em
        `duplicate_event_names` para o validador.
        """
        mapped: dict[str, Event] = {}
        duplicates: list[str] = []
        for event in events:
            if event.name in mapped:
                duplicates.append(event.name)
                continue
            mapped[event.name] = event.detached()
        return cls(
            initial_state=initial_state,
            events=MappingProxyType(mapped),
            states=derive_states(mapped.values()),
            global_callbacks=MappingProxyType(dict(global_callbacks or {})),
            persist_fn=persist_fn,
            duplicate_event_names=tuple(duplicates),
        )


def derive_states(events: Iterable[Event]) -> frozenset[str]:
    """Todos os labels que aparecem como origem ou destino de alguma transição."""
    states: set[str] = set()
    for event in events:
        for transition in event.transitions:
            states.update(transition.from_states)
            states.add(transition.to_state)
    return frozenset(states)
