"""Contexto de dispatch: pilha explícita de eventos em execução e correlation_id.

Cada chamada a `StateMachine.dispatch` empilha um frame enquanto executa.
Hooks que chamam `dispatch` novamente (dispatch reentrante) empilham frames
aninhados no mesmo contexto, o que permite diagnóstico e limite de profundidade.
"""

from __future__ import annotations

import contextlib
import uuid
from collections.abc import Iterator
from contextvars import ContextVar
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DispatchFrame:
    """Um dispatch em andamento: máquina (por id) e nome do evento."""

    machine_id: int
    machine_name: str
    event_name: str


_dispatch_stack: ContextVar[tuple[DispatchFrame, ...]] = ContextVar(
    "dispatch_stack", default=()
)
_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Retorna o correlation_id corrente (ou vazio fora de um dispatch)."""

    return _correlation_id.get()


def current_stack() -> tuple[DispatchFrame, ...]:
    """Frames em andamento no contexto atual, do mais externo ao mais interno."""

    return _dispatch_stack.get()


def render_stack() -> str:
    """Representação compacta da pilha para logs (ex.: `a>b>c`)."""

    return ">".join(frame.event_name for frame in _dispatch_stack.get())


@contextlib.contextmanager
def dispatch_frame(frame: DispatchFrame) -> Iterator[tuple[DispatchFrame, ...]]:
    """Empilha `frame` durante o bloco; gera correlation_id no dispatch externo."""

    stack = _dispatch_stack.get()
    stack_token = _dispatch_stack.set((*stack, frame))
    correlation_token = None
    if not _correlation_id.get():
        correlation_token = _correlation_id.set(str(uuid.uuid4()))
    try:
        yield _dispatch_stack.get()
    finally:
        if correlation_token is not None:
            _correlation_id.reset(correlation_token)
        _dispatch_stack.reset(stack_token)
