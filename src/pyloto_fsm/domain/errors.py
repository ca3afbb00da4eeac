"""Erros do engine FSM.

Duas classes disjuntas:
- ConfigurationError: definição malformada; lançado na construção da máquina.
- DispatchError: falhas recuperáveis lançadas por `StateMachine.dispatch`.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence


class FSMError(Exception):
    """Erro base do engine."""

    pass


class ConfigurationError(FSMError):
    """Definição inválida; nenhuma máquina utilizável é entregue ao host."""

    def __init__(self, errors: str | Sequence[str]) -> None:
        self.errors: list[str] = [errors] if isinstance(errors, str) else list(errors)
        super().__init__("; ".join(self.errors))


class InvalidCallbackPhaseError(ConfigurationError):
    """Chave de callback fora das fases permitidas para o escopo."""

    def __init__(self, name: object, scope: str, valid: Iterable[str]) -> None:
        self.name = name
        self.scope = scope
        self.valid = tuple(valid)
        super().__init__(
            f"{name} is not a valid {scope} callback. "
            f"The following are valid: {','.join(self.valid)}."
        )


class DispatchError(FSMError):
    """Erro de runtime retornado ao chamador de `dispatch`."""

    def __init__(self, message: str, event_name: str) -> None:
        super().__init__(message)
        self.event_name = event_name


class EventNotRegisteredError(DispatchError):
    """Evento desconhecido; estado inalterado."""

    def __init__(self, event_name: str) -> None:
        super().__init__(f"{event_name} is not registered.", event_name)


class CannotTransitionError(DispatchError):
    """Nenhuma transição candidata com guards satisfeitos; estado inalterado."""

    def __init__(self, current_state: str, event_name: str) -> None:
        super().__init__(
            f"Cannot transition from {current_state} when calling {event_name}.",
            event_name,
        )
        self.current_state = current_state


class PersistFailedError(DispatchError):
    """Função de persistência falhou APÓS o commit do novo estado (sem rollback)."""

    def __init__(self, cause: BaseException, event_name: str) -> None:
        super().__init__(f"Persist failed for {event_name}: {cause}", event_name)
        self.cause = cause


class DispatchDepthExceededError(DispatchError):
    """Dispatch reentrante passou do limite configurado (provável ciclo de hooks)."""

    def __init__(self, event_name: str, stack: Sequence[str], max_depth: int) -> None:
        super().__init__(
            f"Dispatch depth {max_depth} exceeded when calling {event_name} "
            f"(stack: {'>'.join(stack)}).",
            event_name,
        )
        self.stack = tuple(stack)
        self.max_depth = max_depth
