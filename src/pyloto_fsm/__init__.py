"""pyloto_fsm: engine de máquina de estados finitos embutível.

Exporta:
- StateMachine / DispatchResult: construção e dispatch de eventos
- Event / Transition: modelo de definição
- set_*: opções de setup aplicadas em ordem na construção
- GlobalPhase / EventPhase / TransitionPhase: fases de callback
- configure_engine: validação das configurações e logging estruturado
- Erros de configuração e de runtime
"""

from pyloto_fsm.application.callbacks import HookFailure
from pyloto_fsm.application.machine import DispatchResult, StateMachine
from pyloto_fsm.application.options import (
    MachineConfig,
    SetupOption,
    set_events,
    set_global_callbacks,
    set_initial,
    set_max_dispatch_depth,
    set_name,
    set_persist_fn,
    set_serialize_dispatch,
)
from pyloto_fsm.bootstrap import configure_engine
from pyloto_fsm.domain.errors import (
    CannotTransitionError,
    ConfigurationError,
    DispatchDepthExceededError,
    DispatchError,
    EventNotRegisteredError,
    FSMError,
    InvalidCallbackPhaseError,
    PersistFailedError,
)
from pyloto_fsm.domain.models import Event, Transition
from pyloto_fsm.domain.phases import EventPhase, GlobalPhase, TransitionPhase

__all__ = [
    "configure_engine",
    "StateMachine",
    "DispatchResult",
    "HookFailure",
    "MachineConfig",
    "SetupOption",
    "Event",
    "Transition",
    "GlobalPhase",
    "EventPhase",
    "TransitionPhase",
    "set_initial",
    "set_events",
    "set_global_callbacks",
    "set_persist_fn",
    "set_name",
    "set_max_dispatch_depth",
    "set_serialize_dispatch",
    "FSMError",
    "ConfigurationError",
    "InvalidCallbackPhaseError",
    "DispatchError",
    "EventNotRegisteredError",
    "CannotTransitionError",
    "PersistFailedError",
    "DispatchDepthExceededError",
]
