"""Testes de dispatch reentrante, pilha de dispatch e concorrência."""

from __future__ import annotations

import threading
from collections import Counter

import pytest

from pyloto_fsm import (
    DispatchDepthExceededError,
    Event,
    StateMachine,
    Transition,
    set_events,
    set_global_callbacks,
    set_initial,
    set_max_dispatch_depth,
    set_name,
    set_serialize_dispatch,
)
from pyloto_fsm.observability.context import current_stack, get_correlation_id


class TestChainedDispatch:
    """Cenário 4: first_event → second_event → third_event via hooks after."""

    def test_sequential_chain_reaches_completed(self) -> None:
        ensure_counts: Counter[str] = Counter()
        ensure_all_counts: Counter[str] = Counter()
        stacks: list[tuple[str, ...]] = []

        def chain_to(next_event: str):
            def after(machine: StateMachine, event: Event) -> None:
                stacks.append(machine.dispatch_stack)
                machine.dispatch(next_event)

            return after

        def ensure(machine: StateMachine, event: Event) -> None:
            ensure_counts[event.name] += 1

        def ensure_all(machine: StateMachine, event: Event) -> None:
            ensure_all_counts[event.name] += 1

        machine = StateMachine(
            set_initial("start"),
            set_events(
                [
                    Event(
                        name="first_event",
                        transitions=[Transition(from_states="start", to_state="succeeded_first")],
                        callbacks={"after": chain_to("second_event"), "ensure": ensure},
                    ),
                    Event(
                        name="second_event",
                        transitions=[
                            Transition(from_states="succeeded_first", to_state="succeeded_second")
                        ],
                        callbacks={"after": chain_to("third_event"), "ensure": ensure},
                    ),
                    Event(
                        name="third_event",
                        transitions=[
                            Transition(from_states="succeeded_second", to_state="completed")
                        ],
                        callbacks={"ensure": ensure},
                    ),
                ]
            ),
            set_global_callbacks({"ensure_all_events": ensure_all}),
        )

        result = machine.dispatch("first_event")

        assert machine.current_state == "completed"
        assert result.to_state == "succeeded_first"
        assert result.hook_errors == []
        assert ensure_counts == {"first_event": 1, "second_event": 1, "third_event": 1}
        assert ensure_all_counts == {"first_event": 1, "second_event": 1, "third_event": 1}
        assert stacks == [("first_event",), ("first_event", "second_event")]
        assert machine.dispatch_stack == ()

    def test_nested_dispatch_shares_correlation_id(self) -> None:
        seen: list[str] = []

        def record_id(machine: StateMachine, event: Event) -> None:
            seen.append(get_correlation_id())

        def chain(machine: StateMachine, event: Event) -> None:
            seen.append(get_correlation_id())
            machine.dispatch("second")

        machine = StateMachine(
            set_initial("a"),
            set_events(
                [
                    Event(
                        name="first",
                        transitions=[Transition(from_states="a", to_state="b")],
                        callbacks={"after": chain},
                    ),
                    Event(
                        name="second",
                        transitions=[Transition(from_states="b", to_state="c")],
                        callbacks={"after": record_id},
                    ),
                ]
            ),
        )

        machine.dispatch("first")

        assert len(seen) == 2
        assert seen[0] and seen[0] == seen[1]
        assert get_correlation_id() == ""
        assert current_stack() == ()

    def test_nested_failure_is_observed_by_outer_hook(self) -> None:
        def chain(machine: StateMachine, event: Event) -> None:
            machine.dispatch("missing_transition")

        machine = StateMachine(
            set_initial("a"),
            set_events(
                [
                    Event(
                        name="first",
                        transitions=[Transition(from_states="a", to_state="b")],
                        callbacks={"after": chain},
                    ),
                    Event(
                        name="missing_transition",
                        transitions=[Transition(from_states="z", to_state="a")],
                    ),
                ]
            ),
        )

        result = machine.dispatch("first")

        assert machine.current_state == "b"
        assert [f.phase for f in result.hook_errors] == ["event.after"]


class TestDepthGuard:
    def _cyclic_machine(self, *options) -> tuple[StateMachine, Counter[str]]:
        ensure_counts: Counter[str] = Counter()

        def again(machine: StateMachine, event: Event) -> None:
            machine.dispatch("ping")

        def ensure(machine: StateMachine, event: Event) -> None:
            ensure_counts[event.name] += 1

        machine = StateMachine(
            set_initial("a"),
            set_events(
                [
                    Event(
                        name="ping",
                        transitions=[Transition(from_states="a", to_state="a")],
                        callbacks={"after": again, "ensure": ensure},
                    )
                ]
            ),
            *options,
        )
        return machine, ensure_counts

    def test_cycle_stopped_at_max_depth(self) -> None:
        machine, ensure_counts = self._cyclic_machine(set_max_dispatch_depth(3))

        result = machine.dispatch("ping")

        # Profundidade 3 executa; a 4ª chamada é rejeitada e observada pelo hook.
        assert ensure_counts["ping"] == 3
        assert machine.current_state == "a"
        assert result.hook_errors == []
        assert machine.dispatch_stack == ()

    def test_depth_error_details(self) -> None:
        errors: list[DispatchDepthExceededError] = []

        def again(machine: StateMachine, event: Event) -> None:
            try:
                machine.dispatch("ping")
            except DispatchDepthExceededError as exc:
                errors.append(exc)
                raise

        machine = StateMachine(
            set_initial("a"),
            set_events(
                [
                    Event(
                        name="ping",
                        transitions=[Transition(from_states="a", to_state="a")],
                        callbacks={"after": again},
                    )
                ]
            ),
            set_max_dispatch_depth(2),
        )

        machine.dispatch("ping")

        assert len(errors) == 1
        assert errors[0].max_depth == 2
        assert errors[0].stack == ("ping", "ping", "ping")
        assert errors[0].event_name == "ping"

    def test_zero_disables_guard(self) -> None:
        calls = {"n": 0}

        def bounded(machine: StateMachine, event: Event) -> None:
            calls["n"] += 1
            if calls["n"] < 50:
                machine.dispatch("ping")

        machine = StateMachine(
            set_initial("a"),
            set_events(
                [
                    Event(
                        name="ping",
                        transitions=[Transition(from_states="a", to_state="a")],
                        callbacks={"after": bounded},
                    )
                ]
            ),
            set_max_dispatch_depth(0),
        )

        machine.dispatch("ping")

        assert calls["n"] == 50

    def test_stack_is_per_machine(self) -> None:
        inner_stacks: list[tuple[str, ...]] = []

        inner = StateMachine(
            set_name("inner"),
            set_initial("x"),
            set_events(
                [
                    Event(
                        name="inner_event",
                        transitions=[Transition(from_states="x", to_state="y")],
                        callbacks={
                            "before": lambda m, e: inner_stacks.append(m.dispatch_stack)
                        },
                    )
                ]
            ),
        )

        outer = StateMachine(
            set_name("outer"),
            set_initial("a"),
            set_events(
                [
                    Event(
                        name="outer_event",
                        transitions=[Transition(from_states="a", to_state="b")],
                        callbacks={"after": lambda m, e: inner.dispatch("inner_event")},
                    )
                ]
            ),
            set_max_dispatch_depth(1),
        )

        outer.dispatch("outer_event")

        assert inner.current_state == "y"
        assert inner_stacks == [("inner_event",)]


class TestConcurrency:
    def test_dispatch_from_other_thread_inside_hook(self) -> None:
        """Lock do estado não é mantido durante o dispatch: outra thread pode disparar."""

        def after(machine: StateMachine, event: Event) -> None:
            worker = threading.Thread(target=machine.dispatch, args=("second",))
            worker.start()
            worker.join(timeout=5)

        machine = StateMachine(
            set_initial("a"),
            set_events(
                [
                    Event(
                        name="first",
                        transitions=[Transition(from_states="a", to_state="b")],
                        callbacks={"after": after},
                    ),
                    Event(name="second", transitions=[Transition(from_states="b", to_state="c")]),
                ]
            ),
        )

        machine.dispatch("first")

        assert machine.current_state == "c"

    def test_serialized_machine_allows_same_thread_reentrancy(self) -> None:
        machine = StateMachine(
            set_initial("a"),
            set_events(
                [
                    Event(
                        name="first",
                        transitions=[Transition(from_states="a", to_state="b")],
                        callbacks={"after": lambda m, e: m.dispatch("second")},
                    ),
                    Event(name="second", transitions=[Transition(from_states="b", to_state="c")]),
                ]
            ),
            set_serialize_dispatch(True),
        )

        machine.dispatch("first")

        assert machine.current_state == "c"

    def test_serialized_concurrent_dispatches_commit_once_each(self) -> None:
        committed: list[str] = []
        barrier = threading.Barrier(8)

        machine = StateMachine(
            set_initial("a"),
            set_events(
                [
                    Event(
                        name="flip",
                        transitions=[
                            Transition(from_states="a", to_state="b"),
                            Transition(from_states="b", to_state="a"),
                        ],
                        callbacks={"after": lambda m, e: committed.append(m.current_state)},
                    )
                ]
            ),
            set_serialize_dispatch(True),
        )

        def worker() -> None:
            barrier.wait(timeout=5)
            machine.dispatch("flip")

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        # Serializado: cada dispatch vê o commit do anterior, alternando a/b.
        assert committed == ["b", "a"] * 4
        assert machine.current_state == "a"


@pytest.mark.parametrize("depth", [1, 5])
def test_plain_dispatch_within_depth_limit(depth: int) -> None:
    machine = StateMachine(
        set_initial("a"),
        set_events([Event(name="go", transitions=[Transition(from_states="a", to_state="b")])]),
        set_max_dispatch_depth(depth),
    )

    machine.dispatch("go")

    assert machine.current_state == "b"
