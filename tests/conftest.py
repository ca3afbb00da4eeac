from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from pyloto_fsm.config.settings import get_settings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    for key in (
        "FSM_MAX_DISPATCH_DEPTH",
        "FSM_SERIALIZE_DISPATCH",
        "FSM_LOG_LEVEL",
        "FSM_LOG_FORMAT",
        "FSM_SERVICE_NAME",
    ):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def calls() -> list[str]:
    """Registro, em ordem, dos hooks executados."""
    return []


@pytest.fixture()
def record(calls: list[str]) -> Callable[[str], Callable[..., None]]:
    """Fábrica de hooks que apenas anotam seu rótulo em `calls`."""

    def factory(label: str) -> Callable[..., None]:
        def hook(*_args: Any) -> None:
            calls.append(label)

        return hook

    return factory
