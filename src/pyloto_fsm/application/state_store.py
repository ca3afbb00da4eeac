"""Armazenamento do estado corrente protegido por lock."""

from __future__ import annotations

import threading


class StateStore:
    """Guarda exatamente um label de estado.

    O lock é mantido apenas durante cada leitura ou escrita, nunca durante um
    dispatch inteiro; isso permite que hooks disparem eventos na mesma máquina.
    """

    def __init__(self, initial_state: str) -> None:
        self._state = initial_state
        self._lock = threading.Lock()

    @property
    def current_state(self) -> str:
        with self._lock:
            return self._state

    def set(self, state: str) -> None:
        """Escrita incondicional (sem compare-and-swap)."""
        with self._lock:
            self._state = state
