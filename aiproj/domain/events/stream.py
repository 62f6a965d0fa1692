"""Append-only generation state log with push and pull readers.

One producer (the orchestrator) appends states; any number of readers either
subscribe for synchronous callbacks or ``follow`` the log from an offset on
their own thread. Every reader sees every state, in order.
"""

import logging
import threading
from collections import defaultdict
from collections.abc import Iterator

from aiproj.domain.events.observer import GenerationObserver
from aiproj.domain.models.generation import GenerationState, GenerationStateKind, Idle

logger = logging.getLogger(__name__)


class GenerationStateStream:
    """Single-writer, multi-reader broadcast of ``GenerationState`` values."""

    def __init__(self) -> None:
        self._log: list[GenerationState] = [Idle()]
        self._condition = threading.Condition()
        self._observers: dict[GenerationStateKind, list[GenerationObserver]] = defaultdict(
            list
        )
        self._global_observers: list[GenerationObserver] = []

    @property
    def current(self) -> GenerationState:
        with self._condition:
            return self._log[-1]

    def __len__(self) -> int:
        with self._condition:
            return len(self._log)

    def history(self) -> list[GenerationState]:
        """Snapshot of every state published so far."""
        with self._condition:
            return list(self._log)

    def subscribe(
        self,
        observer: GenerationObserver,
        kinds: list[GenerationStateKind] | None = None,
    ) -> None:
        """Subscribe to specific state kinds, or all states if None."""
        if kinds is None:
            self._global_observers.append(observer)
        else:
            for kind in kinds:
                self._observers[kind].append(observer)

    def unsubscribe(self, observer: GenerationObserver) -> None:
        """Remove observer from all subscriptions."""
        if observer in self._global_observers:
            self._global_observers.remove(observer)
        for observers in self._observers.values():
            if observer in observers:
                observers.remove(observer)

    def emit(self, state: GenerationState) -> None:
        """Append ``state`` and dispatch it to all relevant observers."""
        with self._condition:
            self._log.append(state)
            self._condition.notify_all()

        for observer in list(self._global_observers):
            self._safe_notify(observer, state)
        for observer in list(self._observers.get(state.kind, [])):
            self._safe_notify(observer, state)

    def follow(self, start: int = 0, timeout: float | None = None) -> Iterator[GenerationState]:
        """Yield states from offset ``start``, blocking for new ones.

        Stops after a terminal state, after an ``Idle`` that ends a cancelled
        run, or when no new state arrives within ``timeout`` seconds.
        """
        index = start
        while True:
            with self._condition:
                if index >= len(self._log):
                    arrived = self._condition.wait_for(
                        lambda: index < len(self._log), timeout=timeout
                    )
                    if not arrived:
                        return
                state = self._log[index]
                previous = self._log[index - 1] if index > 0 else None

            index += 1
            yield state

            if state.is_terminal:
                return
            if (
                isinstance(state, Idle)
                and previous is not None
                and not previous.is_terminal
                and not isinstance(previous, Idle)
            ):
                return

    def _safe_notify(self, observer: GenerationObserver, state: GenerationState) -> None:
        """Notify observer, catching and logging any exceptions."""
        try:
            observer.on_state(state)
        except Exception as e:
            logger.warning(f"Observer {observer} failed on {state.kind.value}: {e}")
