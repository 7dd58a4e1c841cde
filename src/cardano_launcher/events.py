"""
Synchronous publish/subscribe for component notifications.

Listeners run in registration order on the emitting call stack. An ``emit``
issued from inside a listener is queued and delivered once the current
delivery finishes, so every listener sees one event name's stream in the
order it was produced.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Tuple

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class EventEmitter:
    """Ordered observer registry keyed by event name."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Tuple[Listener, bool]]] = {}
        self._queue: Deque[Tuple[str, Tuple[Any, ...]]] = deque()
        self._dispatching = False

    def on(self, event: str, listener: Listener) -> Listener:
        """Register ``listener`` for every ``event``; returns it for later ``off``."""
        self._listeners.setdefault(event, []).append((listener, False))
        return listener

    def once(self, event: str, listener: Listener) -> Listener:
        """Register ``listener`` for the next ``event`` only."""
        self._listeners.setdefault(event, []).append((listener, True))
        return listener

    def off(self, event: str, listener: Listener) -> None:
        """Remove the first registration of ``listener`` for ``event``."""
        entries = self._listeners.get(event, [])
        for index, (candidate, _once) in enumerate(entries):
            if candidate is listener:
                del entries[index]
                return

    def remove_all_listeners(self, event: str | None = None) -> None:
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: str, *args: Any) -> None:
        """Deliver ``event`` to its listeners, queueing re-entrant emissions."""
        self._queue.append((event, args))
        if self._dispatching:
            return
        self._dispatching = True
        try:
            while self._queue:
                name, payload = self._queue.popleft()
                self._deliver(name, payload)
        finally:
            self._dispatching = False

    def _deliver(self, event: str, args: Tuple[Any, ...]) -> None:
        entries = self._listeners.get(event)
        if not entries:
            return
        for entry in list(entries):
            listener, once = entry
            if once:
                try:
                    entries.remove(entry)
                except ValueError:  # policy_guard: allow-silent-handler
                    # Already removed by an earlier listener of this delivery
                    continue
            try:
                listener(*args)
            except Exception:  # policy_guard: allow-silent-handler
                logger.exception("Listener %r for event %r failed", listener, event)


__all__ = ["EventEmitter", "Listener"]
