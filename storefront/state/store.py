"""Observer base for the visitor-state stores."""

import logging
from typing import Callable

logger = logging.getLogger(__name__)

Listener = Callable[["Store"], None]


class Store:
    """
    Minimal subscribe/notify container.

    Subclasses call ``_notify()`` after every committed mutation. A listener
    that raises is logged and does not stop the others, nor undo the
    mutation that triggered it.
    """

    def __init__(self):
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception(f"{type(self).__name__} listener failed")
