"""Per-thread controllers for worker threads (internal use only)."""

from __future__ import annotations

import threading
from typing import Callable, Generic, TypeVar

C = TypeVar("C")


class ThreadLocalControllers(Generic[C]):
    """
    Hand each thread its own controller, built lazily by `factory`.

    The discovery client's HTTP transport is not thread-safe, so worker
    threads must never share the controller of the calling thread.
    """

    def __init__(self, factory: Callable[[], C]) -> None:
        self._factory = factory
        self._local = threading.local()

    def get(self) -> C:
        controller = getattr(self._local, "controller", None)
        if controller is None:
            controller = self._factory()
            self._local.controller = controller
        return controller
