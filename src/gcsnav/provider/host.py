"""The provider's host: error and progress sink plus cancellation."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from gcsnav.models import ItemError, ProgressRecord

logger = logging.getLogger(__name__)


class CancellationToken:
    """A stop flag that long-running loops poll between remote calls."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class ProviderHost:
    """
    Receives the non-fatal output of provider operations.

    Item errors and progress records are appended to `errors` and `progress`.
    Subclasses can override `write_error` and `write_progress` to forward them
    elsewhere (the command line prints errors to stderr).
    """

    def __init__(self, token: Optional[CancellationToken] = None) -> None:
        self.token = token or CancellationToken()
        self.errors: list[ItemError] = []
        self.progress: list[ProgressRecord] = []

    @property
    def stopping(self) -> bool:
        return self.token.cancelled

    def write_error(self, error: ItemError) -> None:
        logger.warning("%s: %s", error.target, error.message)
        self.errors.append(error)

    def write_progress(self, record: ProgressRecord) -> None:
        self.progress.append(record)
