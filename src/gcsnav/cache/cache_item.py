"""Time-boxed memoization cell."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Generic, Optional, TypeVar

from gcsnav.util.time import now_utc

T = TypeVar("T")

DEFAULT_LIFETIME: timedelta = timedelta(minutes=1)


class CacheItem(Generic[T]):
    """
    Hold the result of an update function for the duration of `lifetime`.

    Reading `value` after the lifetime has elapsed calls the update function
    again. The cell has no locking: callers that read or refresh it from more
    than one thread must synchronize access themselves.
    """

    def __init__(
        self,
        update: Optional[Callable[[], T]] = None,
        lifetime: timedelta = DEFAULT_LIFETIME,
        *,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._update = update
        self._lifetime = lifetime
        self._clock = clock
        self._value: Optional[T] = None
        self._last_update: Optional[datetime] = None

    @property
    def value(self) -> Optional[T]:
        """
        Return the cached value, refreshing it first if it is out of date.

        Without an update function this is the last stored value.
        """
        if self._update is None:
            return self._value
        return self.value_with(self._update)

    def value_with(self, update: Callable[[], T]) -> T:
        """Like `value`, but refresh with `update` instead of the stored function."""
        if self.out_of_date():
            self._value = update()
            self._last_update = self._clock()
        return self._value  # type: ignore[return-value]

    def out_of_date(self) -> bool:
        if self._last_update is None:
            return True
        return self._clock() > self._last_update + self._lifetime

    def last_value(self) -> Optional[T]:
        """Return the last computed value without refreshing."""
        return self._value

    def obsolete(self) -> None:
        """Force a refresh on the next read; last_value() keeps working."""
        self._last_update = None

    def reset(self) -> None:
        """Force a refresh on the next read and drop the last value."""
        self._last_update = None
        self._value = None
