"""Fetch-coalescing cache shared by polling and write-triggered refreshes.

Terminal views poll the label configuration every few seconds and every save
invalidates it. ``SingleFlightCache`` keeps one cached value per key and makes
sure that concurrent misses for the same key share a single load instead of
each hitting the database.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class _Flight:
    """A load in progress for one key."""

    done: threading.Event = field(default_factory=threading.Event)
    value: Any = None
    error: BaseException | None = None


class SingleFlightCache:
    """Thread-safe TTL cache with per-key request coalescing."""

    def __init__(self, ttl: float = 30.0, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._values: dict[str, tuple[float, Any]] = {}
        self._flights: dict[str, _Flight] = {}
        self._generations: dict[str, int] = {}

    def get(self, key: str, loader: Callable[[], Any]) -> Any:
        """Return the cached value for ``key``, loading it at most once concurrently.

        Args:
            key: Resource identity.
            loader: Zero-argument callable producing a fresh value.

        Returns:
            The cached or freshly loaded value.

        Raises:
            Exception: Whatever ``loader`` raised; failures are not cached.
        """
        with self._lock:
            cached = self._values.get(key)
            if cached is not None and self._clock() - cached[0] < self.ttl:
                return cached[1]

            flight = self._flights.get(key)
            leader = flight is None
            if leader:
                flight = _Flight()
                self._flights[key] = flight
                generation = self._generations.get(key, 0)

        if not leader:
            flight.done.wait()
            if flight.error is not None:
                raise flight.error
            return flight.value

        try:
            flight.value = loader()
        except BaseException as e:
            flight.error = e
            raise
        finally:
            with self._lock:
                # An invalidate() during the load means the value may be stale
                if flight.error is None and self._generations.get(key, 0) == generation:
                    self._values[key] = (self._clock(), flight.value)
                self._flights.pop(key, None)
            flight.done.set()

        return flight.value

    def invalidate(self, key: str) -> None:
        """Drop the cached value so the next ``get`` reloads it."""
        with self._lock:
            self._values.pop(key, None)
            self._generations[key] = self._generations.get(key, 0) + 1
        logger.debug(f"Cache invalidated: {key}")

    def clear(self) -> None:
        """Drop every cached value."""
        with self._lock:
            # In-flight loads of uncached keys must not store their result either
            for key in set(self._values) | set(self._flights):
                self._generations[key] = self._generations.get(key, 0) + 1
            self._values.clear()
