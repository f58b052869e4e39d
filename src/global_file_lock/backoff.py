"""Randomized exponential backoff with bounded restart rounds.

Each acquisition owns one :class:`BackoffState`.  Below the cap the delay
grows by a random factor in ``[1, 2)`` per attempt so that many waiters on
the same lock drift apart.  Once the delay reaches the cap it is reset to
``restart_delay`` for a new round, and after ``max_over_cap_retries`` such
rounds the acquisition gives up.

Classes
-------
- BackoffState  — per-acquisition delay record
- Backoff       — schedule bound to one ``LockConfig``
"""
from __future__ import annotations

import asyncio
import logging
import math
import random
import time
from dataclasses import dataclass
from typing import Callable

from global_file_lock.config import LockConfig
from global_file_lock.errors import LockTimeoutError

logger = logging.getLogger(__name__)


@dataclass
class BackoffState:
    """Mutable record owned by a single acquisition.

    Attributes
    ----------
    current_delay:
        Delay, in units, that the next call will sleep for.
    attempt_count:
        Number of delays taken so far.
    over_cap_rounds:
        Number of times the delay has hit the cap and been restarted.
    start_time:
        Clock reading when the acquisition started.
    """

    current_delay: float
    start_time: float
    attempt_count: int = 0
    over_cap_rounds: int = 0


class Backoff:
    """Delay schedule bound to one configuration.

    The instance holds no per-acquisition data, so any number of concurrent
    acquisitions can share it.

    Parameters
    ----------
    config:
        The tunables.  Defaults to ``LockConfig()``.
    rng:
        Source of the random growth factor.  Defaults to a new
        ``random.Random`` seeded from the OS.
    clock:
        Monotonic clock in seconds, used for elapsed-time reporting.
    """

    def __init__(
        self,
        config: LockConfig | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config: LockConfig = config or LockConfig()
        self._rng = rng or random.Random()
        self._clock = clock

    @property
    def config(self) -> LockConfig:
        return self._config

    def new_state(self) -> BackoffState:
        """Return a fresh state for one acquisition."""
        return BackoffState(current_delay=self._config.initial_delay, start_time=self._clock())

    def next_delay(self, state: BackoffState) -> int:
        """Advance ``state`` and return the number of units to sleep.

        Raises
        ------
        LockTimeoutError
            If the delay is at the cap and no over-cap rounds remain.
        """
        config = self._config
        delay = state.current_delay
        if delay >= config.delay_cap:
            if state.over_cap_rounds >= config.max_over_cap_retries:
                raise LockTimeoutError(
                    elapsed=self._clock() - state.start_time,
                    attempts=state.attempt_count,
                )
            state.current_delay = config.restart_delay
            state.over_cap_rounds += 1
            logger.debug(
                "Backoff: delay %.1f reached cap, starting round %d of %d",
                delay,
                state.over_cap_rounds,
                config.max_over_cap_retries,
            )
        else:
            state.current_delay = delay * (1 + self._rng.random())
        state.attempt_count += 1
        return math.floor(delay)

    async def wait(self, state: BackoffState) -> None:
        """Sleep for the next delay without blocking the event loop."""
        await asyncio.sleep(self._config.seconds(self.next_delay(state)))

    def wait_sync(self, state: BackoffState) -> None:
        """Block the calling thread for the next delay."""
        time.sleep(self._config.seconds(self.next_delay(state)))

    def __repr__(self) -> str:
        return f"Backoff(config={self._config!r})"


__all__ = ["Backoff", "BackoffState"]
