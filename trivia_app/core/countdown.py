"""Per-question countdown with an explicit Idle/Running/Expired state machine.

The timer never sleeps or blocks. It asks a scheduler for one callback per
second and counts down from there. ``asyncio`` event loops already satisfy the
:class:`Scheduler` protocol, so in the service the loop serving HTTP drives
every countdown; tests substitute a manually advanced scheduler.

Each scheduled tick carries the generation it was armed for. ``stop`` and
``reset`` bump the generation, which turns any tick that still fires for the
previous run into a no-op.
"""

from __future__ import annotations

from enum import Enum
import logging
from typing import Any, Callable, Protocol

from trivia_app.constants.quiz_constants import TICK_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class ScheduledHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Subset of ``asyncio.AbstractEventLoop`` used by timers and sessions."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ScheduledHandle: ...

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> ScheduledHandle: ...

    def time(self) -> float: ...


class CountdownState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    EXPIRED = "expired"


class CountdownTimer:
    """Counts whole seconds down to zero and signals expiration exactly once."""

    def __init__(
        self,
        initial_seconds: int,
        scheduler: Scheduler,
        on_expire: Callable[[], None] | None = None,
        on_tick: Callable[[int], None] | None = None,
        interval: float = TICK_INTERVAL_SECONDS,
    ) -> None:
        self._scheduler = scheduler
        self._on_expire = on_expire
        self._on_tick = on_tick
        self._interval = interval
        self._limit = max(0, int(initial_seconds))
        self._remaining = self._limit
        self._state = CountdownState.IDLE
        self._handle: ScheduledHandle | None = None
        self._generation = 0

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def state(self) -> CountdownState:
        return self._state

    def is_running(self) -> bool:
        return self._state is CountdownState.RUNNING

    def start(self) -> None:
        """Begin (or resume) counting. Expiration is only ever signalled from a tick."""
        if self._state is not CountdownState.IDLE:
            return
        self._state = CountdownState.RUNNING
        self._schedule_tick()

    def stop(self) -> None:
        """Suspend counting without signalling expiration."""
        if self._state is CountdownState.RUNNING:
            self._state = CountdownState.IDLE
        self._cancel_pending()

    def reset(self, new_limit: int | None = None) -> None:
        """Return to Idle with a full countdown, optionally switching the limit."""
        self._cancel_pending()
        if new_limit is not None:
            self._limit = max(0, int(new_limit))
        self._remaining = self._limit
        self._state = CountdownState.IDLE

    def _schedule_tick(self) -> None:
        self._handle = self._scheduler.call_later(self._interval, self._tick, self._generation)

    def _cancel_pending(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _tick(self, generation: int) -> None:
        if generation != self._generation or self._state is not CountdownState.RUNNING:
            return
        self._handle = None

        if self._remaining > 0:
            self._remaining -= 1
            if self._on_tick is not None:
                self._on_tick(self._remaining)
            # The tick observer may have stopped or reset us.
            if generation != self._generation or self._state is not CountdownState.RUNNING:
                return

        if self._remaining == 0:
            self._state = CountdownState.EXPIRED
            logger.debug("Countdown of %ss expired", self._limit)
            if self._on_expire is not None:
                self._on_expire()
            return

        self._schedule_tick()
