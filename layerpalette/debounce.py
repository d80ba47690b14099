"""
Debounced task for coalescing rapid color edits.

Only the most recent call within the window survives: scheduling cancels
the pending entry and bumps a generation counter, so a stale entry that
somehow fires is ignored. Nothing runs on its own thread; due work runs
when the owner calls ``run_pending``.
"""

import sched
import time
from typing import Callable, Optional


class Debouncer:
    def __init__(self, delay: float = 0.3, clock: Callable[[], float] = time.monotonic):
        self.delay = delay
        self.clock = clock
        self.generation = 0
        # delayfunc is only used by blocking runs; run_pending never blocks
        self._scheduler = sched.scheduler(clock, lambda _: None)
        self._event: Optional[sched.Event] = None
        self._action: Optional[Callable[[], None]] = None

    @property
    def pending(self) -> bool:
        return self._event is not None

    def schedule(self, action: Callable[[], None]) -> int:
        """Cancel any pending action and schedule this one after the delay."""
        self.cancel()
        self.generation += 1
        self._action = action
        self._event = self._scheduler.enter(self.delay, 0, self._fire, argument=(self.generation,))
        return self.generation

    def cancel(self) -> bool:
        """Drop the pending action. Returns True if one was pending."""
        if self._event is None:
            return False
        try:
            self._scheduler.cancel(self._event)
        except ValueError:
            # already popped from the queue by the scheduler
            pass
        self._event = None
        self._action = None
        return True

    def run_pending(self) -> bool:
        """Run the pending action if its window has elapsed."""
        if self._event is None:
            return False
        self._scheduler.run(blocking=False)
        return self._event is None

    def flush(self) -> bool:
        """Run the pending action now, regardless of the window."""
        if self._event is None:
            return False
        action = self._action
        self.cancel()
        action()
        return True

    def _fire(self, generation: int) -> None:
        if generation != self.generation or self._action is None:
            return
        action = self._action
        self._event = None
        self._action = None
        action()
