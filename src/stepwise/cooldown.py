# cooldown.py
# Jittered inter-step delay and the cooperative cancellation token.
#
# The wait is observable as one-second countdown ticks. Each tick blocks on the
# token rather than sleeping, so a cancel() cuts the countdown short at once.

import math
import random
import threading
from collections.abc import Iterator

from stepwise.events import CooldownEvent

DEFAULT_MIN_COOLDOWN_MS = 5000
DEFAULT_MAX_COOLDOWN_MS = 10000


def _check_bounds(min_ms: int, max_ms: int) -> None:
    if min_ms < 0:
        raise ValueError(f"Cooldown bounds must be non-negative, got min_ms={min_ms}.")
    if min_ms > max_ms:
        raise ValueError(f"min_ms ({min_ms}) must not exceed max_ms ({max_ms}).")


def generate_cooldown_ms(
    min_ms: int = DEFAULT_MIN_COOLDOWN_MS,
    max_ms: int = DEFAULT_MAX_COOLDOWN_MS,
    rng: random.Random | None = None,
) -> int:
    """Uniform integer duration in [min_ms, max_ms], both ends inclusive."""
    _check_bounds(min_ms, max_ms)
    return (rng or random).randint(min_ms, max_ms)


class CancellationToken:
    """Cooperative cancellation signal owned by a single task run."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Block up to `timeout` seconds. Returns True as soon as cancelled."""
        return self._event.wait(timeout)


class CooldownScheduler:
    """
    Produces the cooldown between two steps.

    tick_seconds is the real time spent per countdown tick; tests construct the
    scheduler with 0 so countdowns complete instantly.
    """

    def __init__(
        self,
        min_ms: int = DEFAULT_MIN_COOLDOWN_MS,
        max_ms: int = DEFAULT_MAX_COOLDOWN_MS,
        rng: random.Random | None = None,
        tick_seconds: float = 1.0,
    ) -> None:
        _check_bounds(min_ms, max_ms)
        self._min_ms = min_ms
        self._max_ms = max_ms
        self._rng = rng or random.Random()
        self._tick_seconds = tick_seconds

    def next_duration_ms(self) -> int:
        return generate_cooldown_ms(self._min_ms, self._max_ms, self._rng)

    def countdown(
        self, cancel: CancellationToken, duration_ms: int | None = None
    ) -> Iterator[CooldownEvent]:
        """Yield one tick per second, remaining = ceil(ms / 1000) down to 1."""
        if duration_ms is None:
            duration_ms = self.next_duration_ms()

        for remaining in range(math.ceil(duration_ms / 1000), 0, -1):
            if cancel.is_cancelled:
                return
            yield CooldownEvent(duration_ms=duration_ms, remaining=remaining)
            if cancel.wait(self._tick_seconds):
                return
