"""
Reconnect backoff with exponential growth and jitter
"""

import random
from typing import Callable, Optional


class ReconnectBackoff:
    """
    delay = min(base_delay * 2 ** attempts, max_delay)
    wait  = delay + uniform(0, delay * randomization_factor)

    ``attempts`` only moves through record_attempt() and reset(); the controller
    records an attempt when a scheduled reconnect fires and resets after both
    channels are open again.
    """

    def __init__(
        self,
        base_delay: float = 2.5,
        max_delay: float = 4.5,
        randomization_factor: float = 0.5,
        rng: Optional[Callable[[], float]] = None,
    ):
        if base_delay < 0 or max_delay < 0 or randomization_factor < 0:
            raise ValueError("backoff parameters must be >= 0")
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.randomization_factor = randomization_factor
        self._rng = rng or random.random
        self.attempts = 0

    def base_for(self, attempt: int) -> float:
        # Cap the exponent so huge attempt counts don't overflow float
        exponent = min(attempt, 64)
        return min(self.base_delay * (2 ** exponent), self.max_delay)

    def delay_for(self, attempt: int) -> float:
        delay = self.base_for(attempt)
        jitter = delay * self.randomization_factor
        return delay + self._rng() * jitter

    def next_delay(self) -> float:
        return self.delay_for(self.attempts)

    def upper_bound(self) -> float:
        return self.max_delay * (1 + self.randomization_factor)

    def record_attempt(self) -> int:
        self.attempts += 1
        return self.attempts

    def reset(self) -> None:
        self.attempts = 0
