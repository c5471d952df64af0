"""Minimum-spacing throttles for the two rate-limited upstreams."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Callable

import structlog

from ..config import RateLimitConfig


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class Throttle:
    """Enforce a floor on the time between consecutive calls to one upstream.

    This is spacing, not a token bucket: ``wait`` only sleeps off whatever is
    left of the floor since the last ``mark``.
    """

    name: str
    spacing_ms: Callable[[], float]
    clock: Callable[[], float] = _monotonic_ms
    sleep: Callable[[float], None] = time.sleep
    last_at: float | None = None
    logger: structlog.BoundLogger = field(
        default_factory=lambda: structlog.get_logger("relister.rate_limiter")
    )

    def wait(self) -> float:
        """Sleep until the floor has passed; return milliseconds slept."""

        if self.last_at is None:
            return 0.0
        required = self.spacing_ms()
        elapsed = self.clock() - self.last_at
        if elapsed >= required:
            return 0.0
        remaining = required - elapsed
        self.logger.info("rate_limit_wait", throttle=self.name, sleep_ms=int(remaining))
        self.sleep(remaining / 1000.0)
        return remaining

    def mark(self) -> None:
        self.last_at = self.clock()


class RateLimiter:
    """Holds the source-marketplace and publish throttles for one control loop."""

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        clock: Callable[[], float] = _monotonic_ms,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
    ) -> None:
        config = config or RateLimitConfig()
        self.rng = rng or random.Random()
        low, high = config.source_spacing_ms
        # search and detail calls share one source throttle
        self.source = Throttle(
            "source",
            spacing_ms=lambda: self.rng.randrange(low, max(high, low + 1)),
            clock=clock,
            sleep=sleep,
        )
        self.publish = Throttle(
            "publish",
            spacing_ms=lambda: float(config.publish_spacing_ms),
            clock=clock,
            sleep=sleep,
        )


__all__ = ["RateLimiter", "Throttle"]
