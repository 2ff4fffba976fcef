"""
Randomized pacing for page interactions.

All delays and scroll sizes the harvester uses come from one JitterPolicy
so they can be tuned per site and replaced by fixed values in tests.
"""

import random
from dataclasses import dataclass, field
from typing import Optional, Tuple

from src.sites.profiles import HarvestSettings


@dataclass
class JitterPolicy:
    """Delay ranges (milliseconds), burst size and scroll increment."""

    burst_size: Tuple[int, int] = (3, 10)
    increment_fraction: Tuple[float, float] = (0.20, 0.30)
    micro_delay_ms: Tuple[int, int] = (50, 150)
    reading_pause_ms: Tuple[int, int] = (300, 1200)
    settle_delay_ms: Tuple[int, int] = (500, 1000)
    rng: random.Random = field(default_factory=random.Random)

    def __post_init__(self):
        """Validate configuration."""
        if self.burst_size[0] < 1 or self.burst_size[1] < self.burst_size[0]:
            raise ValueError("burst_size must be a (low, high) range with low >= 1")
        if not 0 < self.increment_fraction[0] <= self.increment_fraction[1]:
            raise ValueError("increment_fraction must be a positive (low, high) range")
        for name in ("micro_delay_ms", "reading_pause_ms", "settle_delay_ms"):
            lo, hi = getattr(self, name)
            if lo < 0 or hi < lo:
                raise ValueError(f"{name} must be a non-negative (low, high) range")

    @classmethod
    def from_settings(cls, settings: HarvestSettings, seed: Optional[int] = None) -> "JitterPolicy":
        return cls(
            burst_size=settings.burst_size,
            increment_fraction=settings.increment_fraction,
            micro_delay_ms=settings.micro_delay_ms,
            reading_pause_ms=settings.reading_pause_ms,
            settle_delay_ms=settings.settle_delay_ms,
            rng=random.Random(seed),
        )

    @classmethod
    def instant(cls, burst: int = 1, fraction: float = 0.25) -> "JitterPolicy":
        """Deterministic policy with no waiting, for tests and dry runs."""
        return cls(
            burst_size=(burst, burst),
            increment_fraction=(fraction, fraction),
            micro_delay_ms=(0, 0),
            reading_pause_ms=(0, 0),
            settle_delay_ms=(0, 0),
            rng=random.Random(0),
        )

    def burst(self) -> int:
        return self.rng.randint(*self.burst_size)

    def increment(self, viewport_height: int) -> int:
        """Pixels for one mini-scroll, at least 1."""
        lo, hi = self.increment_fraction
        return max(1, int(viewport_height * self.rng.uniform(lo, hi)))

    def _seconds(self, bounds: Tuple[int, int]) -> float:
        return self.rng.randint(*bounds) / 1000.0

    def micro_delay(self) -> float:
        return self._seconds(self.micro_delay_ms)

    def reading_pause(self) -> float:
        return self._seconds(self.reading_pause_ms)

    def settle_delay(self) -> float:
        return self._seconds(self.settle_delay_ms)
