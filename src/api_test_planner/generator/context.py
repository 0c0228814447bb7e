"""Per-run generation context.

Everything that would otherwise be ambient (randomness, the clock, id
generation, the validation memo) is owned here and passed explicitly, so two
runs with the same seed and clock produce identical suites.
"""

import random
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from api_test_planner.model.cache import ValidationCache

Clock = Callable[[], datetime]

# Used when a caller asks for reproducible output without supplying a clock.
EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


def fixed_clock(moment: datetime = EPOCH) -> Clock:
    return lambda: moment


def system_clock() -> datetime:
    return datetime.now(timezone.utc)


class GenerationContext:
    """Seedable source of ids, timestamps and random values for one run."""

    def __init__(self, seed: int | None = None, clock: Clock | None = None,
                 cache: ValidationCache | None = None):
        self.seed = seed
        self.rng = random.Random(seed)
        if clock is None:
            clock = system_clock if seed is None else fixed_clock()
        self.clock = clock
        self.cache = cache if cache is not None else ValidationCache()
        self._counter = 0

    def now(self) -> datetime:
        return self.clock()

    def new_id(self, prefix: str = "tc") -> str:
        """Numbered id with a random suffix drawn from the seeded generator."""
        self._counter += 1
        suffix = uuid.UUID(int=self.rng.getrandbits(128), version=4).hex[:8]
        return f"{prefix}-{self._counter:04d}-{suffix}"

    def execution_id(self) -> str:
        return str(uuid.UUID(int=self.rng.getrandbits(128), version=4))

    def child_rng(self) -> random.Random:
        """Independent generator derived from this context's stream."""
        return random.Random(self.rng.getrandbits(64))
