"""Load forecast provider implementations."""

from collections.abc import Iterator, Sequence

import numpy as np

from dayahead_engine.core.constants import RANDOM_LOAD_MIN_KW, RANDOM_LOAD_SPAN_KW, RANDOM_SEED
from dayahead_engine.core.schemas import ScheduledAction
from dayahead_engine.forecast.interface import LoadForecast

_MASK32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


def mulberry32(seed: int, count: int) -> Iterator[float]:
    """Yield `count` reproducible draws in [0, 1) from a 32-bit counter generator.

    Calling again with the same seed restarts the same sequence.
    """
    state = seed & _MASK32
    for _ in range(count):
        state = (state + _INCREMENT) & _MASK32
        t = _imul(state ^ (state >> 15), state | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        yield (t ^ (t >> 14)) / 4294967296


def random_usage(intervals_per_day: int, interval_minutes: int, seed: int = RANDOM_SEED) -> np.ndarray:
    """Synthetic 0.1-0.4 kW baseline load as energy per interval."""
    hours = interval_minutes / 60
    draws = np.fromiter(mulberry32(seed, intervals_per_day), dtype=float, count=intervals_per_day)
    return (RANDOM_LOAD_MIN_KW + draws * RANDOM_LOAD_SPAN_KW) * hours


def planned_usage(
    actions: Sequence[ScheduledAction], intervals_per_day: int, interval_minutes: int
) -> np.ndarray:
    """Energy drawn by scheduled actions in each interval.

    Each action contributes power x overlap of [start, start+duration) with
    the interval window; overlapping actions add up.
    """
    planned = np.zeros(intervals_per_day)
    starts = np.arange(intervals_per_day) * interval_minutes
    ends = starts + interval_minutes

    for action in actions:
        overlap = np.minimum(action.end_minute, ends) - np.maximum(action.start_minute, starts)
        planned += action.power_kw * np.clip(overlap, 0, None) / 60

    return planned


class SyntheticLoadProvider:
    """Deterministic household load plus operator-declared scheduled loads.

    The seed is fixed so the same request always yields the same schedule.
    """

    def __init__(self, actions: Sequence[ScheduledAction], seed: int = RANDOM_SEED):
        """Initialize with the scheduled actions.

        Args:
            actions: Scheduled constant-power loads
            seed: Generator seed
        """
        self.actions = list(actions)
        self.seed = seed

    def forecast(self, intervals_per_day: int, interval_minutes: int) -> LoadForecast:
        """Generate the baseline and planned load for one day.

        Args:
            intervals_per_day: Number of grid intervals
            interval_minutes: Grid interval length

        Returns:
            LoadForecast for the day
        """
        return LoadForecast(
            random_kwh=random_usage(intervals_per_day, interval_minutes, self.seed),
            planned_kwh=planned_usage(self.actions, intervals_per_day, interval_minutes),
        )
