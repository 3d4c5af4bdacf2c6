"""Reconcile independently sampled price and PV series onto one uniform grid."""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from dayahead_engine.core.constants import MINUTES_PER_DAY
from dayahead_engine.core.validate import GridIncompatible, InsufficientData
from dayahead_engine.io.formats import TimeSample, format_timestamp, native_interval, parse_series_csv

logger = logging.getLogger(__name__)


@dataclass
class UniformGrid:
    """Price and PV series sharing one interval length."""

    interval_minutes: int
    intervals_per_day: int
    price: np.ndarray
    pv: np.ndarray

    @property
    def timestamps(self) -> list[str]:
        return [format_timestamp(i, self.interval_minutes) for i in range(self.intervals_per_day)]


def forward_fill(samples: list[TimeSample], interval_minutes: int, intervals_per_day: int) -> np.ndarray:
    """Resample samples onto the grid without interpolation.

    Each grid point takes the latest sample at or before it (a repeated
    timestamp keeps its last value in input order). Grid points before the
    first sample take the first input sample's value.

    Args:
        samples: Parsed samples, any order
        interval_minutes: Grid interval length
        intervals_per_day: Number of grid points

    Returns:
        Array of length intervals_per_day (zeros if there are no samples)
    """
    if not samples:
        return np.zeros(intervals_per_day)

    series = pd.Series([s.value for s in samples], index=[s.minute for s in samples], dtype=float)
    series = series.groupby(level=0).last()

    grid = np.arange(intervals_per_day) * interval_minutes
    filled = series.reindex(grid, method="ffill")
    return filled.fillna(samples[0].value).to_numpy(dtype=float)


def _check_divides(interval_minutes: int, minutes_per_day: int, name: str) -> None:
    if minutes_per_day % interval_minutes != 0:
        raise GridIncompatible(
            f"{name} interval of {interval_minutes} minutes does not divide a {minutes_per_day}-minute day"
        )


def normalize_series(
    day_ahead_csv: str,
    pv_profile_csv: Optional[str] = None,
    minutes_per_day: int = MINUTES_PER_DAY,
) -> UniformGrid:
    """Parse price and PV text and put both on the finer of their intervals.

    Args:
        day_ahead_csv: Price series text (mandatory)
        pv_profile_csv: PV production series text (optional)
        minutes_per_day: Day length in minutes

    Returns:
        UniformGrid with price and PV arrays

    Raises:
        MalformedInput: If a row cannot be parsed
        InsufficientData: If fewer than two price rows are present
        GridIncompatible: If either native interval does not divide the day
    """
    prices = parse_series_csv(day_ahead_csv, name="price")
    if len(prices) < 2:
        raise InsufficientData(f"Price series needs at least two rows, got {len(prices)}")

    pv = parse_series_csv(pv_profile_csv, name="pv") if pv_profile_csv else []

    price_dt = native_interval(prices)
    pv_dt = native_interval(pv) if len(pv) > 1 else price_dt

    _check_divides(price_dt, minutes_per_day, "Price")
    _check_divides(pv_dt, minutes_per_day, "PV")

    interval_minutes = min(price_dt, pv_dt)
    intervals_per_day = minutes_per_day // interval_minutes

    logger.info(
        "Uniform grid: %d intervals of %d min (price %d min, pv %d min, %d pv rows)",
        intervals_per_day,
        interval_minutes,
        price_dt,
        pv_dt,
        len(pv),
    )

    return UniformGrid(
        interval_minutes=interval_minutes,
        intervals_per_day=intervals_per_day,
        price=forward_fill(prices, interval_minutes, intervals_per_day),
        pv=forward_fill(pv, interval_minutes, intervals_per_day),
    )
