"""Load forecast provider interface."""

from dataclasses import dataclass
from typing import Protocol

import numpy as np


@dataclass
class LoadForecast:
    """Household load on the uniform grid, in kWh per interval."""

    random_kwh: np.ndarray
    planned_kwh: np.ndarray

    @property
    def gross_kwh(self) -> np.ndarray:
        return self.planned_kwh + self.random_kwh


class LoadForecastProvider(Protocol):
    """Protocol for load forecast providers.

    Providers take the grid shape and return the baseline and planned
    consumption for every interval of the day.
    """

    def forecast(self, intervals_per_day: int, interval_minutes: int) -> LoadForecast:
        """Generate load forecast for one day.

        Args:
            intervals_per_day: Number of grid intervals
            interval_minutes: Grid interval length

        Returns:
            LoadForecast with arrays of length intervals_per_day
        """
        ...
