"""Error taxonomy and dispatch result validation."""

import pandas as pd

from dayahead_engine.core.constants import (
    COL_NET_FLOW_KWH,
    COL_SOC_KWH,
    COL_TRADE_KWH,
    DISPATCH_COLUMNS,
    NUMERICAL_TOLERANCE,
    TRADE_CORRIDOR_FRAC,
)
from dayahead_engine.core.schemas import BatteryConfig, ErrorResponse


class DispatchError(Exception):
    """Base class for failures that terminate a simulation request."""

    kind = "DispatchError"

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(kind=self.kind, message=str(self))


class ValidationError(DispatchError):
    """Raised when input is rejected before optimization."""

    kind = "ValidationError"


class MalformedInput(ValidationError):
    """Unparseable CSV rows or non-numeric values."""

    kind = "MalformedInput"


class InsufficientData(ValidationError):
    """Fewer than two price rows."""

    kind = "InsufficientData"


class GridIncompatible(ValidationError):
    """Day length not evenly divisible by a series' native interval."""

    kind = "GridIncompatible"


class ProblemTooLarge(ValidationError):
    """Battery size or power limit would make the DP search intractable."""

    kind = "ProblemTooLarge"


class ConstraintInfeasible(DispatchError):
    """No feasible trading decision exists along the actual trajectory."""

    kind = "ConstraintInfeasible"


def validate_dispatch_result(
    df: pd.DataFrame,
    battery: BatteryConfig,
    interval_minutes: int,
    trade_corridor_frac: float = TRADE_CORRIDOR_FRAC,
) -> None:
    """Validate a replayed dispatch frame satisfies physical constraints.

    Args:
        df: Dispatch frame produced by the replay engine
        battery: Battery configuration
        interval_minutes: Grid interval length
        trade_corridor_frac: Top of the trade corridor as capacity fraction

    Raises:
        ValidationError: If constraints are violated
    """
    missing_cols = set(DISPATCH_COLUMNS) - set(df.columns)
    if missing_cols:
        raise ValidationError(f"Dispatch frame missing columns: {missing_cols}")

    if df[DISPATCH_COLUMNS].isna().any().any():
        nan_cols = df[DISPATCH_COLUMNS].columns[df[DISPATCH_COLUMNS].isna().any()].tolist()
        raise ValidationError(f"NaN values found in columns: {nan_cols}")

    # SOC bounds
    if (df[COL_SOC_KWH] < -NUMERICAL_TOLERANCE).any():
        raise ValidationError("SOC below zero")

    if (df[COL_SOC_KWH] > battery.capacity_kwh + NUMERICAL_TOLERANCE).any():
        raise ValidationError(f"SOC above capacity: {battery.capacity_kwh} kWh")

    # Trading power limit
    max_energy = battery.max_energy_per_interval(interval_minutes)
    if (df[COL_TRADE_KWH].abs() > max_energy + NUMERICAL_TOLERANCE).any():
        raise ValidationError(f"Trade exceeds power limit: {battery.power_limit_kw} kW")

    # Grid import limit
    grid_limit = battery.grid_limit_kwh_per_interval(interval_minutes)
    if (df[COL_NET_FLOW_KWH] > grid_limit + NUMERICAL_TOLERANCE).any():
        raise ValidationError(f"Grid import exceeds limit: {battery.grid_limit_kw} kW")

    # Trade corridor
    trade_max = trade_corridor_frac * battery.capacity_kwh
    soc_end = df[COL_SOC_KWH]
    soc_start = soc_end.shift(1, fill_value=battery.start_soc_kwh)
    trade = df[COL_TRADE_KWH]

    if ((trade > 0) & (soc_end > trade_max + NUMERICAL_TOLERANCE)).any():
        raise ValidationError(f"Grid charging above the trade corridor: {trade_max} kWh")

    crossed = (
        (trade < 0)
        & (soc_start > trade_max + NUMERICAL_TOLERANCE)
        & (soc_end < trade_max - NUMERICAL_TOLERANCE)
    )
    if crossed.any():
        raise ValidationError(f"Trading discharge below the trade corridor: {trade_max} kWh")
