"""Forward replay of a trading schedule into physical and financial results."""

import logging

import numpy as np
import pandas as pd

from dayahead_engine.core.constants import (
    COL_BATTERY_ACTION_KWH,
    COL_CHARGE_FROM_PV_KWH,
    COL_DISCHARGE_SELF_KWH,
    COL_NET_FLOW_KWH,
    COL_PLANNED_KWH,
    COL_PRICE,
    COL_PV_EXPORT_KWH,
    COL_PV_KWH,
    COL_PV_TO_LOAD_KWH,
    COL_RANDOM_KWH,
    COL_SOC_KWH,
    COL_TIMESTAMP,
    COL_TRADE_KWH,
    CURRENCY_DECIMALS,
    ENERGY_DECIMALS,
    SOC_PERCENT_DECIMALS,
)
from dayahead_engine.core.schemas import BatteryConfig, IntervalResult, SimulationResult
from dayahead_engine.forecast.grid import UniformGrid
from dayahead_engine.forecast.interface import LoadForecast
from dayahead_engine.model.flows import advance_soc, self_use_flows

logger = logging.getLogger(__name__)


def replay_dispatch(
    grid: UniformGrid, load: LoadForecast, battery: BatteryConfig, trades: np.ndarray
) -> pd.DataFrame:
    """Apply a fixed trading schedule interval by interval.

    Args:
        grid: Normalized price and PV series
        load: Synthesized load
        battery: Battery configuration
        trades: Trading delta per interval (positive = grid charge)

    Returns:
        Dispatch frame indexed by timestamp, full precision
    """
    capacity = battery.capacity_kwh
    max_energy = battery.max_energy_per_interval(grid.interval_minutes)
    gross = load.gross_kwh
    soc = battery.start_soc_kwh

    rows = []
    for i in range(grid.intervals_per_day):
        flows = self_use_flows(soc, grid.pv[i], gross[i], capacity, max_energy)
        delta = float(trades[i])
        discharge = float(flows.discharge_self)
        charge = float(flows.charge_from_pv)

        soc = advance_soc(flows.soc_after, delta, capacity)

        rows.append(
            {
                COL_PRICE: float(grid.price[i]),
                COL_PV_KWH: float(grid.pv[i]),
                COL_PLANNED_KWH: float(load.planned_kwh[i]),
                COL_RANDOM_KWH: float(load.random_kwh[i]),
                COL_PV_TO_LOAD_KWH: float(flows.pv_to_load),
                COL_DISCHARGE_SELF_KWH: discharge,
                COL_CHARGE_FROM_PV_KWH: charge,
                COL_PV_EXPORT_KWH: float(flows.pv_export),
                COL_TRADE_KWH: delta,
                COL_NET_FLOW_KWH: float(flows.net_after) + delta,
                COL_BATTERY_ACTION_KWH: discharge - charge - delta,
                COL_SOC_KWH: soc,
            }
        )

    df = pd.DataFrame(rows, index=pd.Index(grid.timestamps, name=COL_TIMESTAMP))
    logger.debug("Replayed %d intervals, final soc %.3f kWh", len(df), soc)
    return df


def _round(value: float, decimals: int) -> float:
    # + 0.0 turns -0.0 into 0.0
    return round(float(value), decimals) + 0.0


def build_result(dispatch: pd.DataFrame, capacity_kwh: float) -> SimulationResult:
    """Aggregate a dispatch frame and round at the reporting boundary.

    Args:
        dispatch: Frame from replay_dispatch (or a baseline strategy)
        capacity_kwh: Battery capacity, for SOC percentages

    Returns:
        SimulationResult
    """
    net_flow = dispatch[COL_NET_FLOW_KWH]
    price = dispatch[COL_PRICE]
    grid_import = net_flow.clip(lower=0)
    cost = net_flow * price
    pv_self = dispatch[COL_PV_TO_LOAD_KWH] + dispatch[COL_CHARGE_FROM_PV_KWH]

    if capacity_kwh > 0:
        soc_pct = dispatch[COL_SOC_KWH] / capacity_kwh * 100
    else:
        soc_pct = pd.Series(0.0, index=dispatch.index)

    intervals = []
    for i, timestamp in enumerate(dispatch.index):
        row = dispatch.iloc[i]
        intervals.append(
            IntervalResult(
                timestamp=timestamp,
                price=float(row[COL_PRICE]),
                pv_production=_round(row[COL_PV_KWH], ENERGY_DECIMALS),
                planned_usage=_round(row[COL_PLANNED_KWH], ENERGY_DECIMALS),
                random_usage=_round(row[COL_RANDOM_KWH], ENERGY_DECIMALS),
                net_load=_round(row[COL_NET_FLOW_KWH], ENERGY_DECIMALS),
                battery_action=_round(row[COL_BATTERY_ACTION_KWH], ENERGY_DECIMALS),
                soc=_round(soc_pct.iloc[i], SOC_PERCENT_DECIMALS),
                grid_energy=_round(grid_import.iloc[i], ENERGY_DECIMALS),
                cost=_round(cost.iloc[i], CURRENCY_DECIMALS),
                pv_self_consumed=_round(pv_self.iloc[i], ENERGY_DECIMALS),
                pv_exported=_round(row[COL_PV_EXPORT_KWH], ENERGY_DECIMALS),
            )
        )

    # Average of the reported (rounded) SOC values
    avg_soc = sum(interval.soc for interval in intervals) / len(intervals) if intervals else 0.0

    return SimulationResult(
        net_usage=_round(grid_import.sum(), ENERGY_DECIMALS),
        net_cost=_round(cost.sum(), CURRENCY_DECIMALS),
        avg_soc=_round(avg_soc, SOC_PERCENT_DECIMALS),
        pv_self_consumed=_round(pv_self.sum(), ENERGY_DECIMALS),
        pv_exported=_round(dispatch[COL_PV_EXPORT_KWH].sum(), ENERGY_DECIMALS),
        export_revenue=_round((dispatch[COL_PV_EXPORT_KWH] * price).sum(), CURRENCY_DECIMALS),
        battery_exported=_round((-dispatch[COL_TRADE_KWH]).clip(lower=0).sum(), ENERGY_DECIMALS),
        intervals=intervals,
    )
