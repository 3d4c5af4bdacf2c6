"""Greedy baseline dispatch strategy for comparison.

Simple heuristic, no look-ahead:
1. PV serves load; surplus PV charges the battery, the rest is exported
2. Peak shaving: discharge when net load exceeds the grid limit
3. Arbitrage against the daily mean price: charge up to the trade corridor
   ceiling when cheaper, discharge when dearer
4. A second peak-shaving pass
"""

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
)
from dayahead_engine.core.schemas import BatteryConfig, RunConfig
from dayahead_engine.forecast.grid import UniformGrid
from dayahead_engine.forecast.interface import LoadForecast


def compute_baseline_dispatch(
    grid: UniformGrid, load: LoadForecast, battery: BatteryConfig, run: RunConfig
) -> pd.DataFrame:
    """Compute baseline dispatch using the greedy heuristic.

    Args:
        grid: Normalized price and PV series
        load: Synthesized load
        battery: Battery configuration
        run: Run configuration (trade corridor)

    Returns:
        Dispatch frame with the same columns as the replay engine
    """
    cap = battery.capacity_kwh
    soc = battery.start_soc_kwh
    max_energy = battery.max_energy_per_interval(grid.interval_minutes)
    grid_limit = battery.grid_limit_kwh_per_interval(grid.interval_minutes)
    trade_max = run.trade_corridor_frac * cap
    mean_price = float(grid.price.mean())

    rows = []
    for i in range(grid.intervals_per_day):
        price = float(grid.price[i])
        pv = float(grid.pv[i])
        gross = float(load.gross_kwh[i])

        net_load = gross - pv
        charge_from_pv = 0.0
        pv_export = 0.0
        shaved = 0.0
        trade = 0.0

        # Excess PV: charge battery first, then export
        if net_load < 0:
            surplus = -net_load
            charge_from_pv = min(surplus, max_energy, cap - soc)
            soc += charge_from_pv
            pv_export = surplus - charge_from_pv
            net_load = -pv_export

        # Peak shaving
        if net_load > grid_limit and soc > 0:
            need = min(net_load - grid_limit, max_energy, soc)
            shaved += need
            soc -= need
            net_load -= need

        # Arbitrage
        if price < mean_price and soc < trade_max:
            room = min(trade_max - soc, max_energy, max(grid_limit - net_load, 0.0))
            trade += room
            soc += room
            net_load += room
        elif price > mean_price and soc > 0:
            avail = min(soc, max_energy)
            trade -= avail
            soc -= avail
            net_load -= avail

        # Extra peak shaving if still over the limit
        if net_load > grid_limit and soc > 0:
            extra = min(net_load - grid_limit, max_energy, soc)
            shaved += extra
            soc -= extra
            net_load -= extra

        rows.append(
            {
                COL_PRICE: price,
                COL_PV_KWH: pv,
                COL_PLANNED_KWH: float(load.planned_kwh[i]),
                COL_RANDOM_KWH: float(load.random_kwh[i]),
                COL_PV_TO_LOAD_KWH: min(pv, gross),
                COL_DISCHARGE_SELF_KWH: shaved,
                COL_CHARGE_FROM_PV_KWH: charge_from_pv,
                COL_PV_EXPORT_KWH: pv_export,
                COL_TRADE_KWH: trade,
                COL_NET_FLOW_KWH: net_load,
                COL_BATTERY_ACTION_KWH: shaved - charge_from_pv - trade,
                COL_SOC_KWH: soc,
            }
        )

    return pd.DataFrame(rows, index=pd.Index(grid.timestamps, name=COL_TIMESTAMP))
