"""Per-interval energy flows shared by the backward pass, policy extraction and replay.

Order within an interval:
1. PV serves load
2. Battery serves remaining load (self-use discharge)
3. Remaining PV surplus charges the battery
4. Whatever is left is the grid flow before trading
5. A grid-trading delta moves energy between grid and battery

All functions accept a scalar or an array state of charge (and a scalar or
array delta) and broadcast with numpy.
"""

from dataclasses import dataclass

import numpy as np

from dayahead_engine.core.constants import NUMERICAL_TOLERANCE


@dataclass
class SelfUseFlows:
    """Flows of steps 1-4 for one interval."""

    pv_to_load: float
    discharge_self: np.ndarray
    charge_from_pv: np.ndarray
    pv_export: np.ndarray
    soc_after: np.ndarray
    net_after: np.ndarray


def self_use_flows(soc, pv: float, gross_load: float, capacity_kwh: float, max_energy: float) -> SelfUseFlows:
    """Split PV and load between battery and grid before any trading.

    Args:
        soc: State of charge at the start of the interval (kWh)
        pv: PV production in the interval (kWh)
        gross_load: Planned plus random load in the interval (kWh)
        capacity_kwh: Battery capacity
        max_energy: Battery energy limit per interval

    Returns:
        SelfUseFlows; net_after is positive for import, negative for export
    """
    pv_to_load = min(pv, gross_load)
    residual = gross_load - pv

    if residual > 0:
        discharge = np.minimum(np.minimum(residual, soc), max_energy)
        charge = np.zeros_like(discharge)
    else:
        surplus = -residual
        headroom = np.clip(capacity_kwh - np.asarray(soc, dtype=float), 0, None)
        charge = np.minimum(np.minimum(surplus, headroom), max_energy)
        discharge = np.zeros_like(charge)

    net_after = residual - discharge + charge
    pv_export = np.clip(pv - pv_to_load - charge, 0, None)

    return SelfUseFlows(
        pv_to_load=pv_to_load,
        discharge_self=discharge,
        charge_from_pv=charge,
        pv_export=pv_export,
        soc_after=soc - discharge + charge,
        net_after=net_after,
    )


def trade_feasibility(
    soc_start,
    soc_after,
    net_after,
    delta,
    capacity_kwh: float,
    trade_max: float,
    grid_limit: float,
    soc_step: float,
    num_states: int,
) -> tuple[np.ndarray, np.ndarray]:
    """Check trading deltas against battery, corridor and grid limits.

    Args:
        soc_start: SOC at the start of the interval
        soc_after: SOC after self-use flows
        net_after: Grid flow before trading
        delta: Trading delta (positive = grid charge)
        capacity_kwh: Battery capacity
        trade_max: Top of the trade corridor
        grid_limit: Grid import limit per interval (kWh)
        soc_step: SOC discretization step
        num_states: Number of discrete SOC states

    Returns:
        Tuple of (feasible mask, next state index clipped to the table)
    """
    tol = NUMERICAL_TOLERANCE
    soc_start = np.asarray(soc_start, dtype=float)
    soc_after = np.asarray(soc_after, dtype=float)
    delta = np.asarray(delta, dtype=float)
    soc_next = soc_after + delta
    index = np.floor(soc_next / soc_step + 0.5).astype(int)

    feasible = (soc_next >= -tol) & (soc_next <= capacity_kwh + tol)
    # Grid charging stays inside the corridor
    feasible &= ~((delta > 0) & (soc_next > trade_max + tol))
    # A battery starting above the corridor may only trade away the excess
    feasible &= ~((delta < 0) & (soc_start > trade_max + tol) & (soc_next < trade_max - tol))
    feasible &= net_after + delta <= grid_limit + tol
    feasible &= (index >= 0) & (index < num_states)

    return feasible, np.clip(index, 0, num_states - 1)


def interval_profit(net_after, delta, price: float):
    """Profit of an interval: export earns, import costs."""
    return -(net_after + delta) * price


def advance_soc(soc_after: float, delta: float, capacity_kwh: float) -> float:
    """SOC at the end of the interval, with float noise clamped to [0, capacity]."""
    return min(max(float(soc_after + delta), 0.0), capacity_kwh)
