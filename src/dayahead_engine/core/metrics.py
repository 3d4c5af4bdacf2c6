"""Metrics computation for dispatch results."""

import pandas as pd

from dayahead_engine.core.constants import (
    COL_BATTERY_ACTION_KWH,
    COL_NET_FLOW_KWH,
    COL_PRICE,
    COL_TRADE_KWH,
)


def compute_cost(dispatch: pd.DataFrame) -> float:
    """Compute net cost of a dispatch schedule.

    Args:
        dispatch: Dispatch frame with net grid flow and price

    Returns:
        Net cost in EUR (positive = cost, negative = profit)
    """
    return float((dispatch[COL_NET_FLOW_KWH] * dispatch[COL_PRICE]).sum())


def _savings(reference_cost: float, cost: float) -> tuple[float, float]:
    savings = reference_cost - cost
    pct = (savings / abs(reference_cost) * 100) if reference_cost != 0 else 0.0
    return savings, pct


def compute_metrics(
    optimal_dispatch: pd.DataFrame,
    baseline_dispatch: pd.DataFrame,
    no_battery_dispatch: pd.DataFrame,
    capacity_kwh: float,
) -> dict:
    """Compute metrics comparing the optimized schedule with the alternatives.

    Args:
        optimal_dispatch: Replayed DP schedule
        baseline_dispatch: Greedy heuristic schedule
        no_battery_dispatch: Same inputs with a zero-capacity battery
        capacity_kwh: Battery capacity

    Returns:
        Dictionary of metrics
    """
    optimal_cost = compute_cost(optimal_dispatch)
    baseline_cost = compute_cost(baseline_dispatch)
    no_battery_cost = compute_cost(no_battery_dispatch)

    savings_vs_baseline, savings_vs_baseline_pct = _savings(baseline_cost, optimal_cost)
    savings_vs_no_battery, savings_vs_no_battery_pct = _savings(no_battery_cost, optimal_cost)

    # Throughput counts energy in and out of the battery
    throughput_kwh = float(optimal_dispatch[COL_BATTERY_ACTION_KWH].abs().sum())
    battery_cycles = throughput_kwh / (2 * capacity_kwh) if capacity_kwh > 0 else 0.0

    net_flow = optimal_dispatch[COL_NET_FLOW_KWH]

    return {
        "optimal_cost_eur": optimal_cost,
        "baseline_cost_eur": baseline_cost,
        "no_battery_cost_eur": no_battery_cost,
        "savings_vs_baseline_eur": savings_vs_baseline,
        "savings_vs_baseline_pct": savings_vs_baseline_pct,
        "savings_vs_no_battery_eur": savings_vs_no_battery,
        "savings_vs_no_battery_pct": savings_vs_no_battery_pct,
        "battery_throughput_kwh": throughput_kwh,
        "battery_cycles": battery_cycles,
        "battery_exported_kwh": float((-optimal_dispatch[COL_TRADE_KWH]).clip(lower=0).sum()),
        "total_import_kwh": float(net_flow.clip(lower=0).sum()),
        "total_export_kwh": float((-net_flow).clip(lower=0).sum()),
    }
