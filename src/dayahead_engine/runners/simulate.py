"""Simulation runner: normalize, synthesize load, optimize, replay.

Each call allocates its own grid, DP table and buffers; nothing is shared
between calls, so independent requests can run in parallel.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from dayahead_engine.core.baseline import compute_baseline_dispatch
from dayahead_engine.core.metrics import compute_metrics
from dayahead_engine.core.schemas import (
    BatteryConfig,
    DispatchResult,
    RunConfig,
    SimulationRequest,
    SimulationResult,
)
from dayahead_engine.core.validate import validate_dispatch_result
from dayahead_engine.forecast.grid import UniformGrid, normalize_series
from dayahead_engine.forecast.interface import LoadForecast, LoadForecastProvider
from dayahead_engine.forecast.providers import SyntheticLoadProvider
from dayahead_engine.model.build import build_problem
from dayahead_engine.model.replay import build_result, replay_dispatch
from dayahead_engine.model.solve import solve_dispatch

logger = logging.getLogger(__name__)


@dataclass
class SimulationRun:
    """A finished optimization with its intermediate products."""

    grid: UniformGrid
    load: LoadForecast
    dispatch: pd.DataFrame
    solve_result: DispatchResult
    result: SimulationResult


def prepare_inputs(
    request: SimulationRequest,
    run_config: RunConfig,
    load_provider: Optional[LoadForecastProvider] = None,
) -> tuple[UniformGrid, LoadForecast]:
    """Normalize the price/PV text and forecast the load on the same grid.

    The synthetic household load with the request's scheduled actions is
    used unless another provider is given.
    """
    grid = normalize_series(request.day_ahead_csv, request.pv_profile_csv, run_config.minutes_per_day)
    load_provider = load_provider or SyntheticLoadProvider(request.actions)
    load = load_provider.forecast(grid.intervals_per_day, grid.interval_minutes)
    return grid, load


def optimize(
    grid: UniformGrid, load: LoadForecast, battery: BatteryConfig, run_config: RunConfig
) -> tuple[pd.DataFrame, DispatchResult]:
    """Optimize and replay one battery configuration on prepared inputs."""
    problem = build_problem(grid, load, battery, run_config)
    trades, solve_result = solve_dispatch(problem, grid.interval_minutes)

    dispatch = replay_dispatch(grid, load, battery, trades)
    validate_dispatch_result(dispatch, battery, grid.interval_minutes, run_config.trade_corridor_frac)

    return dispatch, solve_result


def run_simulation(request: SimulationRequest, run_config: Optional[RunConfig] = None) -> SimulationRun:
    """Run the full pipeline for one request.

    Args:
        request: Validated simulation request
        run_config: Optimizer settings (defaults if omitted)

    Returns:
        SimulationRun

    Raises:
        DispatchError: Any typed failure; no partial result is produced
    """
    run_config = run_config or RunConfig()
    battery = request.battery

    logger.info(
        "Run %s: %.2f kWh battery, start %.0f%%, %.2f kW power, %.2f kW grid, %d actions",
        run_config.run_id,
        battery.capacity_kwh,
        battery.start_soc_percent,
        battery.power_limit_kw,
        battery.grid_limit_kw,
        len(request.actions),
    )

    grid, load = prepare_inputs(request, run_config)
    dispatch, solve_result = optimize(grid, load, battery, run_config)
    result = build_result(dispatch, battery.capacity_kwh)

    logger.info(
        "Run %s done: net usage %.3f kWh, net cost %.2f, avg soc %.1f%%",
        run_config.run_id,
        result.net_usage,
        result.net_cost,
        result.avg_soc,
    )

    return SimulationRun(grid=grid, load=load, dispatch=dispatch, solve_result=solve_result, result=result)


def run_comparison(request: SimulationRequest, run_config: Optional[RunConfig] = None) -> tuple[SimulationRun, dict]:
    """Run the optimizer and compare it with the greedy baseline and no battery.

    Args:
        request: Validated simulation request
        run_config: Optimizer settings (defaults if omitted)

    Returns:
        Tuple of (optimized run, metrics)
    """
    run_config = run_config or RunConfig()
    run = run_simulation(request, run_config)
    battery = request.battery

    logger.info("Computing baseline dispatch...")
    baseline_dispatch = compute_baseline_dispatch(run.grid, run.load, battery, run_config)

    # Without a battery the only schedule is no trading at all
    no_battery = battery.model_copy(update={"capacity_kwh": 0.0})
    no_battery_dispatch = replay_dispatch(run.grid, run.load, no_battery, np.zeros(run.grid.intervals_per_day))

    metrics = compute_metrics(run.dispatch, baseline_dispatch, no_battery_dispatch, battery.capacity_kwh)
    logger.info(
        "Savings vs baseline: %.2f (%.1f%%)",
        metrics["savings_vs_baseline_eur"],
        metrics["savings_vs_baseline_pct"],
    )

    return run, metrics


def simulate(payload: dict, run_config: Optional[RunConfig] = None) -> dict:
    """Transport-facing entry point: request dict in, response dict out.

    Raises:
        pydantic.ValidationError: If the payload does not match the request shape
        DispatchError: Any typed failure of the computation
    """
    request = SimulationRequest.model_validate(payload)
    return run_simulation(request, run_config).result.to_response()
