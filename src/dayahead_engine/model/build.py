"""Build the dispatch problem and run the backward dynamic-programming pass."""

import logging
import math
from dataclasses import dataclass

import numpy as np

from dayahead_engine.core.schemas import BatteryConfig, RunConfig
from dayahead_engine.core.validate import ProblemTooLarge
from dayahead_engine.forecast.grid import UniformGrid
from dayahead_engine.forecast.interface import LoadForecast
from dayahead_engine.model.flows import SelfUseFlows, interval_profit, self_use_flows, trade_feasibility

logger = logging.getLogger(__name__)


@dataclass
class DispatchProblem:
    """Everything the optimizer needs, on the uniform grid."""

    price: np.ndarray
    pv: np.ndarray
    gross_load: np.ndarray
    capacity_kwh: float
    start_soc_kwh: float
    max_energy: float
    grid_limit: float
    trade_max: float
    soc_step: float
    num_states: int
    deltas: np.ndarray

    @property
    def intervals_per_day(self) -> int:
        return len(self.price)

    def flows(self, i: int, soc) -> SelfUseFlows:
        return self_use_flows(soc, self.pv[i], self.gross_load[i], self.capacity_kwh, self.max_energy)

    def feasibility(self, soc_start, soc_after, net_after, delta):
        return trade_feasibility(
            soc_start,
            soc_after,
            net_after,
            delta,
            self.capacity_kwh,
            self.trade_max,
            self.grid_limit,
            self.soc_step,
            self.num_states,
        )


def build_problem(
    grid: UniformGrid, load: LoadForecast, battery: BatteryConfig, run: RunConfig
) -> DispatchProblem:
    """Derive per-interval limits and discretization for a request.

    Args:
        grid: Normalized price and PV series
        load: Synthesized load
        battery: Battery configuration
        run: Run configuration

    Returns:
        DispatchProblem ready for the backward pass

    Raises:
        ProblemTooLarge: If the DP table or delta scan would be intractable
    """
    step = run.soc_step_kwh
    capacity = battery.capacity_kwh
    max_energy = battery.max_energy_per_interval(grid.interval_minutes)

    num_states = math.floor(capacity / step + 1e-9) + 1
    if num_states > run.max_soc_states:
        raise ProblemTooLarge(
            f"Capacity {capacity} kWh needs {num_states} SOC states (limit {run.max_soc_states})"
        )

    # Deltas larger than the capacity can never be feasible
    max_steps = min(math.floor(max_energy / step + 1e-9), num_states - 1)
    deltas = np.arange(-max_steps, max_steps + 1) * step

    evaluations = grid.intervals_per_day * num_states * len(deltas)
    if evaluations > run.max_dp_evaluations:
        raise ProblemTooLarge(
            f"{grid.intervals_per_day} intervals x {num_states} states x {len(deltas)} deltas "
            f"exceeds {run.max_dp_evaluations} evaluations"
        )

    return DispatchProblem(
        price=grid.price,
        pv=grid.pv,
        gross_load=load.gross_kwh,
        capacity_kwh=capacity,
        start_soc_kwh=battery.start_soc_kwh,
        max_energy=max_energy,
        grid_limit=battery.grid_limit_kwh_per_interval(grid.interval_minutes),
        trade_max=run.trade_corridor_frac * capacity,
        soc_step=step,
        num_states=num_states,
        deltas=deltas,
    )


def build_dp_table(problem: DispatchProblem) -> np.ndarray:
    """Backward pass over discretized SOC.

    dp[i][j] is the best profit from interval i to the end of the day when
    the battery holds j * soc_step kWh at the start of interval i. The
    terminal row is zero. States with no feasible delta are -inf. Ties keep
    the first delta in increasing order.

    Args:
        problem: Dispatch problem

    Returns:
        Array of shape (intervals_per_day + 1, num_states)
    """
    T = problem.intervals_per_day
    dp = np.zeros((T + 1, problem.num_states))
    socs = np.arange(problem.num_states) * problem.soc_step

    logger.info(
        "Backward pass: %d intervals x %d states x %d deltas",
        T,
        problem.num_states,
        len(problem.deltas),
    )

    for i in reversed(range(T)):
        flows = problem.flows(i, socs)
        best = np.full(problem.num_states, -np.inf)

        for delta in problem.deltas:
            feasible, nxt = problem.feasibility(socs, flows.soc_after, flows.net_after, delta)
            value = interval_profit(flows.net_after, delta, problem.price[i]) + dp[i + 1][nxt]
            value = np.where(feasible, value, -np.inf)
            best = np.where(value > best, value, best)

        dp[i] = best

    return dp
