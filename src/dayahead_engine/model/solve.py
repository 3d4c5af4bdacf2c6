"""Policy extraction from the DP table."""

import logging
import time

import numpy as np

from dayahead_engine.core.schemas import DispatchResult
from dayahead_engine.core.validate import ConstraintInfeasible
from dayahead_engine.io.formats import format_timestamp
from dayahead_engine.model.build import DispatchProblem, build_dp_table
from dayahead_engine.model.flows import advance_soc, interval_profit

logger = logging.getLogger(__name__)


def extract_policy(problem: DispatchProblem, dp: np.ndarray, interval_minutes: int) -> tuple[np.ndarray, float]:
    """Choose a trading delta per interval along the real SOC trajectory.

    The delta search is repeated against the actual (non-discretized) SOC,
    scoring each candidate with the next row of the DP table, so the
    realized schedule approximates the table optimum rather than replaying
    grid states exactly.

    Args:
        problem: Dispatch problem
        dp: Table from build_dp_table
        interval_minutes: Grid interval length, for error messages

    Returns:
        Tuple of (delta per interval, realized profit)

    Raises:
        ConstraintInfeasible: If the trajectory reaches a state with no feasible continuation
    """
    T = problem.intervals_per_day
    chosen = np.zeros(T)
    soc = problem.start_soc_kwh
    profit = 0.0

    for i in range(T):
        flows = problem.flows(i, soc)
        feasible, nxt = problem.feasibility(soc, flows.soc_after, flows.net_after, problem.deltas)
        now = interval_profit(flows.net_after, problem.deltas, problem.price[i])
        values = np.where(feasible, now + dp[i + 1][nxt], -np.inf)

        # argmax keeps the first maximum, i.e. the lowest delta on ties
        k = int(np.argmax(values))
        if not np.isfinite(values[k]):
            if not feasible.any():
                detail = "no trading decision satisfies the grid, power and capacity limits"
            else:
                detail = "every feasible decision leads to a later interval that cannot be served"
            raise ConstraintInfeasible(
                f"Interval {i} ({format_timestamp(i, interval_minutes)}) at SOC {soc:.3f} kWh: {detail}"
            )

        chosen[i] = problem.deltas[k]
        profit += float(now[k])
        soc = advance_soc(flows.soc_after, problem.deltas[k], problem.capacity_kwh)

        logger.debug("Interval %d: delta %.2f kWh, soc %.3f kWh", i, chosen[i], soc)

    return chosen, profit


def solve_dispatch(problem: DispatchProblem, interval_minutes: int) -> tuple[np.ndarray, DispatchResult]:
    """Run the backward pass and extract the trading schedule.

    Args:
        problem: Dispatch problem
        interval_minutes: Grid interval length

    Returns:
        Tuple of (delta per interval, solve_result)
    """
    start_time = time.time()

    dp = build_dp_table(problem)
    deltas, profit = extract_policy(problem, dp, interval_minutes)

    solve_time = time.time() - start_time

    start_index = min(int(np.floor(problem.start_soc_kwh / problem.soc_step + 0.5)), problem.num_states - 1)
    solve_result = DispatchResult(
        objective_value=profit,
        dp_value=float(dp[0][start_index]),
        solve_time_seconds=solve_time,
        num_states=problem.num_states,
        num_deltas=len(problem.deltas),
        intervals_per_day=problem.intervals_per_day,
    )

    logger.info("Solve completed in %.2fs, realized profit %.4f", solve_time, profit)

    return deltas, solve_result
