"""Test the backward DP pass and policy extraction."""

import numpy as np
import pytest

from dayahead_engine.core.schemas import BatteryConfig, RunConfig
from dayahead_engine.core.validate import ConstraintInfeasible, ProblemTooLarge
from dayahead_engine.forecast.grid import UniformGrid
from dayahead_engine.forecast.interface import LoadForecast
from dayahead_engine.model.build import build_dp_table, build_problem
from dayahead_engine.model.solve import extract_policy, solve_dispatch


def make_grid(prices, pv=None):
    """Hourly grid over len(prices) intervals."""
    prices = np.asarray(prices, dtype=float)
    return UniformGrid(
        interval_minutes=60,
        intervals_per_day=len(prices),
        price=prices,
        pv=np.zeros(len(prices)) if pv is None else np.asarray(pv, dtype=float),
    )


def make_load(gross):
    """Load forecast with all consumption in the planned series."""
    gross = np.asarray(gross, dtype=float)
    return LoadForecast(random_kwh=np.zeros(len(gross)), planned_kwh=gross)


@pytest.fixture
def small_battery():
    """1 kWh battery, 1 kW power, empty at start."""
    return BatteryConfig(capacity_kwh=1.0, start_soc_percent=0.0, power_limit_kw=1.0, grid_limit_kw=10.0)


@pytest.fixture
def run_config():
    """Two-hour planning day."""
    return RunConfig(run_id="test_run", minutes_per_day=120)


def test_problem_discretization(small_battery, run_config):
    """Test state count, delta range and per-interval limits."""
    problem = build_problem(make_grid([0.1, 0.3]), make_load([0, 0]), small_battery, run_config)

    assert problem.num_states == 101
    assert len(problem.deltas) == 201
    assert problem.deltas[0] == pytest.approx(-1.0)
    assert problem.deltas[-1] == pytest.approx(1.0)
    assert problem.trade_max == pytest.approx(0.8)
    assert problem.grid_limit == pytest.approx(10.0)


def test_dp_table_shape_and_terminal_row(small_battery, run_config):
    """Test the table has one row per interval plus a zero terminal row."""
    problem = build_problem(make_grid([0.1, 0.3]), make_load([0, 0]), small_battery, run_config)

    dp = build_dp_table(problem)

    assert dp.shape == (3, 101)
    assert (dp[-1] == 0).all()


def test_arbitrage_charge_cheap_sell_dear(small_battery, run_config):
    """Test the battery charges to the corridor top and sells it all."""
    problem = build_problem(make_grid([0.1, 0.3]), make_load([0, 0]), small_battery, run_config)

    trades, solve_result = solve_dispatch(problem, 60)

    assert trades[0] == pytest.approx(0.8)
    assert trades[1] == pytest.approx(-0.8)
    assert solve_result.objective_value == pytest.approx(0.16)
    assert solve_result.dp_value == pytest.approx(0.16)


def test_ties_prefer_lowest_delta(small_battery, run_config):
    """Test equal-value decisions resolve to the first delta in increasing order."""
    battery = small_battery.model_copy(update={"start_soc_percent": 50.0})
    problem = build_problem(make_grid([0.0, 0.0]), make_load([0, 0]), battery, run_config)

    dp = build_dp_table(problem)
    trades, _ = extract_policy(problem, dp, 60)

    assert trades[0] == pytest.approx(-0.5)
    assert trades[1] == pytest.approx(0.0)


def test_discharge_above_corridor_limited(small_battery, run_config):
    """Test a full battery can only trade down to the corridor top in one step."""
    battery = small_battery.model_copy(update={"start_soc_percent": 100.0})
    problem = build_problem(make_grid([0.3, 0.3]), make_load([0, 0]), battery, run_config)

    trades, _ = solve_dispatch(problem, 60)

    assert trades[0] == pytest.approx(-0.2)
    assert trades[1] == pytest.approx(-0.8)


def test_self_use_below_corridor_blocks_trading(small_battery, run_config):
    """Test a battery starting above the corridor keeps its corridor energy.

    Self-use takes 0.85 kWh down to 0.75 kWh; trading may not sell more in
    the same interval even though the price is high.
    """
    battery = small_battery.model_copy(update={"start_soc_percent": 85.0})
    problem = build_problem(make_grid([0.3, 0.0]), make_load([0.1, 0.0]), battery, run_config)

    trades, _ = solve_dispatch(problem, 60)

    assert trades[0] == pytest.approx(0.0)


def test_grid_limit_caps_charging(small_battery, run_config):
    """Test grid charging is bounded by the grid limit."""
    battery = small_battery.model_copy(update={"grid_limit_kw": 0.5})
    problem = build_problem(make_grid([0.1, 0.3]), make_load([0, 0]), battery, run_config)

    trades, _ = solve_dispatch(problem, 60)

    assert trades[0] == pytest.approx(0.5)
    assert trades[1] == pytest.approx(-0.5)


def test_dp_keeps_energy_for_peak(small_battery, run_config):
    """Test the optimizer pre-charges when a later peak exceeds the grid limit."""
    battery = small_battery.model_copy(update={"grid_limit_kw": 1.0})
    problem = build_problem(make_grid([0.3, 0.1]), make_load([0, 1.5]), battery, run_config)

    trades, _ = solve_dispatch(problem, 60)

    # Expensive charge is still needed to serve 0.5 kWh above the limit later
    assert trades[0] == pytest.approx(0.5)


def test_infeasible_trajectory_reported(run_config):
    """Test unavoidable load above the grid limit raises ConstraintInfeasible."""
    battery = BatteryConfig(capacity_kwh=0.0, start_soc_percent=0.0, power_limit_kw=1.0, grid_limit_kw=1.0)
    problem = build_problem(make_grid([0.2, 0.2]), make_load([0.5, 2.0]), battery, run_config)

    assert problem.num_states == 1
    assert problem.deltas.tolist() == [0.0]

    dp = build_dp_table(problem)
    assert dp[1][0] == -np.inf

    with pytest.raises(ConstraintInfeasible, match="Interval 0"):
        extract_policy(problem, dp, 60)


def test_infeasible_state_marked_in_table(small_battery, run_config):
    """Test states that cannot serve a later peak get -inf."""
    battery = small_battery.model_copy(update={"grid_limit_kw": 1.0})
    problem = build_problem(make_grid([0.3, 0.1]), make_load([0, 1.5]), battery, run_config)

    dp = build_dp_table(problem)

    # At the peak the battery must hold at least 0.5 kWh
    assert dp[1][49] == -np.inf
    assert np.isfinite(dp[1][50])


def test_problem_too_large(small_battery):
    """Test oversized batteries are rejected before the backward pass."""
    battery = small_battery.model_copy(update={"capacity_kwh": 10.0})
    run_config = RunConfig(max_soc_states=100)

    with pytest.raises(ProblemTooLarge):
        build_problem(make_grid([0.1] * 24), make_load([0] * 24), battery, run_config)

    with pytest.raises(ProblemTooLarge):
        build_problem(make_grid([0.1] * 24), make_load([0] * 24), battery, RunConfig(max_dp_evaluations=1000))


def test_off_grid_start_soc(run_config):
    """Test a start SOC between grid states still produces a feasible schedule."""
    battery = BatteryConfig(capacity_kwh=1.0, start_soc_percent=33.3, power_limit_kw=1.0, grid_limit_kw=10.0)
    problem = build_problem(make_grid([0.3, 0.1]), make_load([0.123, 0.0]), battery, run_config)

    trades, _ = solve_dispatch(problem, 60)

    # Battery covers the load and exports what it can at the high price
    assert trades[0] == pytest.approx(-0.21, abs=0.011)


def test_large_home_battery_accepted():
    """Test a 50 kWh / 11 kW battery on an hourly day passes the size guard."""
    battery = BatteryConfig(capacity_kwh=50.0, start_soc_percent=50.0, power_limit_kw=11.0, grid_limit_kw=25.0)

    problem = build_problem(make_grid([0.1] * 24), make_load([0] * 24), battery, RunConfig())

    assert problem.num_states == 5001
    assert len(problem.deltas) == 2201
