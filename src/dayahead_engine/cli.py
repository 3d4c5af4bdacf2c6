"""Command-line interface for the day-ahead dispatch engine."""

import json
import logging
from pathlib import Path
from typing import Optional

import pydantic
import typer

from dayahead_engine import __version__
from dayahead_engine.core.validate import DispatchError

app = typer.Typer(
    help="Day-ahead battery dispatch optimizer",
    no_args_is_help=True,
)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr")):
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _fail(message: str) -> None:
    typer.secho(f"✗ {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


def _load(request_path: str):
    from dayahead_engine.io.bundle import load_request

    try:
        return load_request(request_path)
    except FileNotFoundError as e:
        _fail(str(e))
    except pydantic.ValidationError as e:
        _fail(f"Invalid request: {e}")


@app.command()
def version():
    """Show engine version."""
    typer.echo(f"Day-ahead engine v{__version__}")


@app.command()
def validate(request_path: str):
    """Validate a request and report the uniform grid it maps to.

    Args:
        request_path: Bundle directory, request YAML or JSON file
    """
    from dayahead_engine.forecast.grid import normalize_series

    request, run_config = _load(request_path)

    try:
        grid = normalize_series(request.day_ahead_csv, request.pv_profile_csv, run_config.minutes_per_day)
    except DispatchError as e:
        _fail(f"{e.kind}: {e}")

    typer.secho(
        f"✓ Request at {request_path} is valid: {grid.intervals_per_day} intervals of "
        f"{grid.interval_minutes} min, {len(request.actions)} scheduled actions",
        fg=typer.colors.GREEN,
    )


@app.command()
def simulate(
    request_path: str,
    output: Optional[Path] = typer.Option(None, help="Write the JSON response here instead of stdout"),
    intervals_csv: Optional[Path] = typer.Option(None, help="Also write the interval table as CSV"),
):
    """Optimize the battery schedule for a request.

    Args:
        request_path: Bundle directory, request YAML or JSON file
    """
    from dayahead_engine.io.formats import write_intervals_csv
    from dayahead_engine.runners.simulate import run_simulation

    request, run_config = _load(request_path)

    try:
        run = run_simulation(request, run_config)
    except DispatchError as e:
        typer.echo(json.dumps(e.to_response().model_dump(), indent=2), err=True)
        _fail(f"Simulation failed: {e.kind}")

    response = json.dumps(run.result.to_response(), indent=2)
    if output is None:
        typer.echo(response)
    else:
        output.write_text(response)
        typer.secho(f"✓ Response written to {output}", fg=typer.colors.GREEN, err=True)

    if intervals_csv is not None:
        write_intervals_csv(run.result, str(intervals_csv))
        typer.secho(f"✓ Interval table written to {intervals_csv}", fg=typer.colors.GREEN, err=True)


@app.command()
def report(request_path: str):
    """Compare the optimized schedule with the greedy baseline and no battery.

    Args:
        request_path: Bundle directory, request YAML or JSON file
    """
    from dayahead_engine.runners.simulate import run_comparison

    request, run_config = _load(request_path)

    try:
        run, metrics = run_comparison(request, run_config)
    except DispatchError as e:
        _fail(f"{e.kind}: {e}")

    result = run.result

    typer.echo("\n" + "=" * 60)
    typer.echo("DAY-AHEAD DISPATCH REPORT")
    typer.echo("=" * 60)

    typer.echo(f"\nGrid: {run.grid.intervals_per_day} intervals of {run.grid.interval_minutes} min")

    typer.echo(f"\nCost Analysis:")
    typer.echo(f"  No battery cost:  €{metrics['no_battery_cost_eur']:.2f}")
    typer.echo(f"  Baseline cost:    €{metrics['baseline_cost_eur']:.2f}")
    typer.echo(f"  Optimized cost:   €{metrics['optimal_cost_eur']:.2f}")
    typer.echo(
        f"  Savings:          €{metrics['savings_vs_baseline_eur']:.2f} vs baseline "
        f"({metrics['savings_vs_baseline_pct']:.1f}%), "
        f"€{metrics['savings_vs_no_battery_eur']:.2f} vs no battery"
    )

    typer.echo(f"\nEnergy Flows:")
    typer.echo(f"  Net usage:        {result.net_usage:.3f} kWh")
    typer.echo(f"  Total export:     {metrics['total_export_kwh']:.3f} kWh")
    typer.echo(f"  PV self-consumed: {result.pv_self_consumed:.3f} kWh")
    typer.echo(f"  PV exported:      {result.pv_exported:.3f} kWh (€{result.export_revenue:.2f})")

    typer.echo(f"\nBattery Utilization:")
    typer.echo(f"  Average SOC:      {result.avg_soc:.1f}%")
    typer.echo(f"  Grid export:      {result.battery_exported:.3f} kWh")
    typer.echo(f"  Throughput:       {metrics['battery_throughput_kwh']:.2f} kWh")
    typer.echo(f"  Cycles:           {metrics['battery_cycles']:.2f}")

    typer.echo("\n" + "=" * 60 + "\n")

    typer.secho("✓ Report generated", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
