"""Generate synthetic example bundles for testing and demonstration."""

import numpy as np
import pandas as pd
from pathlib import Path

# Add src to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dayahead_engine.core.schemas import RunConfig, ScheduledAction, SimulationRequest
from dayahead_engine.io.bundle import init_bundle

BUNDLES_DIR = Path(__file__).parent.parent / "examples" / "bundles"


def _to_csv(series: pd.Series, header: str, decimals: int = 3) -> str:
    """Render a series indexed by timestamps as `HH:MM;value` rows with decimal commas."""
    lines = [header]
    for ts, value in series.items():
        lines.append(f"{ts:%H:%M};{value:.{decimals}f}".replace(".", ","))
    return "\n".join(lines) + "\n"


def generate_negative_prices_edge():
    """Generate bundle with negative midday prices and a PV surplus."""
    print("Generating negative_prices_edge bundle...")
    rng = np.random.default_rng(7)

    # Hourly prices, negative around solar noon (oversupply)
    hours = pd.date_range("2025-05-11", periods=24, freq="60min")
    price = pd.Series(0.18 + rng.normal(0, 0.02, 24), index=hours)
    price[(hours.hour >= 11) & (hours.hour <= 14)] = -0.05
    price[(hours.hour >= 18) & (hours.hour <= 20)] = 0.32

    # 30-minute PV, energy per interval (kWh)
    halves = pd.date_range("2025-05-11", periods=48, freq="30min")
    solar_hour = halves.hour + halves.minute / 60
    pv = pd.Series(np.clip(2.2 * np.sin((solar_hour - 6) * np.pi / 14), 0, None), index=halves)

    request = SimulationRequest(
        capacity_kwh=12.0,
        start_soc_percent=30.0,
        power_limit_kw=6.0,
        grid_limit_kw=12.0,
        day_ahead_csv=_to_csv(price, "tijdstip;prijs"),
        pv_profile_csv=_to_csv(pv, "tijdstip;productie"),
        actions=[
            ScheduledAction(start_time="07:00", duration_minutes=60, power_kw=2.0),
            ScheduledAction(start_time="18:30", duration_minutes=120, power_kw=7.4),
        ],
    )
    run_config = RunConfig(run_id="negative_prices_edge")

    bundle_path = BUNDLES_DIR / "negative_prices_edge"
    init_bundle(bundle_path, request, run_config)
    print(f"✓ Created {bundle_path}")


if __name__ == "__main__":
    print("Generating example bundles...\n")
    generate_negative_prices_edge()
    print("\n✓ All example bundles generated")
