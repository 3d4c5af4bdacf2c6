"""Request bundle I/O operations.

A request bundle is a folder containing:
- request.yaml: Battery settings, scheduled actions and an optional `run:`
  section with RunConfig overrides
- day_ahead.csv: Day-ahead prices (name configurable via `day_ahead_file`)
- pv_profile.csv: Optional PV production (name configurable via `pv_profile_file`)

A single JSON file in the transport request shape is accepted as well.
"""

import json
from pathlib import Path

import yaml

from dayahead_engine.core.schemas import RunConfig, SimulationRequest

REQUEST_FILE = "request.yaml"
DAY_AHEAD_FILE = "day_ahead.csv"
PV_PROFILE_FILE = "pv_profile.csv"


def _load_yaml_bundle(bundle_path: Path, request_file: Path) -> tuple[SimulationRequest, RunConfig]:
    with open(request_file) as f:
        raw = yaml.safe_load(f) or {}

    run_config = RunConfig(**raw.pop("run", None) or {})

    day_ahead_file = raw.pop("day_ahead_file", DAY_AHEAD_FILE)
    pv_profile_file = raw.pop("pv_profile_file", None)

    if "dayAheadCsv" not in raw and "day_ahead_csv" not in raw:
        raw["day_ahead_csv"] = (bundle_path / day_ahead_file).read_text()

    if "pvProfileCsv" not in raw and "pv_profile_csv" not in raw:
        pv_path = bundle_path / (pv_profile_file or PV_PROFILE_FILE)
        if pv_profile_file is not None or pv_path.exists():
            raw["pv_profile_csv"] = pv_path.read_text()

    return SimulationRequest.model_validate(raw), run_config


def load_request(path: str | Path) -> tuple[SimulationRequest, RunConfig]:
    """Load a simulation request from a bundle directory, YAML or JSON file.

    Args:
        path: Bundle directory, request YAML file or request JSON file

    Returns:
        Tuple of (request, run_config)

    Raises:
        FileNotFoundError: If the bundle or a referenced CSV file is missing
        pydantic.ValidationError: If the request does not match the schema
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Request not found: {path}")

    if path.is_dir():
        request_file = path / REQUEST_FILE
        if not request_file.exists():
            raise FileNotFoundError(f"Missing required file: {REQUEST_FILE}")
        return _load_yaml_bundle(path, request_file)

    if path.suffix == ".json":
        with open(path) as f:
            raw = json.load(f)
        run_config = RunConfig(**raw.pop("run", None) or {})
        return SimulationRequest.model_validate(raw), run_config

    return _load_yaml_bundle(path.parent, path)


def init_bundle(bundle_path: str | Path, request: SimulationRequest, run_config: RunConfig) -> None:
    """Initialize a new request bundle.

    Args:
        bundle_path: Path to bundle directory
        request: Simulation request
        run_config: Run configuration
    """
    bundle_path = Path(bundle_path)
    bundle_path.mkdir(parents=True, exist_ok=True)

    raw = request.model_dump(by_alias=True, exclude={"day_ahead_csv", "pv_profile_csv"})
    raw["run"] = run_config.model_dump()

    (bundle_path / DAY_AHEAD_FILE).write_text(request.day_ahead_csv)
    if request.pv_profile_csv is not None:
        (bundle_path / PV_PROFILE_FILE).write_text(request.pv_profile_csv)

    with open(bundle_path / REQUEST_FILE, "w") as f:
        yaml.dump(raw, f, default_flow_style=False, sort_keys=False)
