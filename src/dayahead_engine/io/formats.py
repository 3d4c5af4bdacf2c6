"""Text format helpers for delimited series and interval tables."""

import math
import re
from dataclasses import dataclass

import pandas as pd

from dayahead_engine.core.constants import DEFAULT_INTERVAL_MINUTES, TIME_LABELS, VALUE_LABELS
from dayahead_engine.core.schemas import SimulationResult
from dayahead_engine.core.validate import MalformedInput

_DELIMITER = re.compile(r"[,;]")
_CLOCK = re.compile(r"^(\d{1,2}):(\d{2})")


@dataclass(frozen=True)
class TimeSample:
    """One parsed row of a price or production series."""

    timestamp: str
    minute: int
    value: float


def minutes_since_midnight(timestamp: str) -> int:
    """Convert "HH:MM" or an ISO-like "YYYY-MM-DDTHH:MM[:SS]" string to minutes.

    Raises:
        MalformedInput: If no clock time can be read
    """
    time_part = re.split(r"[T ]", timestamp.strip())[-1][:5]
    match = _CLOCK.match(time_part)
    if match is None or int(match.group(2)) >= 60:
        raise MalformedInput(f"Cannot read a time of day from {timestamp!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_timestamp(index: int, interval_minutes: int) -> str:
    """Format grid point `index` back to "HH:MM"."""
    total = index * interval_minutes
    return f"{total // 60:02d}:{total % 60:02d}"


def _is_header(line: str) -> bool:
    fields = [f.strip().lower() for f in _DELIMITER.split(line)]
    return len(fields) > 1 and fields[0] in TIME_LABELS and fields[1] in VALUE_LABELS


def parse_series_csv(text: str, name: str = "series") -> list[TimeSample]:
    """Parse a `timestamp,value` or `timestamp;value` series.

    The header row is optional. Values may use "," as decimal separator, so
    each row is split on its first delimiter only.

    Args:
        text: Raw CSV text
        name: Series name used in error messages

    Returns:
        Samples in input order

    Raises:
        MalformedInput: If a row has no value or a value is not numeric
    """
    lines = [(number, line.strip()) for number, line in enumerate(text.strip().splitlines(), start=1)]
    lines = [(number, line) for number, line in lines if line]
    if lines and _is_header(lines[0][1]):
        lines = lines[1:]

    samples = []
    for number, line in lines:
        fields = _DELIMITER.split(line, maxsplit=1)
        if len(fields) != 2 or not fields[1].strip():
            raise MalformedInput(f"{name} line {number}: expected 'timestamp,value', got {line!r}")

        timestamp, raw_value = fields[0].strip(), fields[1].strip()
        try:
            value = float(raw_value.replace(",", "."))
        except ValueError:
            raise MalformedInput(f"{name} line {number}: value {raw_value!r} is not numeric")
        if not math.isfinite(value):
            raise MalformedInput(f"{name} line {number}: value {raw_value!r} is not finite")

        try:
            minute = minutes_since_midnight(timestamp)
        except MalformedInput as e:
            raise MalformedInput(f"{name} line {number}: {e}")

        samples.append(TimeSample(timestamp=timestamp, minute=minute, value=value))

    return samples


def native_interval(samples: list[TimeSample], default: int = DEFAULT_INTERVAL_MINUTES) -> int:
    """Interval of a series: gap between its first two distinct timestamps."""
    if not samples:
        return default
    first = samples[0].minute
    for sample in samples[1:]:
        if sample.minute != first:
            return abs(sample.minute - first)
    return default


def intervals_to_frame(result: SimulationResult) -> pd.DataFrame:
    """Render the interval records as a DataFrame indexed by timestamp.

    Args:
        result: Simulation result

    Returns:
        DataFrame with the external camelCase column names
    """
    records = [interval.model_dump(by_alias=True) for interval in result.intervals]
    df = pd.DataFrame.from_records(records)
    if df.empty:
        return df
    return df.set_index("timestamp")


def write_intervals_csv(result: SimulationResult, path: str) -> None:
    """Write the interval table to CSV.

    Args:
        result: Simulation result
        path: Output path
    """
    intervals_to_frame(result).to_csv(path)
