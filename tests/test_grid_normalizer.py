"""Test CSV parsing and grid normalization."""

import numpy as np
import pytest

from dayahead_engine.core.validate import GridIncompatible, InsufficientData, MalformedInput
from dayahead_engine.forecast.grid import forward_fill, normalize_series
from dayahead_engine.io.formats import (
    format_timestamp,
    minutes_since_midnight,
    native_interval,
    parse_series_csv,
)


def hourly_csv(values, header="time,price"):
    """Build an hourly price CSV starting at midnight."""
    rows = [f"{h:02d}:00,{v}" for h, v in enumerate(values)]
    return "\n".join([header] + rows if header else rows)


def test_parse_header_semicolon_and_decimal_comma():
    """Test Dutch header, semicolons and decimal commas."""
    samples = parse_series_csv("Tijdstip;Prijs\n00:00;0,25\n01:00;0,30\n")

    assert [s.minute for s in samples] == [0, 60]
    assert [s.value for s in samples] == pytest.approx([0.25, 0.30])


def test_parse_without_header_and_blank_lines():
    """Test header is optional and blank lines are skipped."""
    samples = parse_series_csv("\n00:00,0.1\n\n00:15,0.2\n")

    assert len(samples) == 2
    assert samples[1].minute == 15


def test_timestamp_with_date_prefix():
    """Test ISO-like timestamps resolve to their time of day."""
    assert minutes_since_midnight("2024-01-01T13:00:00") == 780
    assert minutes_since_midnight("2024-01-01 13:45") == 825
    assert minutes_since_midnight("07:30") == 450


@pytest.mark.parametrize(
    "text",
    [
        "00:00,abc\n01:00,0.2",
        "00:00\n01:00,0.2",
        "xx:yy,0.1\n01:00,0.2",
        "00:00,nan\n01:00,0.2",
    ],
)
def test_malformed_rows_rejected(text):
    """Test unparseable rows raise MalformedInput."""
    with pytest.raises(MalformedInput):
        parse_series_csv(text, name="price")


def test_malformed_error_names_line():
    """Test the error message points at the offending line."""
    with pytest.raises(MalformedInput, match="line 3"):
        parse_series_csv("time,price\n00:00,0.1\n01:00,oops")


def test_native_interval():
    """Test interval is the gap between the first two distinct timestamps."""
    samples = parse_series_csv("00:00,1\n00:00,2\n00:15,3\n01:00,4")
    assert native_interval(samples) == 15

    # Degenerate series fall back to 60 minutes
    assert native_interval(parse_series_csv("05:00,1\n05:00,2")) == 60


def test_format_timestamp():
    """Test grid points format back to HH:MM."""
    assert format_timestamp(0, 15) == "00:00"
    assert format_timestamp(5, 15) == "01:15"
    assert format_timestamp(23, 60) == "23:00"


def test_hourly_prices_fill_quarter_hour_grid():
    """Test the grid uses the finer PV interval and forward-fills prices."""
    prices = hourly_csv([0.1 * (h % 5) for h in range(24)])
    pv = "\n".join(f"{m // 60:02d}:{m % 60:02d};{m / 1440:.4f}" for m in range(0, 1440, 15))

    grid = normalize_series(prices, pv)

    assert grid.interval_minutes == 15
    assert grid.intervals_per_day == 96
    assert len(grid.price) == 96 and len(grid.pv) == 96

    # Each hourly price repeats over its four quarters
    assert np.allclose(grid.price[0:4], 0.0)
    assert np.allclose(grid.price[4:8], 0.1)
    assert grid.pv[1] == pytest.approx(15 / 1440, abs=1e-4)
    assert grid.timestamps[5] == "01:15"


def test_first_sample_fills_leading_gap():
    """Test grid points before the first sample take the first input value."""
    grid = normalize_series("06:00,0.2\n07:00,0.3")

    assert grid.intervals_per_day == 24
    assert np.allclose(grid.price[:7], 0.2)
    assert np.allclose(grid.price[7:], 0.3)


def test_unsorted_samples_fill_by_time():
    """Test forward-fill follows timestamps, not input order."""
    grid = normalize_series("02:00,0.3\n00:00,0.1\n01:00,0.2")

    # First two distinct timestamps are 02:00 and 00:00
    assert grid.interval_minutes == 120
    assert grid.price[0] == pytest.approx(0.1)
    assert np.allclose(grid.price[1:], 0.3)


def test_repeated_timestamp_keeps_last_value():
    """Test a repeated timestamp keeps its last value in input order."""
    samples = parse_series_csv("00:00,0.1\n00:00,0.2")

    filled = forward_fill(samples, 60, 24)

    assert np.allclose(filled, 0.2)


def test_missing_pv_is_zero():
    """Test omitted and blank PV both give an all-zero series."""
    prices = hourly_csv([0.2] * 24)

    assert np.all(normalize_series(prices).pv == 0)
    assert np.all(normalize_series(prices, "").pv == 0)


def test_single_row_pv_uses_price_interval():
    """Test a single PV row takes the price interval and fills the day."""
    grid = normalize_series(hourly_csv([0.2] * 24), "time,production\n00:00,0")

    assert grid.interval_minutes == 60
    assert np.all(grid.pv == 0)


def test_insufficient_price_rows():
    """Test fewer than two price rows is rejected."""
    with pytest.raises(InsufficientData):
        normalize_series("time,price\n00:00,0.25")

    with pytest.raises(InsufficientData):
        normalize_series("time,price\n")


def test_price_interval_must_divide_day():
    """Test a 50-minute price interval is rejected."""
    with pytest.raises(GridIncompatible):
        normalize_series("00:00,0.1\n00:50,0.2\n01:40,0.3")


def test_pv_interval_must_divide_day():
    """Test the PV series is checked against its own interval."""
    with pytest.raises(GridIncompatible):
        normalize_series(hourly_csv([0.2] * 24), "00:00,0\n00:50,1")


def test_explicit_day_length():
    """Test a shortened day sizes the grid from minutes_per_day."""
    grid = normalize_series("00:00,0.1\n00:30,0.2\n01:00,0.3\n01:30,0.4", minutes_per_day=120)

    assert grid.intervals_per_day == 4
    assert grid.price.tolist() == pytest.approx([0.1, 0.2, 0.3, 0.4])
