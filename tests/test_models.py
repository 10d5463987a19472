"""Tests for data models and render option loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from ftdc_plot.models import (
    DEFAULT_OPTIONS,
    DEFAULT_WINDOW,
    MAX_TIMESTAMP_SECONDS,
    Datapoint,
    Reading,
    RenderOptions,
    TimeWindow,
)


def test_default_window_is_unbounded() -> None:
    """The default window spans zero to the largest timestamp."""
    assert DEFAULT_WINDOW == TimeWindow(0, MAX_TIMESTAMP_SECONDS)
    assert DEFAULT_WINDOW.contains(0)
    assert DEFAULT_WINDOW.contains(MAX_TIMESTAMP_SECONDS)


def test_datapoint_from_mapping_coerces_values_to_float() -> None:
    """Integer readings are stored as floats."""
    datapoint = Datapoint.from_mapping(5, {"cpu": 1, "mem": 2.5})

    assert datapoint.readings == (Reading("cpu", 1.0), Reading("mem", 2.5))
    assert isinstance(datapoint.readings[0].value, float)


def test_options_from_json_without_path_returns_defaults() -> None:
    """No config file means built-in settings."""
    assert RenderOptions.from_json() is DEFAULT_OPTIONS
    assert DEFAULT_OPTIONS.y_min == 0.0
    assert DEFAULT_OPTIONS.timeout is None


def test_options_round_trip_through_json(tmp_path: Path) -> None:
    """Serialized options load back unchanged."""
    options = RenderOptions(canvas_width=800, y_min=None, timeout=12.5, keep_files=True)
    config = tmp_path / "render.json"
    config.write_text(json.dumps(options.to_dict()), encoding="utf-8")

    assert RenderOptions.from_json(config) == options


@pytest.mark.parametrize(
    ("payload", "error", "message"),
    [
        ({"width": 10}, ValueError, "Unknown render option"),
        ({"graph_height": 0}, ValueError, "graph_height must be positive"),
        ({"timeout": -1}, ValueError, "timeout must be positive"),
        ({"y_min": "-5"}, TypeError, "y_min must be a number or null, got str"),
        ({"timeout": "30"}, TypeError, "timeout must be a number or null"),
        ({"canvas_width": 800.5}, TypeError, "canvas_width must be an integer"),
        ({"graph_height": True}, TypeError, "graph_height must be an integer"),
        ({"output": 7}, TypeError, "output must be a string"),
        ({"gnuplot": ""}, ValueError, "gnuplot must name an executable"),
        ({"keep_files": "yes"}, TypeError, "keep_files must be true or false"),
        ([1, 2], TypeError, "must contain a JSON object"),
    ],
)
def test_options_from_json_rejects_bad_config(
    tmp_path: Path, payload: object, error: type[Exception], message: str
) -> None:
    """Invalid configs fail loudly."""
    config = tmp_path / "render.json"
    config.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(error, match=message):
        RenderOptions.from_json(config)


def test_options_from_json_reports_invalid_json(tmp_path: Path) -> None:
    """Syntax errors name the file."""
    config = tmp_path / "render.json"
    config.write_text("{", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid JSON"):
        RenderOptions.from_json(config)


def test_options_reject_non_finite_y_floor() -> None:
    """JSON ``Infinity`` parses as a float but cannot be a graph floor."""
    with pytest.raises(ValueError, match="y_min must be finite"):
        RenderOptions(y_min=float("inf")).validate()
