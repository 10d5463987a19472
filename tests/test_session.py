"""Tests for scoped render sessions and full render passes."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from ftdc_plot.models import MAX_TIMESTAMP_SECONDS, Datapoint, RenderOptions, TimeWindow
from ftdc_plot.renderer import RenderResult
from ftdc_plot.session import RenderSession, render_pass

if TYPE_CHECKING:
    from conftest import RecordingRenderer


def test_session_removes_its_directory_on_exit(options: RenderOptions) -> None:
    """Leaving the context closes stores and deletes temp files."""
    with RenderSession(TimeWindow(), options) as session:
        session.route([Datapoint.from_mapping(1, {"cpu": 1.0})])
        script_path = session.compile()
        directory = session.directory
        assert script_path.exists()

    assert not directory.exists()
    assert session.router.series["cpu"].closed


def test_session_keeps_files_when_configured(tmp_path: Path) -> None:
    """``keep_files`` leaves the script and data files for inspection."""
    options = RenderOptions(output=str(tmp_path / "plot.png"), keep_files=True)
    with RenderSession(options=options) as session:
        session.route([Datapoint.from_mapping(1, {"cpu": 1.0})])
        script_path = session.compile()

    assert script_path.exists()
    assert session.router.series["cpu"].path.read_text(encoding="utf-8") == "1 1.00000\n"


def test_session_compiles_only_once(options: RenderOptions) -> None:
    """Stores are consumed by compilation, so a second compile is an error."""
    with RenderSession(options=options) as session:
        session.compile()
        with pytest.raises(RuntimeError, match="already compiled"):
            session.compile()
        with pytest.raises(RuntimeError, match="after the session was compiled"):
            session.route([])


def test_session_cleans_up_when_routing_fails(options: RenderOptions) -> None:
    """An exception inside the block still releases resources."""
    with pytest.raises(ZeroDivisionError):
        with RenderSession(options=options) as session:
            session.route([Datapoint.from_mapping(1, {"cpu": 1.0})])
            directory = session.directory
            1 / 0

    assert not directory.exists()
    assert session.router.series["cpu"].closed


def test_render_pass_scenario(
    scenario: tuple[Datapoint, ...],
    options: RenderOptions,
    renderer: RecordingRenderer,
) -> None:
    """Window [100, 150] keeps cpu@100 and mem@150 only."""
    report = render_pass(scenario, TimeWindow(100, 150), options, renderer)

    assert report.result.ok
    assert report.point_counts == {"cpu": 1, "mem": 1}
    assert renderer.series == [{"cpu": "100 1.00000\n", "mem": "150 5.00000\n"}]
    assert "set term png size 1000,400\n" in renderer.scripts[0]


def test_render_pass_omits_metrics_without_points(
    scenario: tuple[Datapoint, ...],
    options: RenderOptions,
    renderer: RecordingRenderer,
) -> None:
    """A metric with nothing in the window gets no graph and no height."""
    render_pass(scenario, TimeWindow(180, 300), options, renderer)

    assert list(renderer.series[0]) == ["cpu"]
    assert "set term png size 1000,200\n" in renderer.scripts[0]


def test_render_pass_on_empty_dataset(
    options: RenderOptions, renderer: RecordingRenderer
) -> None:
    """An empty capture still compiles and reaches the renderer."""
    report = render_pass((), TimeWindow(), options, renderer)

    assert report.point_counts == {}
    assert "set multiplot layout 0,1 " in renderer.scripts[0]


def test_reset_reproduces_the_unrestricted_render(
    scenario: tuple[Datapoint, ...],
    options: RenderOptions,
    renderer: RecordingRenderer,
) -> None:
    """Re-windowing depends only on the final window, never on history."""
    render_pass(scenario, TimeWindow(), options, renderer)
    render_pass(scenario, TimeWindow(100, 100), options, renderer)
    render_pass(scenario, TimeWindow(150, 200), options, renderer)
    render_pass(scenario, TimeWindow(), options, renderer)

    assert renderer.series[0] == renderer.series[-1]
    assert renderer.series[0] == {"cpu": "100 1.00000\n200 2.00000\n", "mem": "150 5.00000\n"}


def test_open_bounds_match_explicit_extremes(
    scenario: tuple[Datapoint, ...],
    options: RenderOptions,
    renderer: RecordingRenderer,
) -> None:
    """The default window equals ``[0, max]`` spelled out."""
    render_pass(scenario, TimeWindow(), options, renderer)
    render_pass(scenario, TimeWindow(0, MAX_TIMESTAMP_SECONDS), options, renderer)

    assert renderer.series[0] == renderer.series[1]


def test_render_pass_reports_renderer_failure(
    scenario: tuple[Datapoint, ...],
    options: RenderOptions,
    renderer: RecordingRenderer,
) -> None:
    """Renderer failures are returned, not raised."""
    renderer.result = RenderResult(
        ok=False, returncode=1, output="bad", error="exit status 1"
    )

    report = render_pass(scenario, TimeWindow(), options, renderer)

    assert not report.result.ok
    payload = report.to_payload()
    assert payload["ok"] is False
    assert payload["renderer_output"] == "bad"
    assert payload["points"] == {"cpu": 2, "mem": 1}
