"""Shared fixtures and test doubles for ftdc-plot tests."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

from ftdc_plot.models import Datapoint, RenderOptions
from ftdc_plot.renderer import RenderResult

_PLOT_LINE_RE = re.compile(r"^plot '(?P<path>.+?)' using 1:2 .* title '(?P<title>.*)'$")


class RecordingRenderer:
    """Renderer double that snapshots the script and data files it is given."""

    def __init__(self, result: RenderResult | None = None) -> None:
        self.result = result if result is not None else RenderResult(ok=True, returncode=0)
        self.scripts: list[str] = []
        self.series: list[dict[str, str]] = []

    def run(self, script_path: Path) -> RenderResult:
        """Read the compiled script and every data file it references."""
        text = script_path.read_text(encoding="utf-8")
        self.scripts.append(text)
        graphs: dict[str, str] = {}
        for line in text.splitlines():
            match = _PLOT_LINE_RE.match(line)
            if match:
                data = Path(match["path"]).read_text(encoding="utf-8")
                graphs[match["title"]] = data
        self.series.append(graphs)
        return self.result


@pytest.fixture
def renderer() -> RecordingRenderer:
    """Provide a fresh recording renderer."""
    return RecordingRenderer()


@pytest.fixture
def options(tmp_path: Path) -> RenderOptions:
    """Render options that write the image under ``tmp_path``."""
    return RenderOptions(output=str(tmp_path / "plot.png"))


@pytest.fixture
def scenario() -> tuple[Datapoint, ...]:
    """Two cpu readings and one mem reading at distinct timestamps."""
    return (
        Datapoint.from_mapping(100, {"cpu": 1.0}),
        Datapoint.from_mapping(200, {"cpu": 2.0}),
        Datapoint.from_mapping(150, {"mem": 5.0}),
    )
