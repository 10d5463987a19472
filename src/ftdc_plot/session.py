"""One render pass: route, compile, render, and clean up."""


import logging
import shutil
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from types import TracebackType
from typing import Protocol

from .models import DEFAULT_OPTIONS, DEFAULT_WINDOW, Datapoint, RenderOptions, TimeWindow
from .renderer import GnuplotRenderer, RenderResult
from .router import SeriesRouter
from .script import compile_script

logger = logging.getLogger(__name__)


class Renderer(Protocol):
    """Anything that can turn a compiled script into an image."""

    def run(self, script_path: Path) -> RenderResult: ...


class RenderSession:
    """Scoped owner of the temp directory, stores, and script for one pass.

    Use as a context manager; leaving the block closes every store and, unless
    ``options.keep_files`` is set, removes the temp directory.
    """

    def __init__(
        self,
        window: TimeWindow = DEFAULT_WINDOW,
        options: RenderOptions = DEFAULT_OPTIONS,
    ) -> None:
        self.window = window
        self.options = options
        self.directory = Path(tempfile.mkdtemp(prefix="ftdc_plot"))
        self.router = SeriesRouter(self.directory, window)
        self.script_path: Path | None = None

    def __enter__(self) -> "RenderSession":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def route(self, datapoints: Iterable[Datapoint]) -> None:
        if self.script_path is not None:
            raise RuntimeError("cannot route points after the session was compiled")
        self.router.add_datapoints(datapoints)

    def compile(self) -> Path:
        """Compile the routed series. Stores are consumed, so this runs once."""
        if self.script_path is not None:
            raise RuntimeError("render session was already compiled")
        self.script_path = compile_script(self.router.series, self.directory, self.options)
        return self.script_path

    def close(self) -> None:
        self.router.close()
        if self.options.keep_files:
            logger.debug("keeping session files in %s", self.directory)
            return
        shutil.rmtree(self.directory, ignore_errors=True)
        logger.debug("removed session directory %s", self.directory)


@dataclass(frozen=True)
class RenderReport:
    """Summary of a finished pass, for printing or tool payloads."""

    window: TimeWindow
    script_path: Path
    output_path: Path
    result: RenderResult
    point_counts: dict[str, int] = field(default_factory=dict)

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "window": {
                "min_seconds": self.window.min_seconds,
                "max_seconds": self.window.max_seconds,
            },
            "script": str(self.script_path),
            "output": str(self.output_path),
            "points": dict(self.point_counts),
        }
        payload.update(self.result.to_payload())
        return payload


def default_renderer(options: RenderOptions = DEFAULT_OPTIONS) -> GnuplotRenderer:
    return GnuplotRenderer(binary=options.gnuplot, timeout=options.timeout)


def render_pass(
    datapoints: Iterable[Datapoint],
    window: TimeWindow = DEFAULT_WINDOW,
    options: RenderOptions = DEFAULT_OPTIONS,
    renderer: Renderer | None = None,
) -> RenderReport:
    """Build a fresh session over the full dataset and render it.

    The dataset is only read, so repeated passes with different windows never
    influence one another.
    """
    active_renderer = default_renderer(options) if renderer is None else renderer
    with RenderSession(window, options) as session:
        session.route(datapoints)
        point_counts = session.router.point_counts()
        script_path = session.compile()
        result = active_renderer.run(script_path)
    return RenderReport(
        window=window,
        script_path=script_path,
        output_path=Path(options.output).resolve(),
        result=result,
        point_counts=point_counts,
    )
