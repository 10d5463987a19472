"""Gnuplot script model and the compiler that lays out one graph per metric.

Scripts are assembled as a list of :class:`Directive` values and serialized
once at the end. String arguments are wrapped in :class:`Quoted` so metric
names and file paths can never break out of their literal.
"""


import logging
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeAlias

from .models import DEFAULT_OPTIONS, RenderOptions
from .router import SeriesStore

logger = logging.getLogger(__name__)

# Characters gnuplot's enhanced text mode treats as markup or escapes.
_ENHANCED_TEXT_MARKUP = frozenset("_^@&~{}\\")

PLOT_STYLE: tuple[str, ...] = ("with", "lines", "linestyle", "7", "lw", "4")
MULTIPLOT_MARGINS: tuple[str, ...] = (
    "margins", "0.05,0.9,0.05,0.9", "spacing", "screen", "0,", "char", "5",
)


def quote(text: str) -> str:
    """Return ``text`` as a single-quoted gnuplot string literal."""
    flattened = text.replace("\r", " ").replace("\n", " ")
    return "'" + flattened.replace("'", "''") + "'"


def escape_title(metric_name: str) -> str:
    """Escape enhanced-text markup so the title renders literally.

    ``cpu_user`` would otherwise draw ``user`` as a subscript.
    """
    return "".join(
        "\\" + ch if ch in _ENHANCED_TEXT_MARKUP else ch for ch in metric_name
    )


@dataclass(frozen=True)
class Quoted:
    """A string argument that must be emitted as a quoted literal."""

    text: str

    def render(self) -> str:
        return quote(self.text)


Token: TypeAlias = str | int | float | Quoted


def _render_token(token: Token) -> str:
    if isinstance(token, Quoted):
        return token.render()
    text = str(token)
    if any(ch in text for ch in "\r\n;#'\""):
        raise ValueError(f"Bare gnuplot token contains a reserved character: {text!r}")
    return text


@dataclass(frozen=True)
class Directive:
    """One gnuplot command line, e.g. ``set xlabel 'Time'``."""

    command: str
    arguments: tuple[Token, ...] = ()

    def render(self) -> str:
        return " ".join(_render_token(token) for token in (self.command, *self.arguments))


@dataclass
class GnuplotScript:
    """Ordered gnuplot directives serialized into a single script."""

    directives: list[Directive] = field(default_factory=list)

    def add(self, command: str, *arguments: Token) -> "GnuplotScript":
        self.directives.append(Directive(command, tuple(arguments)))
        return self

    def set(self, *arguments: Token) -> "GnuplotScript":
        return self.add("set", *arguments)

    def unset(self, *arguments: Token) -> "GnuplotScript":
        return self.add("unset", *arguments)

    def plot(self, data_path: Path, title: str) -> "GnuplotScript":
        """Plot column 1 (time) against column 2 (value) of ``data_path``."""
        return self.add(
            "plot",
            Quoted(str(data_path)),
            "using",
            "1:2",
            *PLOT_STYLE,
            "title",
            Quoted(escape_title(title)),
        )

    def render(self) -> str:
        return "".join(directive.render() + "\n" for directive in self.directives)


def canvas_height(metric_count: int, options: RenderOptions = DEFAULT_OPTIONS) -> int:
    """Total image height: a fixed slice per graph."""
    return metric_count * options.graph_height


def build_header(metric_count: int, options: RenderOptions = DEFAULT_OPTIONS) -> GnuplotScript:
    """Build the layout and shared-axis directives that precede the plots."""
    script = GnuplotScript()
    script.set(
        "term", "png", "size", f"{options.canvas_width},{canvas_height(metric_count, options)}"
    )
    script.set("output", Quoted(str(Path(options.output).resolve())))
    # One column, one row per metric, so every graph shares the same x position.
    script.set("multiplot", "layout", f"{metric_count},1", *MULTIPLOT_MARGINS)

    script.set("timefmt", Quoted("%s"))
    script.set("format", "x", Quoted("%H:%M:%S"))
    script.set("xlabel", Quoted("Time"))
    script.set("xdata", "time")

    if options.y_min is None:
        script.set("yrange", "[*:*]")
    else:
        script.set("yrange", f"[{options.y_min:g}:*]")
    return script


def compile_script(
    series: Mapping[str, SeriesStore],
    directory: Path,
    options: RenderOptions = DEFAULT_OPTIONS,
) -> Path:
    """Write the top-level script for ``series`` and return its absolute path.

    Every store is closed by the time this returns or raises; each one is
    closed right after its plot directive is recorded.
    """
    try:
        script = build_header(len(series), options)
        for metric_name, store in series.items():
            script.plot(store.path, metric_name)
            store.close()
        script.unset("multiplot")

        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=directory,
            prefix="main",
            suffix=".gp",
            delete=False,
        ) as handle:
            handle.write(script.render())
        script_path = Path(handle.name).resolve()
    finally:
        for store in series.values():
            store.close()

    logger.debug("compiled %d graph(s) into %s", len(series), script_path)
    return script_path
