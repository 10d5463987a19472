"""Public package interface for ftdc-plot."""

from .cli import cli_main
from .commands import SessionState, apply_command
from .models import Datapoint, Reading, RenderOptions, TimeWindow
from .router import SeriesRouter
from .script import GnuplotScript, compile_script
from .server import list_metrics, main, render_ftdc
from .session import RenderSession, render_pass

__all__ = [
    "Datapoint",
    "GnuplotScript",
    "Reading",
    "RenderOptions",
    "RenderSession",
    "SeriesRouter",
    "SessionState",
    "TimeWindow",
    "apply_command",
    "cli_main",
    "compile_script",
    "list_metrics",
    "main",
    "render_ftdc",
    "render_pass",
]
