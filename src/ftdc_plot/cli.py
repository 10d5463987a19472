"""CLI entry point for the ``ftdc-plot`` interactive grapher.

Usage examples::

    # Graph every metric in a capture, then take commands on stdin
    ftdc-plot viam-server.ftdc

    # Use a decoder provided by another installed package
    ftdc-plot --decoder ftdc viam-server.ftdc

    # Flattened JSONL captures are decoded by the built-in decoder
    ftdc-plot capture.jsonl

    # Custom layout and a renderer timeout
    ftdc-plot -c render.json --timeout 30 viam-server.ftdc

Interactive commands are listed by typing ``h`` at the ``$`` prompt.
"""


import argparse
import logging
import sys
from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import TextIO

from .commands import SessionState, apply_command
from .decoder import DEFAULT_DECODER, DecodeError, load_datapoints, resolve_decoder
from .models import Datapoint, RenderOptions, TimeWindow
from .session import RenderReport, Renderer, render_pass
from .version import PACKAGE_VERSION

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_OK = 0
EXIT_ERROR = 2

USAGE_HINT = "Expected an FTDC filename. E.g: ftdc-plot <path-to>/viam-server.ftdc"
PROMPT = "$ "

RenderFn = Callable[[TimeWindow], RenderReport]


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""
    p = argparse.ArgumentParser(
        prog="ftdc-plot",
        description="Graph FTDC capture metrics with gnuplot and zoom interactively.",
        epilog="Type `h` at the prompt for interactive commands.",
    )
    p.add_argument(
        "capture",
        nargs="?",
        default=None,
        metavar="FILE",
        help="Path to the diagnostic capture file.",
    )
    p.add_argument(
        "--version",
        action="version",
        version=PACKAGE_VERSION,
        help="Show package version and exit.",
    )
    p.add_argument(
        "-c", "--config",
        default=None,
        metavar="JSON",
        help="Path to a JSON object of render options. Defaults to built-in settings.",
    )
    p.add_argument(
        "--decoder",
        default=DEFAULT_DECODER,
        metavar="NAME",
        help=(
            "Decoder name, installed 'ftdc_plot.decoders' entry point, or "
            "'module:callable'. Defaults to %(default)s."
        ),
    )
    p.add_argument(
        "-o", "--output",
        default=None,
        metavar="PNG",
        help="Image file written on every render. Overrides the config file.",
    )
    p.add_argument(
        "--gnuplot",
        default=None,
        metavar="BIN",
        help="gnuplot executable. Overrides the config file.",
    )
    p.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Abort a render that runs longer than this. Default: wait forever.",
    )
    p.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="Log debug details about render sessions to stderr.",
    )
    return p


def _resolve_options(args: argparse.Namespace) -> RenderOptions:
    """Merge the optional config file with command-line overrides."""
    options = RenderOptions.from_json(args.config)
    overrides: dict[str, object] = {}
    if args.output is not None:
        overrides["output"] = args.output
    if args.gnuplot is not None:
        overrides["gnuplot"] = args.gnuplot
    if args.timeout is not None:
        overrides["timeout"] = args.timeout
    if overrides:
        options = replace(options, **overrides)
        options.validate()
    return options


# ---------------------------------------------------------------------------
# Interactive loop
# ---------------------------------------------------------------------------


def _print_report(report: RenderReport, file: TextIO = sys.stdout) -> None:
    """Print the render outcome; renderer output is only shown on failure."""
    print(f"Output file: `{report.output_path.name}`", file=file)
    if report.result.ok:
        return
    print("error running gnuplot:", report.result.error, file=file)
    print("gnuplot output:", report.result.output, file=file)


def run_loop(
    render: RenderFn,
    state: SessionState = SessionState(),
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> SessionState:
    """Render once, then process operator commands until quit or EOF.

    Returns the final session state.
    """
    stdin = sys.stdin if stdin is None else stdin
    stdout = sys.stdout if stdout is None else stdout
    should_render = True
    while True:
        if should_render:
            _print_report(render(state.window), file=stdout)

        print(PROMPT, end="", file=stdout, flush=True)
        line = stdin.readline()
        result = apply_command(state, line if line else None)
        for message in result.messages:
            print(message, file=stdout)
        state = result.state
        if result.quit:
            return state
        should_render = result.render


def _make_render(
    datapoints: Sequence[Datapoint],
    options: RenderOptions,
    renderer: Renderer | None = None,
) -> RenderFn:
    def render(window: TimeWindow) -> RenderReport:
        return render_pass(datapoints, window, options, renderer)

    return render


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def cli_main(argv: list[str] | None = None) -> int:
    """Entry point for the ``ftdc-plot`` command.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).

    Returns:
        Exit code suitable for ``sys.exit``.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if args.capture is None:
        print(USAGE_HINT)
        return EXIT_OK

    try:
        options = _resolve_options(args)
        decoder = resolve_decoder(args.decoder)
    except (OSError, KeyError, TypeError, ValueError) as exc:
        print(f"ftdc-plot: {exc}", file=sys.stderr)
        return EXIT_ERROR

    try:
        datapoints = load_datapoints(args.capture, decoder)
    except OSError as exc:
        print("Error opening file. File:", args.capture, "Err:", exc)
        print(USAGE_HINT)
        return EXIT_OK
    except DecodeError as exc:
        print(f"ftdc-plot: {args.capture}: decode failed: {exc}", file=sys.stderr)
        return EXIT_ERROR

    run_loop(_make_render(datapoints, options))
    return EXIT_OK


def main() -> None:
    """Thin wrapper that calls ``sys.exit`` with the CLI return code."""
    sys.exit(cli_main())
