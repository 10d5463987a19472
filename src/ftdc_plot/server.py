"""MCP server exposing capture rendering and metric listing as tools."""


import argparse
import json
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from .commands import TimestampParseError, parse_bound
from .decoder import (
    DEFAULT_DECODER,
    DecodeError,
    Decoder,
    load_datapoints,
    resolve_decoder,
)
from .models import DEFAULT_OPTIONS, Datapoint, RenderOptions, TimeWindow
from .session import render_pass
from .version import PACKAGE_VERSION

MCP_SERVER_NAME = "ftdc-plot"
mcp_server = FastMCP(MCP_SERVER_NAME)
ACTIVE_OPTIONS = DEFAULT_OPTIONS
ACTIVE_DECODER: Decoder = resolve_decoder(DEFAULT_DECODER)


def _load(file_path: str) -> tuple[Datapoint, ...]:
    path = Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {file_path}")
    return load_datapoints(path, ACTIVE_DECODER)


def summarize_metrics(datapoints: tuple[Datapoint, ...]) -> dict[str, object]:
    """Count readings per metric and report the capture's time span."""
    counts: dict[str, int] = {}
    for datapoint in datapoints:
        for reading in datapoint.readings:
            counts[reading.metric_name] = counts.get(reading.metric_name, 0) + 1
    timestamps = [datapoint.timestamp_seconds for datapoint in datapoints]
    return {
        "datapoints": len(datapoints),
        "first_seconds": min(timestamps) if timestamps else None,
        "last_seconds": max(timestamps) if timestamps else None,
        "metrics": counts,
    }


@mcp_server.tool()
def render_ftdc(file_path: str, start: str = "start", end: str = "end") -> str:
    """Render every metric in a capture file as stacked gnuplot graphs.

    ``start`` and ``end`` accept ``YYYY-MM-DDTHH:MM:SS`` (UTC), epoch seconds,
    or the keywords ``start``/``end`` for an open bound. Returns a JSON object
    with the image path, the window used, and per-metric point counts.
    """
    try:
        window = TimeWindow(
            min_seconds=parse_bound(start, "start"),
            max_seconds=parse_bound(end, "end"),
        )
    except TimestampParseError as exc:
        return json.dumps({"error": str(exc)})

    try:
        datapoints = _load(file_path)
    except (OSError, DecodeError) as exc:
        return json.dumps({"error": f"Could not load capture: {exc}"})

    report = render_pass(datapoints, window, ACTIVE_OPTIONS)
    payload = report.to_payload()
    payload["file"] = file_path
    return json.dumps(payload, indent=2)


@mcp_server.tool()
def list_metrics(file_path: str) -> str:
    """List the metrics in a capture file with reading counts and time span."""
    try:
        datapoints = _load(file_path)
    except (OSError, DecodeError) as exc:
        return json.dumps({"error": f"Could not load capture: {exc}"})

    payload = summarize_metrics(datapoints)
    payload["file"] = file_path
    return json.dumps(payload, indent=2)


def _build_parser() -> argparse.ArgumentParser:
    """Construct the MCP server CLI parser."""
    parser = argparse.ArgumentParser(
        prog="ftdc-plot-mcp",
        description="Run the ftdc-plot MCP server on stdio.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=PACKAGE_VERSION,
        help="Show package version and exit.",
    )
    parser.add_argument(
        "-c", "--config",
        default=None,
        metavar="JSON",
        help="Path to a JSON object of render options. Defaults to built-in settings.",
    )
    parser.add_argument(
        "--decoder",
        default=DEFAULT_DECODER,
        metavar="NAME",
        help="Decoder name, entry point, or 'module:callable'.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Run the ftdc-plot MCP server on stdio."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    global ACTIVE_OPTIONS, ACTIVE_DECODER
    ACTIVE_OPTIONS = RenderOptions.from_json(args.config)
    ACTIVE_DECODER = resolve_decoder(args.decoder)
    mcp_server.run()
