"""Decoder registry and capture loading helpers.

The binary FTDC format is decoded by an external package. This module only
resolves which decoder to call and loads a capture once so every render pass
can reuse the same in-memory dataset.
"""


import importlib
import json
import logging
from collections.abc import Callable, Sequence
from importlib.metadata import EntryPoint, entry_points
from pathlib import Path
from typing import BinaryIO, TypeAlias

from .models import Datapoint

logger = logging.getLogger(__name__)

Decoder: TypeAlias = Callable[[BinaryIO], Sequence[Datapoint]]

DECODER_ENTRY_POINT_GROUP = "ftdc_plot.decoders"
DEFAULT_DECODER = "jsonl"


class DecodeError(Exception):
    """Raised when a capture cannot be decoded into datapoints."""


def decode_jsonl(stream: BinaryIO) -> list[Datapoint]:
    """Decode flattened captures stored as one JSON object per line.

    Each line looks like ``{"time": 1727200800, "readings": {"cpu": 0.5}}``.
    Blank lines are skipped.
    """
    datapoints: list[Datapoint] = []
    for line_number, raw_line in enumerate(stream, start=1):
        try:
            stripped = raw_line.decode("utf-8").strip()
        except UnicodeDecodeError as exc:
            raise DecodeError(f"line {line_number}: not UTF-8 text: {exc}") from exc
        if not stripped:
            continue

        try:
            payload = json.loads(stripped)
        except json.JSONDecodeError as exc:
            raise DecodeError(f"line {line_number}: invalid JSON: {exc.msg}") from exc

        if not isinstance(payload, dict):
            raise DecodeError(f"line {line_number}: row must be a JSON object")

        timestamp = payload.get("time")
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise DecodeError(f"line {line_number}: missing integer 'time' field")

        readings = payload.get("readings")
        if not isinstance(readings, dict):
            raise DecodeError(f"line {line_number}: missing object 'readings' field")
        for name, value in readings.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise DecodeError(
                    f"line {line_number}: reading {name!r} must be a number, "
                    f"got {type(value).__name__}"
                )

        datapoints.append(Datapoint.from_mapping(timestamp, readings))
    return datapoints


_BUILTIN_DECODERS: dict[str, Decoder] = {
    "jsonl": decode_jsonl,
}


def _installed_decoders() -> dict[str, EntryPoint]:
    """Return decoder entry points registered by installed packages."""
    return {ep.name: ep for ep in entry_points(group=DECODER_ENTRY_POINT_GROUP)}


def resolve_decoder(name: str = DEFAULT_DECODER) -> Decoder:
    """Resolve a decoder from a built-in name, entry point, or import path.

    ``module:attribute`` always means an import path. Bare names are looked
    up among the built-ins first and then among ``ftdc_plot.decoders`` entry
    points.
    """
    if ":" in name:
        module_name, _, attribute = name.partition(":")
        try:
            module = importlib.import_module(module_name)
        except ImportError as exc:
            raise KeyError(f"Cannot import decoder module '{module_name}': {exc}") from exc
        decoder = getattr(module, attribute, None)
        if not callable(decoder):
            raise KeyError(f"Decoder '{name}' is not a callable attribute")
        return decoder

    builtin = _BUILTIN_DECODERS.get(name)
    if builtin is not None:
        return builtin

    installed = _installed_decoders()
    entry_point = installed.get(name)
    if entry_point is None:
        known = ", ".join(sorted({*_BUILTIN_DECODERS, *installed}))
        raise KeyError(f"Unknown decoder '{name}'. Known decoders: {known}")
    return entry_point.load()


def load_datapoints(path: str | Path, decoder: Decoder) -> tuple[Datapoint, ...]:
    """Open ``path`` and decode it once into an immutable datapoint tuple.

    Raises:
        OSError: The file cannot be opened.
        DecodeError: The decoder rejected the file contents.
    """
    capture_path = Path(path)
    with capture_path.open("rb") as handle:
        try:
            datapoints = tuple(decoder(handle))
        except DecodeError:
            raise
        except (ValueError, TypeError, EOFError) as exc:
            raise DecodeError(str(exc)) from exc
    logger.debug("decoded %d datapoints from %s", len(datapoints), capture_path)
    return datapoints
