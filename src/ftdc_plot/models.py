"""Core data models and render configuration for ftdc-plot."""


import json
import math
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Mapping

MAX_TIMESTAMP_SECONDS = 2**63 - 1


@dataclass(frozen=True)
class Reading:
    """One named metric value within a datapoint."""

    metric_name: str
    value: float


@dataclass(frozen=True)
class Datapoint:
    """One decoded capture record: a timestamp shared by many readings."""

    timestamp_seconds: int
    readings: tuple[Reading, ...]

    @classmethod
    def from_mapping(
        cls, timestamp_seconds: int, readings: Mapping[str, float]
    ) -> "Datapoint":
        """Build a datapoint from a ``name -> value`` mapping, keeping order."""
        return cls(
            timestamp_seconds=timestamp_seconds,
            readings=tuple(
                Reading(metric_name=name, value=float(value))
                for name, value in readings.items()
            ),
        )


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive ``[min_seconds, max_seconds]`` filter applied while routing."""

    min_seconds: int = 0
    max_seconds: int = MAX_TIMESTAMP_SECONDS

    def contains(self, timestamp_seconds: int) -> bool:
        """Return whether ``timestamp_seconds`` falls inside the window."""
        return self.min_seconds <= timestamp_seconds <= self.max_seconds

    def describe(self) -> str:
        """Render the window for operator-facing messages."""
        low = "start" if self.min_seconds == 0 else str(self.min_seconds)
        high = "end" if self.max_seconds == MAX_TIMESTAMP_SECONDS else str(self.max_seconds)
        return f"[{low}, {high}]"


DEFAULT_WINDOW = TimeWindow()


@dataclass(frozen=True)
class RenderOptions:
    """Layout, output, and renderer settings for one render pass.

    ``y_min`` pins the floor of every graph's y-axis. Capture metrics are
    usually non-negative, so the default is ``0.0``; metrics that can go
    negative are clipped unless the floor is set to ``None`` (autoscale).
    """

    canvas_width: int = 1000
    graph_height: int = 200
    output: str = "plot.png"
    y_min: float | None = 0.0
    gnuplot: str = "gnuplot"
    timeout: float | None = None
    keep_files: bool = False

    def to_dict(self) -> dict[str, object]:
        """Serialize the options to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Mapping[str, object]) -> "RenderOptions":
        """Instantiate options from a plain dictionary, rejecting unknown keys."""
        known = {field.name for field in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ValueError(
                f"Unknown render option(s): {', '.join(unknown)}. "
                f"Known options: {', '.join(sorted(known))}"
            )
        options = cls(**dict(raw))
        options.validate()
        return options

    @classmethod
    def from_json(cls, path: str | Path | None = None) -> "RenderOptions":
        """Load options from a JSON object file, or return defaults.

        Args:
            path: JSON path. If omitted, returns :data:`DEFAULT_OPTIONS`.
        """
        if path is None:
            return DEFAULT_OPTIONS
        raw_text = Path(path).read_text(encoding="utf-8")
        try:
            payload = json.loads(raw_text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {path}: {exc.msg}") from exc
        if not isinstance(payload, dict):
            raise TypeError(f"{path} must contain a JSON object")
        return cls.from_dict(payload)

    def validate(self) -> None:
        """Raise ``TypeError`` or ``ValueError`` if any option is malformed."""
        for name in ("canvas_width", "graph_height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
        for name in ("y_min", "timeout"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError(
                    f"{name} must be a number or null, got {type(value).__name__}"
                )
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite")
        for name in ("output", "gnuplot"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise TypeError(f"{name} must be a string, got {type(value).__name__}")
        if not isinstance(self.keep_files, bool):
            raise TypeError("keep_files must be true or false")

        if self.canvas_width <= 0:
            raise ValueError("canvas_width must be positive")
        if self.graph_height <= 0:
            raise ValueError("graph_height must be positive")
        if not self.output:
            raise ValueError("output must be a non-empty filename")
        if not self.gnuplot:
            raise ValueError("gnuplot must name an executable")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive when set")


DEFAULT_OPTIONS = RenderOptions()
