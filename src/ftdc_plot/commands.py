"""Operator command parsing and the window state machine.

:func:`apply_command` is pure: it maps the current :class:`SessionState` and
one input line to the next state plus what the loop should do. Reading input,
printing, and rendering live in :mod:`ftdc_plot.cli`.
"""


import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .models import DEFAULT_WINDOW, MAX_TIMESTAMP_SECONDS, TimeWindow

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"
TIMESTAMP_EXAMPLE = "2024-09-24T18:00:00"
_TIMESTAMP_SHAPE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}", re.ASCII)

HELP_TEXT = "\n".join(
    [
        "range <start> <end>",
        '-  Only plot datapoints within the given range. "zoom in"',
        f"-  E.g: range {TIMESTAMP_EXAMPLE} 2024-09-24T18:30:00",
        "-       range start 2024-09-24T18:30:00",
        f"-       range {TIMESTAMP_EXAMPLE} end",
        "-       range 1727200800 1727202600   (epoch seconds)",
        "-  All times in UTC",
        "",
        "reset range",
        '-  Unset any prior range. "zoom out to full"',
        "",
        "show range",
        "-  Print the current range.",
        "",
        "render, r",
        "-  Render again with the current range.",
        "",
        "`quit` or Ctrl-d to exit",
    ]
)

UNKNOWN_COMMAND = "Unknown command. Type `h` for help."


class TimestampParseError(ValueError):
    """Raised when a range bound is neither a keyword nor a valid timestamp."""

    def __init__(self, which: str, raw: str, reason: str) -> None:
        self.which = which
        self.raw = raw
        self.reason = reason
        super().__init__(
            f"Error parsing {which} time. Working example: `{TIMESTAMP_EXAMPLE}` "
            f"Inp: {raw!r} Err: {reason}"
        )


def parse_timestamp(raw: str, which: str = "start") -> int:
    """Parse ``YYYY-MM-DDTHH:MM:SS`` (UTC) or integer epoch seconds."""
    text = raw.strip()
    if text.isascii() and text.isdigit():
        seconds = int(text)
        if seconds > MAX_TIMESTAMP_SECONDS:
            raise TimestampParseError(which, raw, "epoch seconds out of range")
        return seconds
    if _TIMESTAMP_SHAPE.fullmatch(text) is None:
        raise TimestampParseError(which, raw, f"expected layout {TIMESTAMP_FORMAT}")
    try:
        parsed = datetime.strptime(text, TIMESTAMP_FORMAT)
    except ValueError as exc:
        raise TimestampParseError(which, raw, str(exc)) from exc
    return int(parsed.replace(tzinfo=timezone.utc).timestamp())


def parse_bound(raw: str, which: str) -> int:
    """Resolve a ``range`` bound; ``start``/``end`` keywords mean open bounds."""
    if which == "start" and raw == "start":
        return DEFAULT_WINDOW.min_seconds
    if which == "end" and raw == "end":
        return DEFAULT_WINDOW.max_seconds
    return parse_timestamp(raw, which)


@dataclass(frozen=True)
class SessionState:
    """Everything the operator loop carries between commands."""

    window: TimeWindow = DEFAULT_WINDOW


@dataclass(frozen=True)
class CommandResult:
    """Next state plus the loop's instructions for one input line."""

    state: SessionState
    render: bool = False
    quit: bool = False
    messages: tuple[str, ...] = field(default_factory=tuple)


def _apply_range(state: SessionState, arguments: list[str]) -> CommandResult:
    if len(arguments) != 2:
        return CommandResult(
            state=state,
            messages=(
                f"Expected two bounds, got {len(arguments)}. "
                "Usage: range <start|\"start\"> <end|\"end\">",
            ),
        )
    raw_start, raw_end = arguments
    try:
        min_seconds = parse_bound(raw_start, "start")
        max_seconds = parse_bound(raw_end, "end")
    except TimestampParseError as exc:
        return CommandResult(state=state, messages=(str(exc),))

    window = TimeWindow(min_seconds=min_seconds, max_seconds=max_seconds)
    return CommandResult(state=SessionState(window=window), render=True)


def apply_command(state: SessionState, line: str | None) -> CommandResult:
    """Apply one operator input line. ``None`` means end of input."""
    if line is None:
        return CommandResult(state=state, quit=True, messages=("", "Exiting..."))

    command = line.strip()
    if not command:
        return CommandResult(state=state)
    if command == "quit":
        return CommandResult(state=state, quit=True, messages=("Exiting...",))
    if command in ("h", "help"):
        return CommandResult(state=state, messages=(HELP_TEXT,))

    words = command.split()
    if words[0] == "range":
        return _apply_range(state, words[1:])
    if words == ["reset", "range"]:
        return CommandResult(state=SessionState(window=DEFAULT_WINDOW), render=True)
    if words == ["show", "range"]:
        return CommandResult(state=state, messages=(f"range {state.window.describe()}",))
    if command in ("render", "r"):
        return CommandResult(state=state, render=True)

    return CommandResult(state=state, messages=(UNKNOWN_COMMAND,))
