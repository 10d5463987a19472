"""Route decoded readings into per-metric data files."""


import logging
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

from .models import DEFAULT_WINDOW, Datapoint, TimeWindow

logger = logging.getLogger(__name__)


class SeriesStore:
    """Append-only ``timestamp value`` file backing one metric's graph."""

    def __init__(self, metric_name: str, directory: Path) -> None:
        self.metric_name = metric_name
        handle = tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=directory,
            prefix="series",
            suffix=".dat",
            delete=False,
        )
        self._handle: TextIO = handle
        self.path = Path(handle.name).resolve()
        self.point_count = 0

    @property
    def closed(self) -> bool:
        return self._handle.closed

    def append(self, timestamp_seconds: int, value: float) -> None:
        """Write one point. Raises ``ValueError`` once the store is closed."""
        self._handle.write(f"{timestamp_seconds} {value:.5f}\n")
        self.point_count += 1

    def close(self) -> None:
        if not self._handle.closed:
            self._handle.close()


class SeriesRouter:
    """Fan readings out into lazily created per-metric stores.

    Points outside the window are dropped before they are written, so a pass
    only materializes the window's content. Stores keep arrival order and the
    mapping keeps metric first-seen order.
    """

    def __init__(self, directory: Path, window: TimeWindow = DEFAULT_WINDOW) -> None:
        self.directory = directory
        self.window = window
        self.series: dict[str, SeriesStore] = {}

    def _store_for(self, metric_name: str) -> SeriesStore:
        store = self.series.get(metric_name)
        if store is None:
            store = SeriesStore(metric_name, self.directory)
            self.series[metric_name] = store
            logger.debug("allocated store %s for metric %r", store.path, metric_name)
        return store

    def add_point(self, timestamp_seconds: int, metric_name: str, value: float) -> None:
        """Route one reading into its metric's store if it is in the window."""
        if not self.window.contains(timestamp_seconds):
            return
        self._store_for(metric_name).append(timestamp_seconds, value)

    def add_datapoint(self, datapoint: Datapoint) -> None:
        """Route every reading of ``datapoint`` using its shared timestamp."""
        for reading in datapoint.readings:
            self.add_point(datapoint.timestamp_seconds, reading.metric_name, reading.value)

    def add_datapoints(self, datapoints: Iterable[Datapoint]) -> None:
        for datapoint in datapoints:
            self.add_datapoint(datapoint)

    def point_counts(self) -> dict[str, int]:
        """Return routed point counts per metric in first-seen order."""
        return {name: store.point_count for name, store in self.series.items()}

    def close(self) -> None:
        """Close every store. Safe to call more than once."""
        for store in self.series.values():
            store.close()
