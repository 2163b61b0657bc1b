"""Combines per-interface rates into the series the dashboard shows."""

from __future__ import annotations

import enum
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable

from nettui.counters import is_loopback
from nettui.rates import RatePoint


class HistoryBuffer:
    """Fixed-capacity FIFO of floats; the oldest value falls off first."""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._data: deque[float] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._data.maxlen

    def append(self, value: float) -> None:
        self._data.append(value)

    def last(self, default: float = 0.0) -> float:
        return self._data[-1] if self._data else default

    def snapshot(self) -> tuple[float, ...]:
        return tuple(self._data)

    def __len__(self) -> int:
        return len(self._data)


class MissingPolicy(str, enum.Enum):
    """What to append when no tracked interface reported a rate this tick."""
    ZERO = "zero"
    HOLD = "hold"


@dataclass(frozen=True)
class Selection:
    """Which interfaces feed the download/upload series.

    `interface=None` sums every interface except loopback and `exclude`.
    A named interface is passed through on its own.
    """
    interface: str | None = None
    exclude: frozenset[str] = field(default_factory=frozenset)

    def tracks(self, name: str) -> bool:
        if self.interface is not None:
            return name == self.interface
        if name in self.exclude:
            return False
        return not is_loopback(name)

    def describe(self) -> str:
        return self.interface or "total"


@dataclass(frozen=True)
class Snapshot:
    download: float = 0.0
    upload: float = 0.0
    download_history: tuple[float, ...] = ()
    upload_history: tuple[float, ...] = ()
    interfaces: tuple[RatePoint, ...] = ()
    selection: str = "total"
    capacity: int = 0
    ticks: int = 0


class Aggregator:
    """Owns the rolling history; one value per series per `ingest()`."""

    def __init__(self, capacity: int, selection: Selection | None = None,
                 missing: MissingPolicy = MissingPolicy.ZERO):
        self.selection = selection or Selection()
        self.missing = MissingPolicy(missing)
        self._download = HistoryBuffer(capacity)
        self._upload = HistoryBuffer(capacity)
        self._latest: tuple[RatePoint, ...] = ()
        self._ticks = 0

    def ingest(self, points: Iterable[RatePoint]) -> None:
        points = list(points)
        tracked = [p for p in points if self.selection.tracks(p.name)]

        if tracked:
            dl = sum(p.download for p in tracked)
            ul = sum(p.upload for p in tracked)
        elif self.missing is MissingPolicy.HOLD:
            dl = self._download.last()
            ul = self._upload.last()
        else:
            dl = ul = 0.0

        self._download.append(dl)
        self._upload.append(ul)
        self._latest = tuple(sorted(points, key=lambda p: (-p.total, p.name)))
        self._ticks += 1

    def current(self) -> Snapshot:
        return Snapshot(
            download=self._download.last(),
            upload=self._upload.last(),
            download_history=self._download.snapshot(),
            upload_history=self._upload.snapshot(),
            interfaces=self._latest,
            selection=self.selection.describe(),
            capacity=self._download.capacity,
            ticks=self._ticks,
        )
