"""Turns cumulative counter samples into per-interface byte rates."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from nettui.counters import InterfaceSample

log = logging.getLogger(__name__)

DEFAULT_GRACE_TICKS = 3


@dataclass(frozen=True)
class RatePoint:
    """Throughput of one interface over the last sampling interval."""
    name: str
    download: float
    upload: float
    timestamp: float
    rx_packets: int = 0
    tx_packets: int = 0
    rx_errors: int = 0
    tx_errors: int = 0

    @property
    def total(self) -> float:
        return self.download + self.upload


@dataclass
class InterfaceState:
    last: InterfaceSample
    missed: int = 0


def _point(sample: InterfaceSample, download: float, upload: float) -> RatePoint:
    return RatePoint(
        name=sample.name,
        download=download,
        upload=upload,
        timestamp=sample.timestamp,
        rx_packets=sample.rx_packets,
        tx_packets=sample.tx_packets,
        rx_errors=sample.rx_errors,
        tx_errors=sample.tx_errors,
    )


class RateEngine:
    """Keeps the last sample per interface and derives rates from deltas.

    - first sighting of an interface only records a baseline
    - a counter that went backwards (reset, wraparound) rebaselines and
      yields a zero rate for that tick
    - a non-positive elapsed time yields nothing and keeps the old sample
    - an interface missing from more than `grace_ticks` consecutive
      updates is forgotten, so its return starts a new baseline
    """

    def __init__(self, grace_ticks: int = DEFAULT_GRACE_TICKS):
        if grace_ticks < 0:
            raise ValueError("grace_ticks must be >= 0")
        self.grace_ticks = grace_ticks
        self._states: dict[str, InterfaceState] = {}

    def tracked(self) -> frozenset[str]:
        return frozenset(self._states)

    def update(self, samples: Iterable[InterfaceSample]) -> set[RatePoint]:
        points: set[RatePoint] = set()
        seen: set[str] = set()

        for sample in samples:
            seen.add(sample.name)
            state = self._states.get(sample.name)
            if state is None:
                self._states[sample.name] = InterfaceState(last=sample)
                log.debug("baseline for %s", sample.name)
                continue

            state.missed = 0
            prev = state.last
            dt = sample.timestamp - prev.timestamp
            if dt <= 0:
                continue

            state.last = sample
            if sample.rx_bytes < prev.rx_bytes or sample.tx_bytes < prev.tx_bytes:
                log.info("counter reset on %s, rebaselining", sample.name)
                points.add(_point(sample, 0.0, 0.0))
                continue

            dl = (sample.rx_bytes - prev.rx_bytes) / dt
            ul = (sample.tx_bytes - prev.tx_bytes) / dt
            points.add(_point(sample, dl, ul))

        for name in [n for n in self._states if n not in seen]:
            state = self._states[name]
            state.missed += 1
            if state.missed > self.grace_ticks:
                del self._states[name]
                log.info("interface %s gone for %d ticks, dropped", name, state.missed)

        return points
