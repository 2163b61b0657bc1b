"""Per-interface byte counters — reads /proc/net/dev."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

PROC_NET_DEV = "/proc/net/dev"

# Loopback and common virtual adapters (containers, bridges, hypervisors).
VIRTUAL_PREFIXES = ("lo", "veth", "docker", "br-", "vmnet", "virbr")


class CounterReadError(Exception):
    """The OS counters could not be read this tick."""


@dataclass(frozen=True)
class InterfaceSample:
    """Cumulative counters of one interface at one instant."""
    name: str
    rx_bytes: int
    tx_bytes: int
    timestamp: float
    rx_packets: int = 0
    tx_packets: int = 0
    rx_errors: int = 0
    tx_errors: int = 0


def is_virtual(name: str) -> bool:
    return name.startswith(VIRTUAL_PREFIXES)


def is_loopback(name: str) -> bool:
    return name == "lo" or name.startswith("lo:")


class ProcNetDevSource:
    """Reads every interface listed in /proc/net/dev.

    Fields after the colon (0-indexed):
      [0] rx bytes  [1] rx packets  [2] rx errs
      [8] tx bytes  [9] tx packets  [10] tx errs
    """

    def __init__(self, path: str = PROC_NET_DEV,
                 clock: Callable[[], float] = time.monotonic):
        self._path = path
        self._clock = clock

    def read(self) -> set[InterfaceSample]:
        try:
            with open(self._path) as f:
                lines = f.readlines()
        except OSError as exc:
            raise CounterReadError(f"cannot read {self._path}: {exc}") from exc

        now = self._clock()
        samples = set()
        for line in lines:
            if ":" not in line:
                continue  # the two header lines
            iface, data = line.split(":", 1)
            iface = iface.strip()
            parts = data.split()
            try:
                samples.add(InterfaceSample(
                    name=iface,
                    rx_bytes=int(parts[0]),
                    tx_bytes=int(parts[8]),
                    timestamp=now,
                    rx_packets=int(parts[1]),
                    tx_packets=int(parts[9]),
                    rx_errors=int(parts[2]),
                    tx_errors=int(parts[10]),
                ))
            except (IndexError, ValueError) as exc:
                raise CounterReadError(f"malformed line for {iface!r}: {line.strip()!r}") from exc
        return samples
