"""Unit auto-scaling and small text helpers shared by the display."""

from __future__ import annotations

from typing import Sequence

# ---- unit scaling ----

RATE_UNITS = [("B/s", 1), ("KB/s", 1024), ("MB/s", 1024**2), ("GB/s", 1024**3)]

SPARK_BLOCKS = " ▁▂▃▄▅▆▇█"


def pick_unit(max_val: float, units: list[tuple[str, int]] | None = None) -> tuple[str, int]:
    """Choose the best unit so the peak value is readable."""
    if units is None:
        units = RATE_UNITS
    for name, divisor in reversed(units):
        if max_val >= divisor:
            return name, divisor
    return units[0]


def format_rate(bps: float, units: list[tuple[str, int]] | None = None) -> str:
    """Format a bytes/sec value, e.g. 500 -> '500 B/s', 2048 -> '2.0 KB/s'."""
    if units is None:
        units = RATE_UNITS
    for name, divisor in reversed(units[1:]):
        if bps >= divisor:
            return f"{bps / divisor:.1f} {name}"
    return f"{bps:.0f} {units[0][0]}"


def sparkline(values: Sequence[float], width: int) -> str:
    """Render the newest `width` values as block characters.

    Values are normalized against the peak of the visible window; an
    all-zero window renders as blanks.
    """
    if width <= 0:
        return ""
    window = list(values)[-width:]
    peak = max(window, default=0.0)
    if peak <= 0:
        return " " * len(window)
    top = len(SPARK_BLOCKS) - 1
    chars = []
    for v in window:
        level = round(max(0.0, v) / peak * top)
        chars.append(SPARK_BLOCKS[level])
    return "".join(chars)
