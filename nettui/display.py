"""Dashboard rendering: header, readouts, braille graph, interface table.

Display is read-only with respect to the data it shows: it receives an
immutable Snapshot and turns it into panel text for the backend.
"""

from __future__ import annotations

import logging
import math

import plotext as plt

from nettui.aggregate import Snapshot
from nettui.counters import is_virtual
from nettui.rates import RatePoint
from nettui.terminal import Panel, RenderBackend, RenderError
from nettui.units import format_rate, pick_unit, sparkline

log = logging.getLogger(__name__)

MIN_COLS = 20
MIN_ROWS = 4
GRAPH_MIN_ROWS = 5

TABLE_COLUMNS = [
    ("INTERFACE", 16, "<"),
    ("RX/s", 12, ">"),
    ("TX/s", 12, ">"),
    ("PKTS IN", 12, ">"),
    ("PKTS OUT", 12, ">"),
    ("ERR IN", 8, ">"),
    ("ERR OUT", 8, ">"),
]


def _pad_left(values: tuple[float, ...], n: int) -> list[float]:
    return [0.0] * (n - len(values)) + list(values[-n:])


def _row(cells: list[str]) -> str:
    return "".join(f"{cell:{align}{width}}" for cell, (_, width, align) in zip(cells, TABLE_COLUMNS))


class Display:
    def __init__(self, backend: RenderBackend, *, frame: bool = False,
                 legend: bool = True, show_virtual: bool = False):
        self.backend = backend
        self.frame = frame
        self.legend = legend
        self.show_virtual = show_virtual
        self._last_size: tuple[int, int] | None = None

    def invalidate(self) -> None:
        """Force a full clear on the next frame (after a resize)."""
        self._last_size = None

    # ---- layout ----

    def layout(self, cols: int, rows: int, table_rows: int) -> list[Panel]:
        if cols < MIN_COLS or rows < MIN_ROWS:
            raise RenderError(f"terminal too small ({cols}x{rows})")
        panels = [Panel("header", 0, 0, cols, 1), Panel("readout", 1, 0, cols, 2)]
        top = 3
        free = rows - top
        if free <= 0:
            return panels

        table_h = min(table_rows + 2, max(2, free // 2))
        graph_h = free - table_h
        if graph_h < GRAPH_MIN_ROWS:
            table_h, graph_h = free, 0

        if graph_h:
            panels.append(Panel("graph", top, 0, cols, graph_h))
            top += graph_h
        panels.append(Panel("table", top, 0, cols, table_h))
        return panels

    # ---- panel content ----

    def render_header(self, snapshot: Snapshot, interval: float, width: int,
                      n_ifaces: int) -> str:
        virt = "on" if self.show_virtual else "off"
        text = (f" nettui  {snapshot.selection}  (q:quit  +/-:rate  i:virtual {virt})"
                f"   refresh: {interval * 1000:.0f} ms   ifaces: {n_ifaces}")
        return text[:width]

    def render_readout(self, snapshot: Snapshot, width: int) -> str:
        lines = []
        for arrow, rate, history in (("↓", snapshot.download, snapshot.download_history),
                                     ("↑", snapshot.upload, snapshot.upload_history)):
            prefix = f" {arrow} {format_rate(rate):>11}  "
            lines.append(prefix + sparkline(history, width - len(prefix)))
        return "\n".join(line[:width] for line in lines)

    def render_graph(self, snapshot: Snapshot, width: int, height: int,
                     interval: float) -> str:
        n = max(2, snapshot.capacity, len(snapshot.download_history))
        dl = _pad_left(snapshot.download_history, n)
        ul = _pad_left(snapshot.upload_history, n)
        xs = [(i - n + 1) * interval for i in range(n)]

        peak = max(max(dl), max(ul), 1.0)
        unit_label, divisor = pick_unit(peak)
        dl_scaled = [v / divisor for v in dl]
        ul_scaled = [v / divisor for v in ul]
        y_max = math.ceil(max(max(dl_scaled), max(ul_scaled), 0.01) * 1.15)

        plt.clf()
        plt.theme("clear")
        plt.plotsize(width, height)

        dl_label = f"↓ {format_rate(snapshot.download)}" if self.legend else ""
        ul_label = f"↑ {format_rate(snapshot.upload)}" if self.legend else ""
        plt.plot(xs, dl_scaled, label=dl_label, color="green", marker="braille")
        plt.plot(xs, ul_scaled, label=ul_label, color="yellow", marker="braille")

        plt.frame(self.frame)
        plt.xticks([])
        plt.yticks([])
        plt.ylim(0, y_max)
        plt.xlim(xs[0], 0)
        plt.grid(False, False)
        plt.text(f"Net  {unit_label}", x=xs[0] / 2, y=y_max * 0.9,
                 color="default", alignment="center")
        return plt.build().rstrip()

    def render_table(self, rows: list[RatePoint], width: int, height: int) -> str:
        lines = ["Interfaces", _row([name for name, _, _ in TABLE_COLUMNS])]
        for p in rows[:max(0, height - 2)]:
            lines.append(_row([
                p.name,
                format_rate(p.download),
                format_rate(p.upload),
                str(p.rx_packets),
                str(p.tx_packets),
                str(p.rx_errors),
                str(p.tx_errors),
            ]))
        return "\n".join(line[:width] for line in lines)

    def visible(self, snapshot: Snapshot) -> list[RatePoint]:
        return [p for p in snapshot.interfaces if self.show_virtual or not is_virtual(p.name)]

    # ---- frame ----

    def draw(self, snapshot: Snapshot, interval: float) -> bool:
        """Draw one frame. Returns False if the frame had to be skipped."""
        try:
            cols, rows = self.backend.size()
            if (cols, rows) != self._last_size:
                self.backend.clear()
                self._last_size = (cols, rows)
            visible = self.visible(snapshot)
            for panel in self.layout(cols, rows, len(visible)):
                if panel.name == "header":
                    content = self.render_header(snapshot, interval, panel.width, len(visible))
                elif panel.name == "readout":
                    content = self.render_readout(snapshot, panel.width)
                elif panel.name == "graph":
                    content = self.render_graph(snapshot, panel.width, panel.height, interval)
                else:
                    content = self.render_table(visible, panel.width, panel.height)
                self.backend.draw(panel, content)
            self.backend.flush()
        except (RenderError, OSError, ValueError) as exc:
            log.debug("frame skipped: %s", exc)
            self._last_size = None
            return False
        return True
