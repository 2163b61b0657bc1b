"""Command-line settings."""

from __future__ import annotations

import argparse
from argparse import ArgumentParser
from dataclasses import dataclass, field

from nettui.aggregate import MissingPolicy, Selection
from nettui.rates import DEFAULT_GRACE_TICKS

MIN_INTERVAL_S = 0.25
MAX_INTERVAL_S = 5.0
INTERVAL_STEP_S = 0.25


def clamp_interval(seconds: float) -> float:
    return min(MAX_INTERVAL_S, max(MIN_INTERVAL_S, seconds))


@dataclass
class Settings:
    interval_s: float = 1.0
    window_s: float = 60.0
    interface: str | None = None
    exclude: frozenset[str] = field(default_factory=frozenset)
    missing: MissingPolicy = MissingPolicy.ZERO
    grace_ticks: int = DEFAULT_GRACE_TICKS
    show_virtual: bool = False
    frame: bool = False
    legend: bool = True
    log_file: str | None = None
    log_level: str = "INFO"

    @property
    def history_points(self) -> int:
        return max(2, int(self.window_s / self.interval_s))

    def selection(self) -> Selection:
        return Selection(interface=self.interface, exclude=self.exclude)


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="nettui", description="Live network throughput dashboard (q to quit)")
    parser.add_argument("--interval", type=float, default=1.0,
                        help="Update interval in seconds (default: 1.0, range 0.25-5)")
    parser.add_argument("--window", type=float, default=60.0,
                        help="Rolling history window in seconds (default: 60)")
    parser.add_argument("--interface", default=None,
                        help="Graph a single NIC (e.g. enp0s31f6) instead of the total")
    parser.add_argument("--exclude", default="",
                        help="Comma-separated NICs to leave out of the total (e.g. virbr0,tailscale0)")
    parser.add_argument("--missing", choices=[p.value for p in MissingPolicy],
                        default=MissingPolicy.ZERO.value,
                        help="Value graphed when no selected NIC reported this tick: "
                             "zero, or hold the last value (default: zero)")
    parser.add_argument("--grace-ticks", type=int, default=DEFAULT_GRACE_TICKS,
                        help="Ticks a vanished NIC keeps its baseline (default: 3)")
    parser.add_argument("--show-virtual", action="store_true",
                        help="List loopback and virtual NICs in the table (toggle with 'i')")
    parser.add_argument(
        "--frame",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Show chart frame border (default: off)",
    )
    parser.add_argument("--no-legend", action="store_true",
                        help="Hide the legend labels")
    parser.add_argument("--log-file", default=None,
                        help="Log file path (default: $XDG_STATE_HOME/nettui/nettui.log)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Log verbosity (default: INFO)")
    return parser


def parse_args(argv: list[str] | None = None) -> Settings:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.grace_ticks < 0:
        parser.error("--grace-ticks must be >= 0")

    interval = clamp_interval(args.interval)
    return Settings(
        interval_s=interval,
        window_s=max(interval * 4, args.window),
        interface=args.interface,
        exclude=frozenset(x.strip() for x in args.exclude.split(",") if x.strip()),
        missing=MissingPolicy(args.missing),
        grace_ticks=args.grace_ticks,
        show_virtual=args.show_virtual,
        frame=args.frame,
        legend=not args.no_legend,
        log_file=args.log_file,
        log_level=args.log_level,
    )
