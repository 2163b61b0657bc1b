"""Entry point: wire the components together and map outcomes to exit codes."""

from __future__ import annotations

import sys

from nettui.aggregate import Aggregator
from nettui.config import Settings, parse_args
from nettui.counters import ProcNetDevSource
from nettui.display import Display
from nettui.logging_setup import configure_logging
from nettui.loop import RenderLoop
from nettui.rates import RateEngine
from nettui.terminal import Terminal, TerminalUnavailable

EXIT_OK = 0
EXIT_STARTUP_FAILED = 1


def build_loop(settings: Settings, terminal: Terminal) -> RenderLoop:
    aggregator = Aggregator(
        settings.history_points,
        selection=settings.selection(),
        missing=settings.missing,
    )
    display = Display(
        terminal,
        frame=settings.frame,
        legend=settings.legend,
        show_virtual=settings.show_virtual,
    )
    return RenderLoop(
        source=ProcNetDevSource(),
        engine=RateEngine(grace_ticks=settings.grace_ticks),
        aggregator=aggregator,
        display=display,
        backend=terminal,
        keys=terminal,
        interval=settings.interval_s,
    )


def main(argv: list[str] | None = None) -> int:
    settings = parse_args(argv)
    try:
        logger = configure_logging(settings.log_file, settings.log_level)
    except OSError as exc:
        print(f"nettui: cannot open log file: {exc}", file=sys.stderr)
        return EXIT_STARTUP_FAILED

    loop = build_loop(settings, Terminal())
    try:
        loop.run()
    except TerminalUnavailable as exc:
        logger.error("startup failed: %s", exc, extra={"event": "startup_failed"})
        print(f"nettui: {exc}", file=sys.stderr)
        return EXIT_STARTUP_FAILED
    except Exception:
        logger.exception("dashboard crashed", extra={"event": "crash"})
        raise
    return EXIT_OK


def run() -> None:
    sys.exit(main())
