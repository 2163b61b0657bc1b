"""RenderLoop — the single control loop that owns all mutable state.

Each pass waits for a key press no longer than the time left until the
next tick, then runs one sample -> rate -> aggregate -> draw cycle when
the tick is due. Quit keys and termination signals both end up in
request_stop(); terminal restoration happens on every exit path.
"""

from __future__ import annotations

import enum
import logging
import signal
import time
from typing import Callable, Protocol

from nettui.aggregate import Aggregator
from nettui.config import INTERVAL_STEP_S, clamp_interval
from nettui.counters import CounterReadError, InterfaceSample
from nettui.display import Display
from nettui.rates import RateEngine
from nettui.terminal import EOF_KEY, KeySource, RenderBackend, TerminalUnavailable

log = logging.getLogger(__name__)

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP)
QUIT_KEYS = ("q", "Q", EOF_KEY)


class CounterSource(Protocol):
    def read(self) -> set[InterfaceSample]: ...


class LoopState(enum.Enum):
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class RenderLoop:
    def __init__(
        self,
        source: CounterSource,
        engine: RateEngine,
        aggregator: Aggregator,
        display: Display,
        backend: RenderBackend,
        keys: KeySource,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        handle_signals: bool = True,
    ):
        self.source = source
        self.engine = engine
        self.aggregator = aggregator
        self.display = display
        self.backend = backend
        self.keys = keys
        self.interval = clamp_interval(interval)
        self.state = LoopState.RUNNING
        self.ticks = 0
        self._clock = clock
        self._handle_signals = handle_signals
        self._redraw = False
        self._prev_handlers: dict[int, object] = {}

    # ---- control ----

    def request_stop(self) -> None:
        """Safe to call from a signal handler; only the first call matters."""
        if self.state is LoopState.RUNNING:
            self.state = LoopState.STOPPING

    def request_redraw(self) -> None:
        self._redraw = True

    def handle_key(self, key: str) -> None:
        if key in QUIT_KEYS:
            self.request_stop()
        elif key == "+":
            self.interval = clamp_interval(self.interval - INTERVAL_STEP_S)
            self.request_redraw()
        elif key == "-":
            self.interval = clamp_interval(self.interval + INTERVAL_STEP_S)
            self.request_redraw()
        elif key in ("i", "I"):
            self.display.show_virtual = not self.display.show_virtual
            self.request_redraw()

    # ---- one cycle ----

    def tick(self) -> None:
        try:
            samples = self.source.read()
        except CounterReadError as exc:
            log.warning("sample skipped: %s", exc)
        else:
            self.aggregator.ingest(self.engine.update(samples))
        self.ticks += 1
        self._redraw = False
        self.display.draw(self.aggregator.current(), self.interval)

    # ---- main loop ----

    def run(self) -> None:
        """Blocking main loop; returns once the state reaches STOPPED."""
        try:
            self.backend.acquire()
        except TerminalUnavailable:
            self.state = LoopState.STOPPED
            raise
        log.info("dashboard started, interval %.2fs", self.interval)

        try:
            self._install_signals()
            next_tick = self._clock()
            while self.state is LoopState.RUNNING:
                key = self.keys.read_key(max(0.0, next_tick - self._clock()))
                if key:
                    self.handle_key(key)
                if self.state is not LoopState.RUNNING:
                    break

                now = self._clock()
                if now >= next_tick:
                    self.tick()
                    next_tick += self.interval
                    if next_tick <= now:
                        # stalled past a whole tick: reschedule, don't burst
                        next_tick = now + self.interval
                elif self._redraw:
                    self._redraw = False
                    self.display.invalidate()
                    self.display.draw(self.aggregator.current(), self.interval)
        finally:
            self._shutdown()

    def _shutdown(self) -> None:
        self.state = LoopState.STOPPING
        try:
            self.backend.restore()
        finally:
            self._restore_signals()
            self.state = LoopState.STOPPED
            log.info("dashboard stopped after %d ticks", self.ticks)

    # ---- signals ----

    def _install_signals(self) -> None:
        if not self._handle_signals:
            return

        def on_stop(signum, frame):
            self.request_stop()

        def on_resize(signum, frame):
            self.request_redraw()

        for sig in STOP_SIGNALS:
            self._prev_handlers[sig] = signal.signal(sig, on_stop)
        self._prev_handlers[signal.SIGWINCH] = signal.signal(signal.SIGWINCH, on_resize)

    def _restore_signals(self) -> None:
        for sig, handler in self._prev_handlers.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
        self._prev_handlers.clear()
