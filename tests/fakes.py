"""Test doubles: a fake clock, a recording backend, scripted keys and counters."""

from __future__ import annotations

import sys
from collections import deque
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from nettui.counters import CounterReadError, InterfaceSample
from nettui.terminal import RenderError, TerminalUnavailable


def sample(name, rx, tx, t, **extra):
    return InterfaceSample(name=name, rx_bytes=rx, tx_bytes=tx, timestamp=t, **extra)


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, dt: float) -> None:
        self.now += dt


class RecordingBackend:
    """Records draw calls instead of touching a terminal."""

    def __init__(self, size=(100, 30), fail_acquire=False):
        self._size = size
        self.fail_acquire = fail_acquire
        self.fail_draws = 0
        self.acquired = 0
        self.restored = 0
        self.clears = 0
        self.flushes = 0
        self.draws: list[tuple[object, str]] = []

    def resize(self, cols, rows):
        self._size = (cols, rows)

    def acquire(self):
        if self.fail_acquire:
            raise TerminalUnavailable("not a terminal")
        self.acquired += 1

    def size(self):
        return self._size

    def clear(self):
        self.clears += 1

    def draw(self, panel, content):
        if self.fail_draws:
            self.fail_draws -= 1
            raise RenderError("resized mid-frame")
        self.draws.append((panel, content))

    def flush(self):
        self.flushes += 1

    def restore(self):
        self.restored += 1

    def last_frame(self) -> dict[str, str]:
        """Panel name -> content for the most recent draw of each panel."""
        frame = {}
        for panel, content in self.draws:
            frame[panel.name] = content
        return frame


class ScriptedKeys:
    """Key presses at fixed fake-clock times.

    read_key() advances the clock as a real bounded wait would: up to the
    next scripted key if it falls inside the timeout, else by the timeout.
    Entries may be callables, which run at their time instead of
    producing a key.
    """

    MAX_CALLS = 10_000

    def __init__(self, clock: FakeClock, events=()):
        self.clock = clock
        self.events = deque(sorted(events, key=lambda e: e[0]))
        self.calls = 0
        self.timeouts: list[float] = []

    def read_key(self, timeout):
        self.calls += 1
        if self.calls > self.MAX_CALLS:
            raise RuntimeError("loop never stopped")
        self.timeouts.append(timeout)
        if self.events and self.events[0][0] <= self.clock.now + timeout:
            at, key = self.events.popleft()
            self.clock.now = max(self.clock.now, at)
            if callable(key):
                key()
                return None
            return key
        self.clock.advance(timeout)
        return None


class ScriptedSource:
    """Returns the scripted results in order; an exception entry is raised.

    Once exhausted every read fails as a transient error.
    """

    def __init__(self, results):
        self.results = deque(results)
        self.reads = 0

    def read(self):
        self.reads += 1
        if not self.results:
            raise CounterReadError("no more data")
        result = self.results.popleft()
        if isinstance(result, Exception):
            raise result
        return set(result)
