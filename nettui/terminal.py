"""Terminal rendering backend — ANSI cursor addressing over a cbreak tty.

The display only talks to a backend through `RenderBackend`; the real
`Terminal` also doubles as the key reader since both share the tty.
"""

from __future__ import annotations

import os
import select
import shutil
import signal
import sys
import termios
import tty
from dataclasses import dataclass
from typing import Protocol, TextIO

HIDE_CURSOR = "\033[?25l"
SHOW_CURSOR = "\033[?25h"
ALT_SCREEN_ON = "\033[?1049h"
ALT_SCREEN_OFF = "\033[?1049l"
CLEAR_SCREEN = "\033[2J\033[H"
CLEAR_EOL = "\033[K"

# Ctrl-D; also what read_key() reports once stdin reaches EOF
EOF_KEY = "\x04"


class TerminalUnavailable(Exception):
    """The terminal could not be taken over at startup."""


class RenderError(Exception):
    """A frame could not be drawn (e.g. the terminal shrank mid-frame)."""


@dataclass(frozen=True)
class Panel:
    name: str
    top: int
    left: int
    width: int
    height: int


class RenderBackend(Protocol):
    def acquire(self) -> None: ...

    def size(self) -> tuple[int, int]: ...

    def clear(self) -> None: ...

    def draw(self, panel: Panel, content: str) -> None: ...

    def flush(self) -> None: ...

    def restore(self) -> None: ...


class KeySource(Protocol):
    def read_key(self, timeout: float) -> str | None: ...


class Terminal:
    """Owns the controlling tty while the dashboard runs.

    acquire() switches to cbreak mode and the alternate screen; restore()
    puts back the saved termios attributes and is safe to call twice.
    A signal wakeup pipe sits next to stdin in read_key()'s select so a
    handled signal (resize, stop) ends the wait right away.
    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None):
        self._in = stdin if stdin is not None else sys.stdin
        self._out = stdout if stdout is not None else sys.stdout
        self._saved: list | None = None
        self._buf: list[str] = []
        self._wake: tuple[int, int] | None = None
        self._prev_wakeup_fd = -1

    def acquire(self) -> None:
        if not (self._in.isatty() and self._out.isatty()):
            raise TerminalUnavailable("stdin and stdout must be a terminal")
        try:
            fd = self._in.fileno()
            saved = termios.tcgetattr(fd)
        except (termios.error, OSError) as exc:
            raise TerminalUnavailable(f"cannot configure terminal: {exc}") from exc
        try:
            tty.setcbreak(fd)
            self._out.write(ALT_SCREEN_ON + HIDE_CURSOR + CLEAR_SCREEN)
            self._out.flush()
        except (termios.error, OSError) as exc:
            termios.tcsetattr(fd, termios.TCSADRAIN, saved)
            raise TerminalUnavailable(f"cannot configure terminal: {exc}") from exc
        self._saved = saved
        self._open_wakeup()

    def restore(self) -> None:
        if self._saved is None:
            return
        saved, self._saved = self._saved, None
        self._buf.clear()
        self._close_wakeup()
        try:
            self._out.write(SHOW_CURSOR + ALT_SCREEN_OFF)
            self._out.flush()
        finally:
            termios.tcsetattr(self._in.fileno(), termios.TCSADRAIN, saved)

    def _open_wakeup(self) -> None:
        r, w = os.pipe()
        os.set_blocking(r, False)
        os.set_blocking(w, False)
        try:
            self._prev_wakeup_fd = signal.set_wakeup_fd(w)
        except ValueError:
            # not the main thread: signals can't be routed here, plain select
            os.close(r)
            os.close(w)
            return
        self._wake = (r, w)

    def _close_wakeup(self) -> None:
        if self._wake is None:
            return
        r, w = self._wake
        self._wake = None
        signal.set_wakeup_fd(self._prev_wakeup_fd)
        os.close(r)
        os.close(w)

    def size(self) -> tuple[int, int]:
        cols, rows = shutil.get_terminal_size()
        return cols, rows

    def clear(self) -> None:
        # drops whatever a skipped frame left unflushed
        self._buf = [CLEAR_SCREEN]

    def draw(self, panel: Panel, content: str) -> None:
        if panel.width <= 0 or panel.height <= 0:
            raise RenderError(f"panel {panel.name} has no room")
        lines = content.split("\n")[:panel.height]
        lines += [""] * (panel.height - len(lines))
        for i, line in enumerate(lines):
            self._buf.append(f"\033[{panel.top + i + 1};{panel.left + 1}H{line}{CLEAR_EOL}")

    def flush(self) -> None:
        frame, self._buf = "".join(self._buf), []
        try:
            self._out.write(frame)
            self._out.flush()
        except OSError as exc:
            raise RenderError(f"write failed: {exc}") from exc

    def read_key(self, timeout: float) -> str | None:
        """Wait at most `timeout` seconds for one key press.

        Returns None on timeout or when a signal arrived, EOF_KEY once
        stdin is closed or hung up.
        """
        fd = self._in.fileno()
        watched = [fd] if self._wake is None else [fd, self._wake[0]]
        ready, _, _ = select.select(watched, [], [], max(0.0, timeout))
        if self._wake is not None and self._wake[0] in ready:
            try:
                while os.read(self._wake[0], 512):
                    pass
            except BlockingIOError:
                pass  # drained
        if fd not in ready:
            return None
        try:
            data = os.read(fd, 1)
        except OSError:
            return EOF_KEY  # EIO once the tty hangs up
        if not data:
            return EOF_KEY
        return data.decode("utf-8", errors="replace")
