"""Interrupt handling for ping-testkit.

The signal handler only flips a flag and pokes a self-pipe. The echo session
observes the flag at its next suspension point and the runner prints the
final report.
"""

import os
import select
import signal
from types import FrameType, TracebackType
from typing import Any

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class StopFlag:
    """One-shot stop flag that is safe to set from a signal handler.

    set() takes no locks: it assigns a bool and writes a byte to a
    non-blocking pipe. wait() sleeps in select() on the pipe, so a set()
    from a handler or another thread ends the sleep early.
    """

    def __init__(self) -> None:
        self._set = False
        self._read_fd, self._write_fd = os.pipe()
        os.set_blocking(self._read_fd, False)
        os.set_blocking(self._write_fd, False)

    def is_set(self) -> bool:
        return self._set

    def set(self) -> None:
        self._set = True
        try:
            os.write(self._write_fd, b"\x00")
        except OSError:
            # Pipe full or closed; the flag alone is enough
            pass

    def wait(self, timeout: float | None = None) -> bool:
        """Sleep until set or timeout. Returns the flag."""
        if self._set:
            return True
        if timeout is not None:
            timeout = max(0.0, timeout)
        try:
            select.select([self._read_fd], [], [], timeout)
        except (OSError, ValueError):
            # Closed pipe
            pass
        return self._set

    def close(self) -> None:
        for fd in (self._read_fd, self._write_fd):
            try:
                os.close(fd)
            except OSError:
                pass
        self._read_fd = self._write_fd = -1


class InterruptListener:
    """Turn SIGINT/SIGTERM into a stop flag.

    Must be installed from the main thread. Previous handlers are restored
    on restore() or when used as a context manager.
    """

    def __init__(self, signals: tuple[signal.Signals, ...] = DEFAULT_SIGNALS) -> None:
        self.signals = signals
        self.stop = StopFlag()
        self._previous: dict[signal.Signals, Any] = {}

    def _handle(self, sig: int, _frame: FrameType | None) -> None:
        if self.stop.is_set():
            return
        self.stop.set()

    def install(self) -> "InterruptListener":
        for sig in self.signals:
            self._previous[sig] = signal.signal(sig, self._handle)
        return self

    def restore(self) -> None:
        for sig, handler in self._previous.items():
            signal.signal(sig, handler)
        self._previous.clear()

    @property
    def interrupted(self) -> bool:
        return self.stop.is_set()

    def __enter__(self) -> "InterruptListener":
        return self.install()

    def __exit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc: BaseException | None,
        _tb: TracebackType | None,
    ) -> None:
        self.restore()
        self.stop.close()
