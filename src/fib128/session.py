# src/fib128/session.py
"""
Positioned, exclusive access to the Fibonacci engine.

A FibSession behaves like the read side of a small character device: the
file position is the Fibonacci index, read() returns F(position) as a fixed
40-byte NUL-padded buffer, seek() moves the position within [0, max_index]
and write() is accepted but ignored. Only one session may be open at a time;
a second open() fails immediately instead of waiting.
"""

from __future__ import annotations

import os
import sys
import threading

from colorama import Fore, Style

from fib128.bign import BigN
from fib128.engine import MAX_INDEX_DEFAULT, fib_doubling, max_computable_index
from fib128.fmt import STRING_LEN, bign_to_buffer, bign_to_string
from fib128.runtime import CFG
from fib128.runtime import current as _rt_current
from fib128.utility import UserInputError

SEEK_SET = os.SEEK_SET
SEEK_CUR = os.SEEK_CUR
SEEK_END = os.SEEK_END

_session_lock = threading.Lock()


class DeviceBusy(UserInputError):
    pass


def effective_max_index(value: int | None = None) -> int:
    """Explicit value, else LIMITS.MAX_INDEX, else the nominal default; capped to what fits."""
    if value is None:
        value = CFG("LIMITS.MAX_INDEX", MAX_INDEX_DEFAULT)
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise UserInputError(f"max index must be a non-negative integer, got {value!r}")
    return min(value, max_computable_index())


def _debug(msg: str) -> None:
    if _rt_current().debug:
        print(f"[debug] {msg}", file=sys.stderr)


class FibSession:
    def __init__(self, max_index: int | None = None):
        self.max_index = effective_max_index(max_index)
        self._pos = 0
        self._open = False

    # --- lifecycle -------------------------------------------------------

    def open(self) -> FibSession:
        if self._open:
            return self
        if not _session_lock.acquire(blocking=False):
            print(f"{Fore.YELLOW}fib128 session is in use{Style.RESET_ALL}", file=sys.stderr)
            raise DeviceBusy("another fib128 session is already open")
        self._open = True
        self._pos = 0
        _debug(f"session opened (max index {self.max_index})")
        return self

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        _session_lock.release()
        _debug("session closed")

    @property
    def closed(self) -> bool:
        return not self._open

    def __enter__(self) -> FibSession:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_open(self) -> None:
        if not self._open:
            raise ValueError("I/O operation on closed session")

    # --- positioning -----------------------------------------------------

    def seek(self, offset: int, whence: int = SEEK_SET) -> int:
        """
        Move to a new index and return it. SEEK_END counts back from
        max_index. The result is clamped to [0, max_index]; an unknown
        whence lands on 0.
        """
        self._require_open()
        if whence == SEEK_SET:
            new_pos = offset
        elif whence == SEEK_CUR:
            new_pos = self._pos + offset
        elif whence == SEEK_END:
            new_pos = self.max_index - offset
        else:
            new_pos = 0

        self._pos = max(0, min(new_pos, self.max_index))
        return self._pos

    def tell(self) -> int:
        self._require_open()
        return self._pos

    # --- data ------------------------------------------------------------

    def read(self, size: int = STRING_LEN) -> bytes:
        """F(position) as the NUL-padded buffer, cut to size. The position does not move."""
        self._require_open()
        if size is None or size < 0 or size > STRING_LEN:
            size = STRING_LEN
        return bign_to_buffer(fib_doubling(self._pos))[:size]

    def read_text(self) -> str:
        self._require_open()
        return bign_to_string(fib_doubling(self._pos))

    def read_bign(self) -> BigN:
        self._require_open()
        return fib_doubling(self._pos)

    def write(self, data: bytes) -> int:
        # writing is not supported; report one byte taken so callers do not spin
        self._require_open()
        return 1
