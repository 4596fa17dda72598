# src/fib128/output_manager.py
"""
Screen and file output for results.

Every line goes through OutputManager.write(). Depending on the target it
is printed, appended to one log file, or collected and written to a file
per index (F<index>.txt) when the manager closes. Files never get ANSI
color codes.
"""

from __future__ import annotations

import os

from fib128.fmt import strip_ansi
from fib128.utility import is_directory_target
from fib128.workspace import workspace_dir


def resolve_output_path(path: str, workspace_root: str) -> str:
    """Expand '~'; relative paths are taken relative to the workspace."""
    if not path:
        raise ValueError("Output path is empty")
    path = os.path.expanduser(path)
    if not os.path.isabs(path):
        path = os.path.join(workspace_root, path)
    return os.path.normpath(path)


class OutputManager:
    """
    output_file:
        None or ""        screen only
        "." / "./" / "x/" one file per index, F<index>.txt, written on close()
        "path/fib.txt"    every write appended; a blank line after each run
    quiet: nothing on screen, files only
    index: names the per-index file; required for directory targets
    """

    def __init__(self, output_file: str | None = None, quiet: bool = False, index: int | str | None = None):
        self.quiet = quiet
        self.output_file = output_file or ""
        self.index = index
        self._lines: list[str] = []
        self._closed = False
        self._per_index_path: str | None = None
        self._append_path: str | None = None

        if not self.output_file:
            return

        root = str(workspace_dir())
        if is_directory_target(self.output_file):
            if index is None:
                raise ValueError("An index must be provided when outputting to a directory.")
            directory = resolve_output_path(self.output_file, root)
            os.makedirs(directory, exist_ok=True)
            self._per_index_path = os.path.join(directory, f"F{index}.txt")
        else:
            self._append_path = resolve_output_path(self.output_file, root)
            os.makedirs(os.path.dirname(self._append_path) or ".", exist_ok=True)

    @property
    def target_path(self) -> str | None:
        return self._per_index_path or self._append_path

    def write(self, *args, sep: str = " ", end: str = "\n") -> None:
        text = sep.join(str(a) for a in args) + end
        self._lines.append(text)
        if not self.quiet:
            print(text, end="")
        if self._append_path:
            with open(self._append_path, "a", encoding="utf-8") as fh:
                fh.write(strip_ansi(text))

    def write_screen(self, *args, sep: str = " ", end: str = "\n", flush: bool = True) -> None:
        """Screen only; never reaches a file."""
        if not self.quiet:
            print(*args, sep=sep, end=end, flush=flush)

    def getvalue(self) -> str:
        """Everything written so far, colors included."""
        return "".join(self._lines)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if not self._lines:
            return

        if self._per_index_path:
            try:
                with open(self._per_index_path, "w", encoding="utf-8") as fh:
                    fh.write(strip_ansi(self.getvalue()))
            except OSError as e:
                self.write_screen(f"[WARNING] Could not write output file: {self._per_index_path} ({type(e).__name__}: {e})")
        elif self._append_path:
            with open(self._append_path, "a", encoding="utf-8") as fh:
                fh.write("\n")

    def __enter__(self) -> OutputManager:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
