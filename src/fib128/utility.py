# -----------------------------------------------------------------------------
#  Utility functions
# -----------------------------------------------------------------------------

from __future__ import annotations

import os
import sys

# Output names that would clobber project files or hit Windows device names
_RESERVED_STEMS = frozenset(
    {".gitignore", "license", "readme", "pyproject", "con", "prn", "aux", "nul"}
    | {f"com{i}" for i in range(1, 10)}
    | {f"lpt{i}" for i in range(1, 10)}
)
_RESERVED_EXTENSIONS = frozenset({".py", ".md", ".toml"})

_CLEAR = "\033[H\033[2J"
_CLEAR_SCROLLBACK = "\033[3J"


class UserInputError(Exception):
    pass


def dec_digits(n: int) -> int:
    """Decimal digit count of |n| from bit_length, without building the string."""
    n = abs(n)
    if n < 10:
        return 1
    # log10(2) ~ 0.30103; the estimate is exact or one short
    est = (n.bit_length() * 30103) // 100000
    return est + 1 if n >= 10 ** est else est


def clear_screen(keep_scrollback: bool = False) -> None:
    """Clear the terminal; 'cls' on Windows, ANSI sequences elsewhere."""
    if os.name == "nt":
        os.system("cls")
        return
    sys.stdout.write(_CLEAR if keep_scrollback else _CLEAR_SCROLLBACK + _CLEAR)
    sys.stdout.flush()


def is_directory_target(output_file: str | None) -> bool:
    """'.', './' or a trailing slash select one file per index."""
    return bool(output_file) and (output_file in (".", "./") or output_file.endswith("/"))


def validate_output_setting(output_file: str | None) -> str | None:
    """
    Check an --output / OUTPUT.OUTPUT_FILE value and return it unchanged.

    Empty means screen only and directory targets are always fine. A file
    target must not use a reserved name or a source-like extension.
    """
    if not output_file or is_directory_target(output_file):
        return output_file

    basename = os.path.basename(output_file)
    stem, ext = os.path.splitext(basename)
    if basename.lower() in _RESERVED_STEMS or stem.lower() in _RESERVED_STEMS:
        raise ValueError(f"Forbidden output filename: {basename}")
    if ext.lower() in _RESERVED_EXTENSIONS:
        raise ValueError(f"Forbidden output file extension: {ext.lower()}")
    return output_file


def typename(v: object) -> str:
    return type(v).__name__


def flatten_dotted(d: dict, prefix: str = "") -> dict[str, object]:
    """{'LIMITS': {'MAX_INDEX': 185}} -> {'LIMITS.MAX_INDEX': 185}"""
    out: dict[str, object] = {}
    for k, v in (d or {}).items():
        key = f"{prefix}.{k}" if prefix else str(k)
        if isinstance(v, dict):
            out.update(flatten_dotted(v, key))
        else:
            out[key] = v
    return out
