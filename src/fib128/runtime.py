# src/fib128/runtime.py
"""
Per-run settings for fib128.

The active profile is flattened into a Runtime held in a ContextVar, so the
engine layers never take a settings argument: they ask CFG("SECTION.KEY").
Two switches, debug and verify, are lifted out of the profile into plain
attributes because the CLI and the REPL flip them directly.
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field
from importlib.util import find_spec
from typing import Any

from colorama import Fore, Style

# Runtime attribute -> profile key it is synced from
_PROFILE_FLAGS = {
    "debug": "BEHAVIOUR.DEBUG",
    "verify": "BEHAVIOUR.VERIFY",
}

# import name -> distribution name on the index
_REQUIRED = {
    "gmpy2": "gmpy2",
}


def _settings_mapping(settings: Any) -> dict[str, Any]:
    """Accept a Settings object, a plain dict, or anything with UPPERCASE attributes."""
    if callable(getattr(settings, "as_dict", None)):
        return dict(settings.as_dict())
    if isinstance(settings, dict):
        return dict(settings)
    return {k: getattr(settings, k) for k in dir(settings) if k.isupper()}


@dataclass
class Runtime:
    profile_name: str = "default"
    settings: dict[str, Any] = field(default_factory=dict)
    debug: bool = False   # [debug] lines on stderr, tracebacks
    verify: bool = False  # cross-check every printed value against gmpy2

    def apply(self, settings: Any) -> None:
        self.profile_name = str(getattr(settings, "name", None) or "default")
        self.settings = _settings_mapping(settings)

        for attr, key in _PROFILE_FLAGS.items():
            value = self.get(key)
            if isinstance(value, bool):
                setattr(self, attr, value)

    def get(self, key: str, default: Any = None) -> Any:
        """Dotted lookup, e.g. 'LIMITS.MAX_INDEX'. Missing or non-table steps give default."""
        if not key:
            return default
        node: Any = self.settings
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node


# --- Context management ---

_current_runtime: ContextVar[Runtime | None] = ContextVar("fib128_runtime", default=None)


def current() -> Runtime:
    rt = _current_runtime.get()
    if rt is None:
        rt = reset()
    return rt


def reset() -> Runtime:
    """Install a fresh Runtime (between CLI runs and in tests)."""
    rt = Runtime()
    _current_runtime.set(rt)
    return rt


def APPLY(settings: Any) -> None:
    current().apply(settings)


def CFG(key: str, default: Any = None) -> Any:
    return current().get(key, default)


# ---- Dependency check --------------------------------------------------------

def ensure_runtime_deps(strict: bool = True) -> bool:
    """
    Look for the verification backend without importing it.

    When something is missing a pip hint is printed; the return value is
    False only in strict mode, so callers can decide whether to stop.
    """
    missing = [dist for mod, dist in _REQUIRED.items() if find_spec(mod) is None]
    if not missing:
        return True

    print(
        f"{Fore.RED}{Style.BRIGHT}\nfib128 cannot start, missing: {', '.join(missing)}{Style.RESET_ALL}\n"
        f"Install with: {Fore.YELLOW}pip install {' '.join(missing)}{Style.RESET_ALL}"
    )
    return not strict
