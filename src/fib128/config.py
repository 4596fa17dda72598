# src/fib128/config.py
"""
Profiles: named TOML files in <workspace>/profiles.

A profile carries an optional [PROFILE] table (name, description) that is
metadata only; every other table is handed to the runtime as settings.
Values the engine depends on are type-checked here, so a bad profile fails
with a readable message before any session opens.
"""

from __future__ import annotations

import tomllib as toml
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from fib128.utility import UserInputError
from fib128.workspace import ensure_workspace_seeded, workspace_dir

DEFAULT_PROFILE = "default"
_META = "PROFILE"
_MARKER = ".current"   # remembers the last profile switched to

# dotted key -> accepted types; bool is excluded from int explicitly below
_TYPED_KEYS: dict[str, tuple[type, ...]] = {
    "LIMITS.MAX_INDEX": (int,),
    "BEHAVIOUR.DEBUG": (bool,),
    "BEHAVIOUR.VERIFY": (bool,),
    "DISPLAY.SHOW_HEX": (bool,),
    "DISPLAY.SHOW_TIMING": (bool,),
    "DISPLAY.ABBREVIATE_OVER": (int,),
    "OUTPUT.OUTPUT_FILE": (str,),
}


@dataclass
class Settings:
    """
    One loaded profile.

      data:        every table except [PROFILE]; fed to runtime.APPLY
      name:        [PROFILE].name, else the file stem
      description: one line from [PROFILE].description
    """
    data: dict[str, Any]
    name: str
    description: str
    _source: Path | None = None

    def as_dict(self) -> dict[str, Any]:
        return self.data


def _profiles_dir() -> Path:
    return workspace_dir() / "profiles"


def _profile_path(name: str) -> Path:
    return _profiles_dir() / f"{name}.toml"


def _read_profile(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as fh:
            return toml.load(fh)
    except toml.TOMLDecodeError as e:
        # 3.14+ carries lineno/colno; older versions put the location in the message
        lineno, colno = getattr(e, "lineno", None), getattr(e, "colno", None)
        loc = f" (at line {lineno}, column {colno})" if lineno is not None else ""
        raise UserInputError(f"reading {path.name}: {getattr(e, 'msg', e)}{loc}.") from None


def _one_line(text: Any) -> str:
    return " ".join(str(text or "").split()) or "(no description)"


def _split_meta(raw: dict[str, Any], stem: str) -> tuple[dict[str, Any], str, str]:
    """Return (settings without [PROFILE], name, description)."""
    meta = raw.get(_META) or {}
    data = {k: v for k, v in raw.items() if k != _META}
    return data, str(meta.get("name") or stem), _one_line(meta.get("description"))


def _lookup(data: dict[str, Any], dotted: str) -> tuple[bool, Any]:
    node: Any = data
    for part in dotted.split("."):
        if not isinstance(node, dict) or part not in node:
            return False, None
        node = node[part]
    return True, node


def _check_types(data: dict[str, Any], source: str) -> None:
    for key, types in _TYPED_KEYS.items():
        present, value = _lookup(data, key)
        if not present:
            continue
        wrong = not isinstance(value, types) or (bool not in types and isinstance(value, bool))
        if wrong:
            expected = " or ".join(t.__name__ for t in types)
            raise UserInputError(f"{source}: {key} must be {expected}, got {value!r}.")
        if types == (int,) and value < 0:
            raise UserInputError(f"{source}: {key} must be a non-negative integer, got {value!r}.")


# --- Public API ------------------------------------------------------------

def list_all_profiles() -> list[str]:
    """Profile names (file stems), seeding the workspace on first use."""
    ensure_workspace_seeded()
    return sorted(p.stem for p in _profiles_dir().glob("*.toml"))


def list_profiles_with_descriptions() -> list[tuple[str, str]]:
    """[(name, description), ...]; a profile that does not parse is still listed."""
    items: list[tuple[str, str]] = []
    for path in _profiles_dir().glob("*.toml"):
        try:
            _, name, desc = _split_meta(_read_profile(path), path.stem)
        except UserInputError:
            name, desc = path.stem, "(unreadable profile)"
        items.append((name, desc))
    return sorted(items, key=lambda t: t[0].lower())


def has_profile(name: str) -> bool:
    return bool(name) and _profile_path(name).exists()


def load_settings(name: str | None) -> Settings:
    """Load and check a profile; an empty name means 'default'."""
    path = _profile_path(name or DEFAULT_PROFILE)
    if not path.exists():
        raise FileNotFoundError(f"Profile '{name or DEFAULT_PROFILE}' not found at {path}")

    data, resolved, description = _split_meta(_read_profile(path), path.stem)
    _check_types(data, path.name)
    return Settings(data=data, name=resolved, description=description, _source=path)


def _marker_path() -> Path:
    pdir = _profiles_dir()
    pdir.mkdir(parents=True, exist_ok=True)
    return pdir / _MARKER


def _strip_suffix(name: str) -> str:
    name = (name or "").strip()
    return name[:-5] if name.lower().endswith(".toml") else name


def read_current_profile() -> str | None:
    try:
        text = _marker_path().read_text(encoding="utf-8")
    except OSError:
        return None
    return _strip_suffix(text) or None


def write_current_profile(name: str) -> None:
    _marker_path().write_text(_strip_suffix(name), encoding="utf-8")
