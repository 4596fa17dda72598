# src/fib128/workspace.py
"""
The user workspace: a folder holding editable copies of the packaged
profiles, plus any result files written with --output.
"""

from __future__ import annotations

import os
import shutil
from importlib.resources import as_file
from importlib.resources import files as pkg_files
from pathlib import Path

ENV_HOME = "FIB128_HOME"
SUBDIRS = ("profiles",)


def workspace_dir() -> Path:
    env = os.environ.get(ENV_HOME)
    base = Path(env).expanduser() if env else Path.home() / "Documents" / "Fib128"
    return base.resolve()


def _is_profile_file(p: Path) -> bool:
    # hidden files (the .current marker among them), editor backups and caches stay behind
    if p.name.startswith(".") or p.name.endswith("~") or "__pycache__" in p.parts:
        return False
    return p.suffix.lower() == ".toml"


def _copy_profiles(src: Path, dst: Path, *, overwrite: bool) -> int:
    if not src.is_dir():
        return 0
    count = 0
    for p in sorted(src.rglob("*")):
        if not p.is_file() or not _is_profile_file(p):
            continue
        target = dst / p.relative_to(src)
        if target.exists() and not overwrite:
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(p, target)
        count += 1
    return count


def seed_workspace(*, overwrite: bool = False) -> tuple[Path, dict[str, int]]:
    """
    Copy the packaged profiles into the workspace.

    overwrite=False → only profiles the user does not have yet
    overwrite=True  → replace edited profiles too (``fib128 init overwrite``)

    Returns: (workspace_path, {subdir: files_copied})
    """
    root = workspace_dir()
    copied: dict[str, int] = {}
    for sub in SUBDIRS:
        (root / sub).mkdir(parents=True, exist_ok=True)
        with as_file(pkg_files("fib128") / sub) as packaged:
            copied[sub] = _copy_profiles(Path(packaged), root / sub, overwrite=overwrite)
    return root, copied


def ensure_workspace_seeded() -> tuple[Path, bool, dict[str, int]]:
    root, copied = seed_workspace(overwrite=False)
    return root, any(copied.values()), copied
