# tests/conftest.py
from __future__ import annotations

import pytest

from fib128 import runtime


@pytest.fixture(autouse=True)
def workspace(tmp_path, monkeypatch):
    """Point the workspace at a temp dir and start every test with a clean runtime."""
    ws = tmp_path / "ws"
    monkeypatch.setenv("FIB128_HOME", str(ws))
    runtime.reset()
    yield ws
    runtime.reset()
