# tests/test_config.py
from __future__ import annotations

import pytest

import fib128.config as CONFIG
from fib128.runtime import APPLY, CFG, current
from fib128.utility import UserInputError
from fib128.workspace import ensure_workspace_seeded, seed_workspace, workspace_dir


def _write_profile(ws, name: str, body: str):
    pdir = ws / "profiles"
    pdir.mkdir(parents=True, exist_ok=True)
    path = pdir / f"{name}.toml"
    path.write_text(body, encoding="utf-8")
    return path


# ---------- workspace ---------------------------------------------------------


def test_workspace_follows_env(workspace):
    assert workspace_dir() == workspace.resolve()


def test_first_run_seeds_packaged_profiles(workspace):
    root, seeded, copied = ensure_workspace_seeded()
    assert seeded
    assert copied["profiles"] == 3
    assert (workspace / "profiles" / "default.toml").exists()

    # second run copies nothing
    _, seeded_again, _ = ensure_workspace_seeded()
    assert not seeded_again


def test_seed_overwrite_restores_edited_profile(workspace):
    ensure_workspace_seeded()
    path = workspace / "profiles" / "default.toml"
    path.write_text("[LIMITS]\nMAX_INDEX = 7\n", encoding="utf-8")

    seed_workspace(overwrite=False)
    assert "MAX_INDEX = 7" in path.read_text(encoding="utf-8")

    seed_workspace(overwrite=True)
    assert "MAX_INDEX = 185" in path.read_text(encoding="utf-8")


# ---------- profiles ----------------------------------------------------------


def test_packaged_profiles():
    assert CONFIG.list_all_profiles() == ["checked", "compat", "default"]
    names = [name for name, _ in CONFIG.list_profiles_with_descriptions()]
    assert names == ["checked", "compat", "default"]


@pytest.mark.parametrize("name,max_index,verify", [
    ("default", 185, False),
    ("compat", 100, False),
    ("checked", 185, True),
])
def test_load_packaged_profile(name, max_index, verify):
    ensure_workspace_seeded()
    s = CONFIG.load_settings(name)
    assert s.name == name
    assert "PROFILE" not in s.as_dict()
    assert s.as_dict()["LIMITS"]["MAX_INDEX"] == max_index
    assert s.as_dict()["BEHAVIOUR"]["VERIFY"] is verify


def test_load_empty_name_means_default():
    ensure_workspace_seeded()
    assert CONFIG.load_settings(None).name == "default"


def test_missing_profile():
    ensure_workspace_seeded()
    assert not CONFIG.has_profile("nope")
    with pytest.raises(FileNotFoundError):
        CONFIG.load_settings("nope")


def test_profile_name_and_description_from_metadata(workspace):
    _write_profile(workspace, "mine", '[PROFILE]\nname = "custom"\ndescription = "  two\\n words "\n')
    pairs = dict(CONFIG.list_profiles_with_descriptions())
    assert pairs["custom"] == "two words"


def test_missing_description(workspace):
    _write_profile(workspace, "bare", "[LIMITS]\nMAX_INDEX = 3\n")
    assert dict(CONFIG.list_profiles_with_descriptions())["bare"] == "(no description)"


def test_broken_toml_reports_location(workspace):
    _write_profile(workspace, "broken", "[LIMITS\nMAX_INDEX = 3\n")
    with pytest.raises(UserInputError) as exc:
        CONFIG.load_settings("broken")
    assert "broken.toml" in str(exc.value)
    assert "line 1" in str(exc.value)
    assert dict(CONFIG.list_profiles_with_descriptions())["broken"] == "(unreadable profile)"


@pytest.mark.parametrize("value", ["-1", '"big"', "true", "1.5"])
def test_invalid_max_index(workspace, value):
    _write_profile(workspace, "badlimit", f"[LIMITS]\nMAX_INDEX = {value}\n")
    with pytest.raises(UserInputError):
        CONFIG.load_settings("badlimit")


def test_current_profile_marker(workspace):
    assert CONFIG.read_current_profile() is None
    CONFIG.write_current_profile("compat.toml")
    assert CONFIG.read_current_profile() == "compat"
    assert (workspace / "profiles" / ".current").read_text(encoding="utf-8") == "compat"


# ---------- runtime -----------------------------------------------------------


def test_apply_profile_to_runtime():
    ensure_workspace_seeded()
    APPLY(CONFIG.load_settings("checked"))
    rt = current()
    assert rt.profile_name == "checked"
    assert rt.verify is True
    assert rt.debug is False
    assert CFG("LIMITS.MAX_INDEX") == 185
    assert CFG("DISPLAY.ABBREVIATE_OVER") == 40


def test_cfg_defaults():
    assert CFG("LIMITS.MAX_INDEX", 100) == 100
    APPLY({"LIMITS": {"MAX_INDEX": 5}, "TOP": 1})
    assert CFG("LIMITS.NOPE", "x") == "x"
    assert CFG("LIMITS.MAX_INDEX.DEEPER", None) is None
    assert CFG("TOP") == 1
    assert CFG("", 9) == 9
