# tests/test_cli.py
"""
End-to-end runs of the command line and the interactive loop.

Run: pytest -v tests/test_cli.py
"""

from __future__ import annotations

import pytest

from fib128 import cli
from fib128.fmt import strip_ansi
from fib128.session import FibSession


@pytest.fixture(autouse=True)
def plain_terminal(monkeypatch):
    # keep colorama from wrapping the captured streams
    monkeypatch.setattr(cli, "colorama_init", lambda **kwargs: None)
    # --debug would otherwise install process-wide hooks
    monkeypatch.setattr(cli, "_install_loud_error_handlers", lambda debug: None)


def run(capsys, *argv):
    code = cli.main(list(argv))
    captured = capsys.readouterr()
    return code, strip_ansi(captured.out), strip_ansi(captured.err)


def feed(monkeypatch, *lines):
    answers = iter(lines)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))


# ---------- one-shot ----------------------------------------------------------


def test_value_only(capsys):
    code, out, _ = run(capsys, "10", "--no-details")
    assert code == 0
    assert out.strip() == "F(10) = 55"


def test_details(capsys):
    code, out, _ = run(capsys, "93")
    assert code == 0
    assert "F(93) = 12200160415121876738" in out
    assert "20 (buffer 40 bytes)" in out
    assert "64 of 128" in out
    assert "Words:" in out
    assert "doubling steps" in out


def test_index_expression(capsys):
    code, out, _ = run(capsys, "2**3+2", "--no-details")
    assert code == 0
    assert "F(10) = 55" in out


def test_last_fitting_index(capsys):
    code, out, _ = run(capsys, "185", "--no-details")
    assert code == 0
    assert "F(185) = 205697230343233228174223751303346572685" in out


def test_compat_profile_hides_words(capsys):
    code, out, _ = run(capsys, "compat", "94")
    assert code == 0
    assert "F(94) = 19740274219868223167" in out
    assert "Words:" not in out
    assert "Time:" not in out


@pytest.mark.parametrize("argv,fragment", [
    (("-1",), "non-negative"),
    (("186",), "above the ceiling 185"),
    (("compat", "150"), "above the ceiling 100"),
    (("default", "ten"), "is not an integer"),
    (("2**200",), "decimal digits"),
])
def test_user_errors_exit_2(capsys, argv, fragment):
    code, out, err = run(capsys, *argv)
    assert code == 2
    assert err.startswith(("Error:", "Invalid input:"))
    assert fragment in err
    assert out == ""


def test_unknown_profile(capsys):
    code, out, _ = run(capsys, "nosuch")
    assert code == 2
    assert "Unknown profile: 'nosuch'" in out
    assert "checked, compat, default" in out


def test_session_busy(capsys):
    with FibSession():
        code, _, err = run(capsys, "10")
    assert code == 2
    assert "in use" in err


# ---------- verification ------------------------------------------------------


def test_verify_flag(capsys):
    code, out, _ = run(capsys, "100", "--verify")
    assert code == 0
    assert "matches gmpy2.fib(100)" in out


def test_checked_profile_verifies(capsys):
    code, out, _ = run(capsys, "checked", "150")
    assert code == 0
    assert "Verified:" in out


def test_verify_mismatch_exits_1(capsys, monkeypatch):
    from fib128.verify import VerifyResult

    monkeypatch.setattr(cli, "verify_index", lambda k: VerifyResult(index=k, value=1, reference=2))
    code, out, _ = run(capsys, "10", "--verify")
    assert code == 1
    assert "MISMATCH" in out


# ---------- commands ----------------------------------------------------------


def test_range(capsys):
    code, out, _ = run(capsys, "range", "0", "6")
    assert code == 0
    lines = [line.strip() for line in out.splitlines() if line.strip()]
    assert lines == ["F(0) = 0", "F(1) = 1", "F(2) = 1", "F(3) = 2", "F(4) = 3", "F(5) = 5"]


def test_range_with_verify(capsys):
    code, out, _ = run(capsys, "range", "180", "186", "--verify")
    assert code == 0
    assert "6 values match gmpy2" in out


@pytest.mark.parametrize("argv", [("range", "5", "5"), ("range", "5"), ("range", "0", "187")])
def test_bad_range(capsys, argv):
    code, _, err = run(capsys, *argv)
    assert code == 2
    assert "Error:" in err


def test_limits(capsys):
    code, out, _ = run(capsys, "limits")
    assert code == 0
    assert "340282366920938463463374607431768211455" in out
    assert "185" in out


def test_profiles_and_active(capsys):
    code, out, _ = run(capsys, "profiles")
    assert code == 0
    for name in ("default", "compat", "checked"):
        assert name in out

    code, out, _ = run(capsys, "active")
    assert code == 0
    assert "Active profile: default" in out


def test_where(capsys, workspace):
    code, out, _ = run(capsys, "where")
    assert code == 0
    assert str(workspace.resolve()) in out


def test_init_overwrite_requires_dev_flag(capsys, monkeypatch):
    monkeypatch.delenv("FIB128_DEV", raising=False)
    code, out, _ = run(capsys, "init", "overwrite")
    assert code == 2
    assert "FIB128_DEV=1" in out

    monkeypatch.setenv("FIB128_DEV", "1")
    code, out, _ = run(capsys, "init", "overwrite")
    assert code == 0
    assert "Copied -> profiles: 3" in out


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--version"])
    assert exc.value.code == 0
    assert "fib128" in capsys.readouterr().out


def test_debug_prints_profile_keys(capsys):
    code, _, err = run(capsys, "10", "--debug", "--no-details")
    assert code == 0
    assert "[debug] active profile: default" in err
    assert "LIMITS.MAX_INDEX" in err


# ---------- output files ------------------------------------------------------


def test_output_file_quiet(capsys, workspace):
    code, out, _ = run(capsys, "10", "--output", "fib.txt", "--quiet")
    assert code == 0
    assert out == ""
    text = (workspace / "fib.txt").read_text(encoding="utf-8")
    assert text.startswith("F(10) = 55\n")
    assert "\x1b[" not in text


def test_output_directory_mode(capsys, workspace):
    code, _, _ = run(capsys, "range", "0", "3", "--output", "runs/")
    assert code == 0
    assert (workspace / "runs" / "F0-3.txt").exists()


def test_forbidden_output_file(capsys):
    code, _, err = run(capsys, "10", "--output", "notes.md")
    assert code == 1
    assert "Forbidden output file extension" in err


# ---------- interactive -------------------------------------------------------


def test_repl_navigation_and_profile_switch(capsys, monkeypatch):
    feed(monkeypatch, "10", "n", "p", "end", "compat", "end", "range 3 5", "hist", "verify on", "bogus", "q")
    code, out, err = run(capsys, "--no-details")
    assert code == 0
    assert "F(10) = 55" in out
    assert "F(11) = 89" in out
    assert "F(185) = " in out
    assert "Applied profile: compat (max index 100)" in out
    assert "F(100) = 354224848179261915075" in out
    assert "F(3) = 2" in out and "F(4) = 3" in out
    assert "k=11" in out
    assert "Verify enabled for this session." in out
    assert "Invalid input:" in out


def test_repl_words_starting_with_a_toggle_name_are_not_toggles(capsys, monkeypatch):
    feed(monkeypatch, "debugging", "verifyx on", "rangefoo 1 2", "verify status", "q")
    code, out, err = run(capsys, "--no-details")
    assert code == 0
    assert "Invalid input: 'debugging'" in out
    assert "Invalid input: 'verifyx on'" in out
    assert "Invalid input: 'rangefoo 1 2'" in out
    assert "AttributeError" not in out + err
    assert "F(1) = " not in out
    assert "Verify is currently OFF." in out


def test_repl_reports_errors_and_keeps_going(capsys, monkeypatch):
    feed(monkeypatch, "500", "-3", "10", "q")
    code, out, err = run(capsys, "--no-details")
    assert code == 0
    assert "above the ceiling 185" in err
    assert "non-negative" in err
    assert "F(10) = 55" in out
