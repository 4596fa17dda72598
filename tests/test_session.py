# tests/test_session.py
from __future__ import annotations

import pytest

from fib128.engine import MAX_INDEX_DEFAULT, max_computable_index
from fib128.fmt import STRING_LEN
from fib128.runtime import APPLY
from fib128.session import SEEK_CUR, SEEK_END, SEEK_SET, DeviceBusy, FibSession, effective_max_index
from fib128.utility import UserInputError


@pytest.fixture
def session():
    s = FibSession(max_index=100)
    s.open()
    yield s
    s.close()


# ---------- ceiling -----------------------------------------------------------


def test_default_ceiling_without_profile():
    assert effective_max_index() == MAX_INDEX_DEFAULT


def test_ceiling_from_profile_settings():
    APPLY({"LIMITS": {"MAX_INDEX": 50}})
    assert FibSession().max_index == 50


def test_ceiling_is_capped_to_what_fits():
    assert FibSession(max_index=10_000).max_index == max_computable_index()


@pytest.mark.parametrize("bad", [-1, "100", 1.5, True])
def test_ceiling_must_be_non_negative_int(bad):
    with pytest.raises(UserInputError):
        FibSession(max_index=bad)


# ---------- exclusivity -------------------------------------------------------


def test_second_open_is_busy(session, capsys):
    other = FibSession()
    with pytest.raises(DeviceBusy):
        other.open()
    assert "in use" in capsys.readouterr().err
    assert other.closed


def test_reopen_after_close():
    with FibSession():
        pass
    with FibSession() as s:
        assert not s.closed


def test_open_is_idempotent_for_the_same_session(session):
    assert session.open() is session


def test_close_releases_on_error():
    with pytest.raises(RuntimeError):
        with FibSession():
            raise RuntimeError("boom")
    with FibSession() as s:
        assert s.tell() == 0


def test_open_resets_position():
    s = FibSession(max_index=100)
    s.open()
    s.seek(42)
    s.close()
    s.open()
    try:
        assert s.tell() == 0
    finally:
        s.close()


# ---------- seek --------------------------------------------------------------


@pytest.mark.parametrize("offset,expected", [(0, 0), (10, 10), (100, 100), (150, 100), (-5, 0)])
def test_seek_set_clamps(session, offset, expected):
    assert session.seek(offset, SEEK_SET) == expected
    assert session.tell() == expected


def test_seek_cur_is_relative(session):
    session.seek(90)
    assert session.seek(5, SEEK_CUR) == 95
    assert session.seek(10, SEEK_CUR) == 100
    assert session.seek(-200, SEEK_CUR) == 0


def test_seek_end_counts_back_from_ceiling(session):
    assert session.seek(0, SEEK_END) == 100
    assert session.seek(10, SEEK_END) == 90
    assert session.seek(-10, SEEK_END) == 100
    assert session.seek(500, SEEK_END) == 0


def test_seek_unknown_whence_goes_to_zero(session):
    session.seek(50)
    assert session.seek(7, 99) == 0


# ---------- read / write ------------------------------------------------------


def test_read_full_buffer(session):
    session.seek(10)
    buf = session.read()
    assert len(buf) == STRING_LEN
    assert buf.rstrip(b"\0") == b"55"


def test_read_does_not_move_position(session):
    session.seek(20)
    session.read()
    session.read()
    assert session.tell() == 20


@pytest.mark.parametrize("size,expected_len", [(2, 2), (0, 0), (STRING_LEN, STRING_LEN), (1000, STRING_LEN), (-1, STRING_LEN)])
def test_read_size(session, size, expected_len):
    session.seek(10)
    assert len(session.read(size)) == expected_len


def test_read_zero_index(session):
    assert session.read().rstrip(b"\0") == b"0"


def test_read_text_and_bign(session):
    session.seek(100)
    assert session.read_text() == "354224848179261915075"
    assert session.read_bign().to_int() == 354224848179261915075


def test_write_is_ignored(session):
    session.seek(3)
    assert session.write(b"12345") == 1
    assert session.tell() == 3
    assert session.read_text() == "2"


@pytest.mark.parametrize("call", [
    lambda s: s.read(),
    lambda s: s.seek(1),
    lambda s: s.tell(),
    lambda s: s.write(b"x"),
    lambda s: s.read_text(),
])
def test_closed_session_rejects_io(call):
    s = FibSession()
    with pytest.raises(ValueError):
        call(s)
