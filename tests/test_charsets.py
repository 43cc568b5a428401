import pytest

from nomadpack.charsets import CHAR_SETS, char_set


def test_ascii_spinner_set():
    assert char_set(9) == ["|", "/", "-", "\\"]


def test_dot_set():
    assert char_set(26) == [".", "..", "..."]


def test_clock_set_starts_at_one_oclock():
    clocks = char_set(37)
    assert len(clocks) == 12
    assert clocks[0] == "\U0001F550"
    assert all(len(clock) == 1 for clock in clocks)
    assert [ord(c) for c in clocks] == sorted(ord(c) for c in clocks)


def test_half_hour_clock_set_interleaves_hours_and_half_hours():
    clocks = char_set(38)
    hours = char_set(37)
    assert len(clocks) == 2 * len(hours)
    assert clocks[0::2] == hours
    assert clocks[1] == "\U0001F55C"
    assert all(ord(half) - ord(hour) == ord(clocks[1]) - ord(clocks[0])
               for hour, half in zip(clocks[0::2], clocks[1::2]))


def test_returned_list_is_independent_copy():
    chars = char_set(4)
    chars.reverse()
    chars.append("extra")

    assert char_set(4) == list(CHAR_SETS[4])
    assert "extra" not in char_set(4)


def test_every_set_is_non_empty_strings():
    for index in CHAR_SETS:
        chars = char_set(index)
        assert chars, index
        assert all(isinstance(c, str) and c for c in chars), index


def test_alphabet_set_matches_letters():
    assert "".join(char_set(15)) == "abcdefghijklmnopqrstuvwxyz"


def test_unknown_set_raises():
    with pytest.raises(KeyError):
        char_set(max(CHAR_SETS) + 1)