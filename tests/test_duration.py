from datetime import timedelta

import pytest

from cometkit.duration import parse_duration


def test_duration_text():
    assert parse_duration(b"10s") == timedelta(seconds=10)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("0", timedelta(0)),
        ("500ms", timedelta(milliseconds=500)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("1.5s", timedelta(seconds=1.5)),
        ("-2m", timedelta(minutes=-2)),
        ("+3s", timedelta(seconds=3)),
        ("250us", timedelta(microseconds=250)),
        ("7\u00b5s", timedelta(microseconds=7)),
        (".5s", timedelta(milliseconds=500)),
        ("2000ns", timedelta(microseconds=2)),
    ],
)
def test_valid_durations(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "-", "10", "10x", ".s", "1s2", "s", "1.2.3s"])
def test_invalid_durations(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_overflow():
    with pytest.raises(ValueError):
        parse_duration("9223372036854775808ns")