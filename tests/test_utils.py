from datetime import timedelta

from canarycheck.utils import age, set_difference


def test_age_zero():
    assert age(timedelta(0)) == "0ms"
    assert age(timedelta(microseconds=500)) == "0ms"


def test_age_milliseconds():
    assert age(timedelta(milliseconds=250)) == "250ms"


def test_age_seconds():
    assert age(timedelta(seconds=45)) == "45s"


def test_age_minutes_and_hours():
    assert age(timedelta(minutes=5)) == "5m"
    assert age(timedelta(hours=3)) == "3h"


def test_age_seconds_suffix_invariant():
    for seconds in range(1, 120):
        assert age(timedelta(seconds=seconds)).endswith("s")
        assert not age(timedelta(seconds=seconds)).endswith("ms")


def test_set_difference():
    assert set_difference(["a", "b", "c"], ["b"]) == ["a", "c"]
    assert set_difference(["a", "a"], []) == ["a", "a"]
    assert set_difference([], ["x"]) == []
    assert set_difference(["x"], ["x"]) == []