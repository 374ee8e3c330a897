import pytest

from parents_portal.config import REMINDER_INTERVALS_DAYS, parse_intervals


def test_default_reminder_intervals():
    assert REMINDER_INTERVALS_DAYS == [21, 7, 1]


def test_parse_intervals_keeps_order_and_skips_blanks():
    assert parse_intervals("14, 3,,0") == [14, 3, 0]


@pytest.mark.parametrize("raw", ["7,-1", "seven"])
def test_parse_intervals_rejects_bad_values(raw):
    with pytest.raises(ValueError):
        parse_intervals(raw)
