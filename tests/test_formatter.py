import pytest

from plate_inventory.formatter import format_plate


@pytest.mark.parametrize("raw, expected", [
    ("abc123", "ABC-123"),
    ("ABC-123", "ABC-123"),
    ("a-b-c-1-2-3", "ABC-123"),
    ("xyz9", "XYZ-9"),
    ("abcd1234", "ABC-D1234"),
])
def test_inserts_single_dash_after_third_character(raw, expected):
    assert format_plate(raw) == expected


@pytest.mark.parametrize("raw, expected", [
    ("", ""),
    ("a", "A"),
    ("ab-", "AB"),
    ("-a-b-c-", "ABC"),
])
def test_short_plates_pass_through_uppercased(raw, expected):
    assert format_plate(raw) == expected


@pytest.mark.parametrize("raw", ["abc123", "ABC-123", "x", "kl-9876", "---"])
def test_idempotent(raw):
    once = format_plate(raw)
    assert format_plate(once) == once
    assert once.count("-") <= 1


def test_none_is_treated_as_empty():
    assert format_plate(None) == ""
