"""Number display formatting and digit spacing."""

import pytest

from voicedialer.number_format import (
    NANP_FORMATS,
    format_number,
    format_with,
    match_pattern,
    space_out_digits,
)


@pytest.mark.parametrize("raw, expected", [
    ("6508675309", "650 867 5309"),
    ("8675309", "867 5309"),
    ("911", "911"),
    ("411", "411"),
    ("+16508675309", "+1 650 867 5309"),
    ("+27821234567", "+27 82 123 4567"),
    ("  6508675309  ", "650 867 5309"),
])
def test_format_number(raw, expected):
    assert format_number(raw) == expected


@pytest.mark.parametrize("raw", ["12", "12345", "65086753091", "", "abc"])
def test_format_number_no_match(raw):
    assert format_number(raw) is None


def test_trailing_space_takes_rest_of_number():
    assert match_pattern("+22x ", "+22512345") == "+225 12345"


def test_pattern_must_consume_all_input():
    assert match_pattern("xxx xxxx", "86753091") is None


def test_pattern_longer_than_input_fails():
    assert match_pattern("xxx xxx xxxx", "650867") is None


def test_international_table_is_tried_first():
    # "+1..." never reaches the NANP table, which has no '+'
    assert format_with(NANP_FORMATS, "+16508675309") is None
    assert format_number("+16508675309") == "+1 650 867 5309"


def test_space_out_digits():
    assert space_out_digits("dial 123 456 7890") == "dial 1 2 3, 4 5 6, 7 8 9 0"
    assert space_out_digits("call jack") == "call jack"
