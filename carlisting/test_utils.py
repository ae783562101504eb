"""
Tests for amount parsing/formatting and text helpers.
"""
import re

import pytest
from hypothesis import given, strategies as st

from carlisting.utils import (
    clean_text,
    format_inr,
    is_malformed_amount,
    mask_owner_name,
    parse_amount,
    to_int,
)


@pytest.mark.parametrize("text, expected", [
    ("15,75,000", 1575000),
    ("₹15.75 Lakh", 1575000),
    ("1.2 Crore", 12000000),
    ("Rs. 4.5 lakhs", 450000),
    ("₹ 2.345 Lakh", 234500),
    ("₹1.000005 lakh", 100001),
    ("₹8,99,999", 899999),
    ("Price: 650000 only", 650000),
    ("INR 3 crores", 30000000),
])
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", None, "Price on request", "call now"])
def test_parse_amount_without_numeral(text):
    assert parse_amount(text) == 0


def test_parse_amount_rejects_grouped_numeral_with_denomination():
    """A fully grouped amount followed by a denomination is malformed."""
    assert parse_amount("15,75,000 Lakh") == 0


@pytest.mark.parametrize("text, expected", [
    ("₹1,575,000 Lakh", True),
    ("15,75,000 lakhs", True),
    ("Rs 1,20 Crore", True),
    ("₹15.75 Lakh", False),
    ("₹15,75,000", False),
    ("Price on request", False),
    (None, False),
])
def test_is_malformed_amount(text, expected):
    assert is_malformed_amount(text) is expected


@pytest.mark.parametrize("amount, expected", [
    (0, "₹0"),
    (999, "₹999"),
    (1000, "₹1,000"),
    (500000, "₹5,00,000"),
    (1575000, "₹15,75,000"),
    (12345678, "₹1,23,45,678"),
])
def test_format_inr(amount, expected):
    assert format_inr(amount) == expected


def test_format_inr_rejects_negative():
    with pytest.raises(ValueError):
        format_inr(-1)


@given(st.integers(min_value=0, max_value=10**12))
def test_format_then_parse_returns_amount(amount):
    assert parse_amount(format_inr(amount)) == amount


@given(st.integers(min_value=0, max_value=10**12))
def test_format_inr_grouping(amount):
    text = format_inr(amount)
    assert text.startswith("₹")
    groups = text[1:].split(",")
    assert "".join(groups) == str(amount)
    if amount >= 1000:
        assert len(groups[-1]) == 3
        assert all(len(g) == 2 for g in groups[1:-1])
        assert 1 <= len(groups[0]) <= 2
    else:
        assert len(groups) == 1


@pytest.mark.parametrize("name, expected", [
    ("John Doe", "John D."),
    ("Rahul Kumar Sharma", "Rahul S."),
    ("Madonna", "Madonna"),
    ("  ", ""),
    (None, ""),
])
def test_mask_owner_name(name, expected):
    assert mask_owner_name(name) == expected


def test_clean_text():
    assert clean_text("  Hello   World  \n") == "Hello World"
    assert clean_text(None) == ""
    assert clean_text("") == ""


def test_to_int():
    assert to_int("32,500 km") == 32500
    assert to_int("17.9") == 17
    assert to_int("n/a") is None
    assert to_int(None) is None


def test_format_inr_uses_only_digits_and_commas():
    assert re.fullmatch(r"₹[\d,]+", format_inr(987654321))
