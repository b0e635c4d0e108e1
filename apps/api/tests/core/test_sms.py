"""
Tests for phone number normalisation.
"""

import pytest

from campus.core.sms import normalize_phone


@pytest.mark.parametrize(
    "raw",
    ["0712345678", "712345678", "254712345678", "+254712345678", "+254 712 345 678"],
)
def test_local_formats_normalise(raw):
    assert normalize_phone(raw, "254") == "+254712345678"


def test_other_country_code():
    assert normalize_phone("0241234567", "233") == "+233241234567"


def test_empty_input():
    assert normalize_phone("  ", "254") == ""
