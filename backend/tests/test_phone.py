import pytest

from contacthub.services.phone import normalize_for_comparison, normalize_phone, phone_match_fragment


def test_indonesian_local_number_gets_country_code():
    assert normalize_phone("081234567890") == "+6281234567890"


def test_country_code_without_plus_is_prefixed():
    assert normalize_phone("6281234567890") == "+6281234567890"


def test_already_normalized_number_is_unchanged():
    assert normalize_phone("+6281234567890") == "+6281234567890"


def test_empty_and_none_return_none():
    assert normalize_phone("") is None
    assert normalize_phone(None) is None
    assert normalize_phone("   ") is None
    assert normalize_phone("abc") is None
    assert normalize_phone("+") is None


def test_separators_are_stripped():
    assert normalize_phone("0812-3456-7890") == "+6281234567890"
    assert normalize_phone("(0812) 3456 7890") == "+6281234567890"
    assert normalize_phone("+62 812 3456 7890") == "+6281234567890"


def test_only_a_leading_plus_is_kept():
    assert normalize_phone("62+81234567890") == "+6281234567890"
    assert normalize_phone("+62+81234567890") == "+6281234567890"


def test_other_international_numbers_get_plus():
    assert normalize_phone("+1234567890") == "+1234567890"
    assert normalize_phone("12025551234") == "+12025551234"


def test_short_local_number_is_not_treated_as_indonesian():
    # fewer than 10 digits in total
    assert normalize_phone("0812345") == "+0812345"


def test_double_zero_prefix_is_not_treated_as_local():
    assert normalize_phone("00812345678") == "+00812345678"


@pytest.mark.parametrize(
    "raw",
    [
        "081234567890",
        "6281234567890",
        "+6281234567890",
        "0812-3456-7890",
        "12025551234",
        "0812345",
        "00812345678",
        "+1 (202) 555-1234",
        "62+81",
        "9",
    ],
)
def test_normalize_is_idempotent(raw):
    once = normalize_phone(raw)
    assert once is not None
    assert normalize_phone(once) == once
    assert normalize_phone(raw) == once


def test_comparison_form_strips_exactly_one_plus():
    assert normalize_for_comparison("081234567890") == "6281234567890"
    assert normalize_for_comparison("+6281234567890") == "6281234567890"
    assert normalize_for_comparison("") is None
    assert normalize_for_comparison(None) is None
    for raw in ("081234567890", "+1 202 555 1234", "0812345"):
        assert "+" + normalize_for_comparison(raw) == normalize_phone(raw)


def test_match_fragment_uses_last_nine_digits():
    assert phone_match_fragment("6281234567890") == "234567890"
    assert phone_match_fragment("12345") == "12345"
