"""Tests for validation rules."""

from decimal import Decimal

import pytest

from carcover_app.core.clock import ManualClock, year_of
from carcover_app.core.errors import InvalidInput
from carcover_app.core.validation import (
    normalize_plate,
    parse_amount,
    validate_birth_year,
    validate_engine_capacity,
    validate_period_years,
    validate_phone,
    validate_positive_amount,
    validate_registration_year,
    validate_required_text,
)


def test_validate_phone_pattern() -> None:
    assert validate_phone(" +82 10-1234-5678 ") == "+82 10-1234-5678"
    with pytest.raises(InvalidInput):
        validate_phone("010-CALL-ME")


def test_validate_required_text() -> None:
    assert validate_required_text(" 현대 ", "브랜드") == "현대"
    with pytest.raises(InvalidInput):
        validate_required_text("   ", "브랜드")


def test_validate_birth_year_allows_zero() -> None:
    assert validate_birth_year(0) == 0
    assert validate_birth_year(1990) == 1990
    with pytest.raises(InvalidInput):
        validate_birth_year(-1)
    with pytest.raises(InvalidInput):
        validate_birth_year(True)


def test_normalize_plate() -> None:
    assert normalize_plate(" xyz 123 ") == "XYZ123"
    with pytest.raises(InvalidInput):
        normalize_plate("   ")


def test_validate_registration_year_range() -> None:
    assert validate_registration_year(2020, 2023) == 2020
    with pytest.raises(InvalidInput):
        validate_registration_year(2024, 2023)
    with pytest.raises(InvalidInput):
        validate_registration_year(1800, 2023)


def test_validate_period_years_range() -> None:
    assert validate_period_years(1) == 1
    with pytest.raises(InvalidInput):
        validate_period_years(0)


def test_validate_engine_capacity() -> None:
    assert validate_engine_capacity("1998") == 1998
    with pytest.raises(InvalidInput):
        validate_engine_capacity(0)


@pytest.mark.parametrize(
    "validator",
    [
        validate_engine_capacity,
        validate_period_years,
        lambda value: validate_registration_year(value, 2023),
    ],
)
@pytest.mark.parametrize("value", ["abc", "", None])
def test_integer_fields_reject_non_numeric_input(validator, value) -> None:
    with pytest.raises(InvalidInput):
        validator(value)


def test_amount_parsing() -> None:
    assert parse_amount("0.03", "금액") == Decimal("0.03")
    assert validate_positive_amount(2, "금액") == Decimal("2")
    with pytest.raises(InvalidInput):
        parse_amount("NaN", "금액")
    with pytest.raises(InvalidInput):
        validate_positive_amount("-0.5", "금액")


def test_year_of_ignores_leap_years() -> None:
    assert year_of(0) == 1970
    assert year_of(365 * 86400 - 1) == 1970
    assert year_of(365 * 86400) == 1971
    assert year_of(1_700_000_000) == 2023


def test_manual_clock_only_moves_forward() -> None:
    clock = ManualClock(100)
    assert clock.advance(days=1) == 100 + 86400
    with pytest.raises(ValueError):
        clock.advance(seconds=-1)
