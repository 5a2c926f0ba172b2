"""Input validation rules for customer and policy records."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from carcover_app.core.errors import InvalidInput

PHONE_PATTERN = re.compile(r"^\+?[0-9][0-9 -]{6,19}$")
PLATE_WHITESPACE_PATTERN = re.compile(r"\s+")
FIRST_CAR_YEAR = 1886
MAX_PERIOD_YEARS = 50


def validate_required_text(value: str, field_name: str) -> str:
    """Validate non-empty text fields."""
    normalized = (value or "").strip()
    if not normalized:
        raise InvalidInput(f"{field_name}은(는) 필수 입력입니다.", {"field": field_name})
    return normalized


def validate_phone(phone: str) -> str:
    """Validate an international-style phone number."""
    normalized = (phone or "").strip()
    if not PHONE_PATTERN.match(normalized):
        raise InvalidInput("연락처 형식이 올바르지 않습니다.", {"field": "phone"})
    return normalized


def validate_birth_year(birth_year: int) -> int:
    """Accept any non-negative four-digit year, including 0."""
    if isinstance(birth_year, bool) or not isinstance(birth_year, int):
        raise InvalidInput("출생연도는 정수여야 합니다.", {"field": "birth_year"})
    if birth_year < 0 or birth_year > 9999:
        raise InvalidInput("출생연도는 0~9999 사이여야 합니다.", {"field": "birth_year"})
    return birth_year


def normalize_plate(plate: str) -> str:
    """Strip whitespace and upper-case a vehicle plate."""
    normalized = PLATE_WHITESPACE_PATTERN.sub("", plate or "").upper()
    if not normalized:
        raise InvalidInput("차량번호는 필수 입력입니다.", {"field": "plate"})
    return normalized


def _parse_int(value: int | str, field_name: str, label: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as error:
        raise InvalidInput(f"{label}은(는) 정수여야 합니다.", {"field": field_name}) from error


def validate_engine_capacity(engine_capacity: int) -> int:
    """Validate engine capacity in cc."""
    capacity = _parse_int(engine_capacity, "engine_capacity", "배기량")
    if capacity <= 0:
        raise InvalidInput("배기량은 양수여야 합니다.", {"field": "engine_capacity"})
    return capacity


def validate_registration_year(registration_year: int, current_year: int) -> int:
    """Disallow registration years before the first car or in the future."""
    year = _parse_int(registration_year, "registration_year", "등록연도")
    if year < FIRST_CAR_YEAR or year > current_year:
        raise InvalidInput(
            f"등록연도는 {FIRST_CAR_YEAR}~{current_year} 사이여야 합니다.",
            {"field": "registration_year"},
        )
    return year


def validate_period_years(period_years: int) -> int:
    """Validate the coverage period length."""
    years = _parse_int(period_years, "period_years", "보험기간")
    if years < 1 or years > MAX_PERIOD_YEARS:
        raise InvalidInput(
            f"보험기간은 1~{MAX_PERIOD_YEARS}년 사이여야 합니다.",
            {"field": "period_years"},
        )
    return years


def parse_amount(value: Decimal | str | int, field_name: str) -> Decimal:
    """Convert user input to a finite Decimal amount."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as error:
        raise InvalidInput(f"{field_name} 형식이 올바르지 않습니다.", {"field": field_name}) from error
    if not amount.is_finite():
        raise InvalidInput(f"{field_name} 형식이 올바르지 않습니다.", {"field": field_name})
    return amount


def validate_positive_amount(value: Decimal | str | int, field_name: str) -> Decimal:
    """Validate a strictly positive amount."""
    amount = parse_amount(value, field_name)
    if amount <= 0:
        raise InvalidInput(f"{field_name}은(는) 양수여야 합니다.", {"field": field_name})
    return amount
