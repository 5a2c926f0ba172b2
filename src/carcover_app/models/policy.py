"""Policy, plan, and claim domain models."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from carcover_app.core.errors import InvalidPlan


class Plan(Enum):
    """Coverage tiers with their fixed monthly premium and payout cap."""

    THIRD_PARTY_ONLY = (0, Decimal("0.01"), Decimal("1.0"))
    THIRD_PARTY_FIRE_THEFT = (1, Decimal("0.02"), Decimal("2.0"))
    COMPREHENSIVE = (2, Decimal("0.03"), Decimal("3.5"))

    def __init__(self, ordinal: int, monthly_premium: Decimal, max_payout: Decimal):
        self.ordinal = ordinal
        self.monthly_premium = monthly_premium
        self.max_payout = max_payout

    @classmethod
    def parse(cls, value: "Plan | str | int") -> "Plan":
        """Resolve a plan from a member, a name, or an ordinal."""
        if isinstance(value, Plan):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            for plan in cls:
                if plan.ordinal == value:
                    return plan
        elif isinstance(value, str):
            key = value.strip().upper().replace("-", "_")
            if key.isdigit():
                return cls.parse(int(key))
            if key in cls.__members__:
                return cls[key]
        raise InvalidPlan("지원하지 않는 보험 플랜입니다.", {"plan": value})


@dataclass
class PolicyCreate:
    """Input model for insuring one vehicle."""

    plate: str
    brand: str
    engine_capacity: int
    registration_year: int
    period_years: int
    electric: bool
    plan: Plan | str | int


@dataclass
class PolicyView:
    """Output model for policy retrieval."""

    id: int
    owner: str
    plate: str
    brand: str
    engine_capacity: int
    registration_year: int
    start_year: int
    period_years: int
    last_paid: int
    opened_at: int
    plan: Plan
    electric: bool
    claimed: bool

    @property
    def end_year(self) -> int:
        return self.start_year + self.period_years


@dataclass
class ClaimRequest:
    """Input model for a claim against one policy."""

    estimated_damage: Decimal
    accident_date: str
    document_url: str
