"""Shared fixtures wiring services against a temporary SQLite database."""

from __future__ import annotations

from decimal import Decimal

import pytest

from carcover_app.core.clock import ManualClock
from carcover_app.core.config import (
    AppConfig,
    DatabaseConfig,
    EncryptionConfig,
    LoggingConfig,
    OwnerConfig,
)
from carcover_app.core.container import wire_services
from carcover_app.core.crypto import CryptoService
from carcover_app.models.customer import CustomerRegistration
from carcover_app.models.policy import Plan, PolicyCreate

# 2023-11-14, so year_of() gives 2023.
START_TIMESTAMP = 1_700_000_000
OWNER = "owner"


def build_config(tmp_path, owner: str = OWNER) -> AppConfig:
    return AppConfig(
        database=DatabaseConfig(
            path=str(tmp_path / "test.db"),
            key_env="CARCOVER_DB_KEY",
            allow_sqlite_fallback=True,
        ),
        encryption=EncryptionConfig(key_env="CARCOVER_ENCRYPTION_KEY"),
        logging=LoggingConfig(retention_days=1095),
        owner=OwnerConfig(identity=owner),
    )


def registration(name: str = "Alice", birth_year: int = 1990) -> CustomerRegistration:
    return CustomerRegistration(
        name=name,
        national_id="AB1234567",
        nationality="KR",
        phone="+82 10-1234-5678",
        birth_year=birth_year,
        married=False,
    )


def policy_payload(
    plate: str = "XYZ123",
    plan: Plan | str | int = Plan.COMPREHENSIVE,
    period_years: int = 1,
) -> PolicyCreate:
    return PolicyCreate(
        plate=plate,
        brand="Hyundai",
        engine_capacity=1998,
        registration_year=2020,
        period_years=period_years,
        electric=False,
        plan=plan,
    )


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START_TIMESTAMP)


@pytest.fixture
def crypto() -> CryptoService:
    return CryptoService.from_base64_key(CryptoService.generate_base64_key())


@pytest.fixture
def make_container(tmp_path, clock, crypto):
    """Build a container, optionally with a custom transfer collaborator."""

    def _make(transfer=None, owner: str = OWNER):
        return wire_services(build_config(tmp_path, owner), crypto, clock, transfer)

    return _make


@pytest.fixture
def container(make_container):
    return make_container()


@pytest.fixture
def funded(container):
    """Container whose custodial pool already holds 10 units."""
    container.settlement_service.receive("sponsor", Decimal("10"))
    return container
