"""Tests for customer registration and lookups."""

from __future__ import annotations

import json

import pytest

from carcover_app.core.errors import AlreadyRegistered, InvalidInput, NotRegistered
from conftest import registration


def test_register_stores_fields_exactly(container) -> None:
    container.customer_service.register("alice", registration())

    customer = container.customer_service.get_customer("alice", reveal_sensitive=True)
    assert customer.identity == "alice"
    assert customer.name == "Alice"
    assert customer.national_id == "AB1234567"
    assert customer.nationality == "KR"
    assert customer.phone == "+82 10-1234-5678"
    assert customer.birth_year == 1990


def test_second_register_with_invalid_fields_still_reports_duplicate(container) -> None:
    container.customer_service.register("alice", registration())

    with pytest.raises(AlreadyRegistered):
        container.customer_service.register("alice", registration(name=""))
    with pytest.raises(AlreadyRegistered):
        container.customer_service.register("alice", registration(birth_year=-5))
    assert customer.married is False
    assert customer.banned is False


def test_second_register_fails_and_keeps_first_record(container) -> None:
    container.customer_service.register("alice", registration())

    with pytest.raises(AlreadyRegistered):
        container.customer_service.register("alice", registration(name="Mallory", birth_year=1970))

    customer = container.customer_service.get_customer("alice", reveal_sensitive=True)
    assert customer.name == "Alice"
    assert customer.birth_year == 1990


def test_birth_year_zero_counts_as_registered(container) -> None:
    container.customer_service.register("old-timer", registration(birth_year=0))

    assert container.customer_service.is_registered("old-timer")
    with pytest.raises(AlreadyRegistered):
        container.customer_service.register("old-timer", registration(birth_year=0))


def test_get_customer_masks_sensitive_fields_by_default(container) -> None:
    container.customer_service.register("alice", registration())

    customer = container.customer_service.get_customer("alice")
    assert customer.national_id == "AB*****67"
    assert customer.phone.endswith("5678")
    assert "1234" not in customer.phone


def test_invalid_phone_is_rejected_without_record(container) -> None:
    payload = registration()
    payload.phone = "call me"

    with pytest.raises(InvalidInput):
        container.customer_service.register("alice", payload)
    assert not container.customer_service.is_registered("alice")


def test_unknown_customer_lookup_fails(container) -> None:
    with pytest.raises(NotRegistered):
        container.customer_service.get_customer("nobody")
    assert container.customer_service.is_banned("nobody") is False


def test_register_writes_masked_audit_log(container) -> None:
    container.customer_service.register("alice", registration())

    logs = container.audit_repo.list_logs(action="CREATE", entity="customer")
    assert len(logs) == 1
    assert logs[0]["actor"] == "alice"
    detail = json.loads(logs[0]["detail"])
    assert detail["after"]["national_id"] == "AB*****67"
