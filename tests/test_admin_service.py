"""Tests for owner-only administration."""

from __future__ import annotations

from decimal import Decimal

import pytest

from carcover_app.core.access import OwnerAuthority
from carcover_app.core.errors import (
    CustomerBanned,
    NotRegistered,
    TooSoon,
    TransferFailed,
    Unauthorized,
)
from carcover_app.models.policy import Plan
from conftest import OWNER, policy_payload, registration

PREMIUM = Plan.COMPREHENSIVE.monthly_premium


class FailingTransfer:
    def send(self, recipient: str, amount: Decimal) -> bool:
        return False


def paid_policy(container, clock) -> int:
    container.customer_service.register("alice", registration())
    policy_id = container.policy_service.create_insurance("alice", policy_payload())
    clock.advance(days=30)
    container.settlement_service.pay_monthly_premium("alice", policy_id, PREMIUM)
    return policy_id


@pytest.mark.parametrize("caller", ["alice", "", "OWNER"])
def test_owner_operations_reject_other_callers(container, clock, caller) -> None:
    policy_id = paid_policy(container, clock)
    clock.advance(days=31)

    with pytest.raises(Unauthorized):
        container.admin_service.ban(caller, policy_id)
    with pytest.raises(Unauthorized):
        container.admin_service.unban(caller, "alice")
    with pytest.raises(Unauthorized):
        container.admin_service.withdraw(caller)
    assert container.customer_service.is_banned("alice") is False


def test_ban_requires_thirty_days_since_last_payment(container, clock) -> None:
    policy_id = paid_policy(container, clock)
    clock.advance(days=29)

    with pytest.raises(TooSoon):
        container.admin_service.ban(OWNER, policy_id)
    assert container.customer_service.is_banned("alice") is False


def test_ban_is_repeatable_while_delinquent(container, clock) -> None:
    policy_id = paid_policy(container, clock)
    clock.advance(days=31)

    assert container.admin_service.ban(OWNER, policy_id) == "alice"
    assert container.admin_service.ban(OWNER, policy_id) == "alice"

    assert container.customer_service.is_banned("alice") is True
    assert container.policy_service.get_policy(policy_id).claimed is False
    with pytest.raises(CustomerBanned):
        container.policy_service.create_insurance("alice", policy_payload("NEW001"))


def test_unban_clears_flag(container, clock) -> None:
    policy_id = paid_policy(container, clock)
    clock.advance(days=31)
    container.admin_service.ban(OWNER, policy_id)

    container.admin_service.unban(OWNER, "alice")

    assert container.customer_service.is_banned("alice") is False
    container.policy_service.create_insurance("alice", policy_payload("NEW001"))


def test_unban_unknown_identity_is_a_no_op(container) -> None:
    container.admin_service.unban(OWNER, "ghost")

    assert container.customer_service.is_banned("ghost") is False
    assert not container.customer_service.is_registered("ghost")
    assert container.audit_repo.list_logs(entity="customer") == []


def test_unban_of_registered_customer_without_ban_succeeds(container) -> None:
    container.customer_service.register("alice", registration())

    container.admin_service.unban(OWNER, "alice")

    assert container.customer_service.is_banned("alice") is False


def test_set_banned_on_unknown_identity_fails(container) -> None:
    with pytest.raises(NotRegistered):
        container.customer_service.set_banned("ghost", True, actor=OWNER)


def test_withdraw_sweeps_balance_to_owner(container, clock) -> None:
    paid_policy(container, clock)
    container.settlement_service.receive("sponsor", Decimal("2"))

    amount = container.admin_service.withdraw(OWNER)

    assert amount == Decimal("2") + PREMIUM
    assert container.settlement_service.custodial_balance() == 0
    assert container.wallet_repo.balance(OWNER) == amount
    assert container.admin_service.withdraw(OWNER) == 0


def test_withdraw_transfer_failure_keeps_balance(make_container) -> None:
    container = make_container(transfer=FailingTransfer())
    container.settlement_service.receive("sponsor", Decimal("4"))

    with pytest.raises(TransferFailed):
        container.admin_service.withdraw(OWNER)

    assert container.settlement_service.custodial_balance() == Decimal("4")
    assert container.audit_repo.list_logs(action="WITHDRAW") == []


def test_owner_identity_is_fixed_for_the_database(make_container) -> None:
    make_container()

    with pytest.raises(RuntimeError):
        make_container(owner="someone-else")


def test_owner_authority_requires_identity() -> None:
    with pytest.raises(RuntimeError):
        OwnerAuthority("  ")
    assert OwnerAuthority("root").is_owner("root")
