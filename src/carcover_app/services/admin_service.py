"""Owner-only operations: delinquency bans and custodial withdrawals."""

from __future__ import annotations

import json
from decimal import Decimal

from carcover_app.core.access import OwnerAuthority
from carcover_app.core.clock import PREMIUM_WINDOW_SECONDS, Clock
from carcover_app.core.errors import TooSoon, TransferFailed
from carcover_app.repositories.audit_repository import AuditRepository
from carcover_app.repositories.db_pool import ThreadLocalConnection
from carcover_app.repositories.treasury_repository import TreasuryRepository
from carcover_app.services.customer_service import CustomerService
from carcover_app.services.policy_service import PolicyService
from carcover_app.services.settlement_service import premium_anchor
from carcover_app.services.transfer import ValueTransfer


class AdminService:
    """Coordinates administrative use cases behind the owner capability."""

    def __init__(
        self,
        pool: ThreadLocalConnection,
        authority: OwnerAuthority,
        customer_service: CustomerService,
        policy_service: PolicyService,
        treasury_repo: TreasuryRepository,
        audit_repo: AuditRepository,
        transfer: ValueTransfer,
        clock: Clock,
    ):
        self._pool = pool
        self._authority = authority
        self._customer_service = customer_service
        self._policy_service = policy_service
        self._treasury_repo = treasury_repo
        self._audit_repo = audit_repo
        self._transfer = transfer
        self._clock = clock

    def ban(self, caller: str, policy_id: int) -> str:
        """Ban the owner of a policy whose premium is 30+ days overdue."""
        self._authority.require(caller)
        now = self._clock.now()

        with self._pool.transaction():
            policy = self._policy_service.load_policy(policy_id)
            if now < premium_anchor(policy) + PREMIUM_WINDOW_SECONDS:
                raise TooSoon(
                    "보험료 연체 기간이 30일 미만입니다.",
                    {"policy_id": policy_id, "last_paid": policy.last_paid},
                )
            self._customer_service.set_banned(policy.owner, True, actor=caller)
        return policy.owner

    def unban(self, caller: str, identity: str) -> None:
        """Clear a customer's ban flag; unknown identities succeed as a no-op."""
        self._authority.require(caller)
        self._customer_service.set_banned(identity, False, actor=caller)

    def withdraw(self, caller: str) -> Decimal:
        """Sweep the whole custodial balance to the owner and return the amount."""
        self._authority.require(caller)
        now = self._clock.now()

        with self._pool.transaction():
            amount = max(self._treasury_repo.balance(), Decimal("0"))
            self._treasury_repo.debit(caller, amount, "withdraw", occurred_at=now)
            self._audit_repo.add_log(
                "WITHDRAW",
                "custody",
                None,
                json.dumps({"event": "custody withdrawn", "amount": str(amount)}, ensure_ascii=False),
                actor=caller,
            )
            if not self._transfer.send(caller, amount):
                raise TransferFailed("관리자 출금 송금에 실패했습니다.", {"amount": amount})
        return amount
