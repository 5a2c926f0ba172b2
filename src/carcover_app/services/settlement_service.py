"""Settlement engine: premium collection, claim payouts, and deposits.

Every operation runs inside one database transaction. A failure of any kind,
including a refused transfer, rolls back the policy flags, the custodial
balance, and the audit entry together.

Claims commit ``claimed = 1`` and the custodial debit before the transfer
collaborator is called. A collaborator that calls back into the engine for
the same policy therefore sees the policy as already claimed.
"""

from __future__ import annotations

import json
from decimal import Decimal

from carcover_app.core.clock import PREMIUM_WINDOW_SECONDS, Clock, year_of
from carcover_app.core.errors import (
    AlreadyClaimed,
    CustomerBanned,
    ExceedsMaxPayout,
    InvalidCaller,
    MissingFields,
    PeriodExpired,
    TooSoon,
    TransferFailed,
    WrongAmount,
)
from carcover_app.core.validation import parse_amount, validate_positive_amount
from carcover_app.models.policy import ClaimRequest, PolicyView
from carcover_app.repositories.audit_repository import AuditRepository
from carcover_app.repositories.customer_repository import CustomerRepository
from carcover_app.repositories.db_pool import ThreadLocalConnection
from carcover_app.repositories.policy_repository import PolicyRepository
from carcover_app.repositories.treasury_repository import TreasuryRepository
from carcover_app.services.policy_service import PolicyService
from carcover_app.services.transfer import ValueTransfer


def premium_anchor(policy: PolicyView) -> int:
    """Timestamp the 30-day premium window is measured from."""
    return policy.last_paid or policy.opened_at


class SettlementService:
    """Moves value in and out of the custodial pool for policy holders."""

    def __init__(
        self,
        pool: ThreadLocalConnection,
        policy_service: PolicyService,
        policy_repo: PolicyRepository,
        customer_repo: CustomerRepository,
        treasury_repo: TreasuryRepository,
        audit_repo: AuditRepository,
        transfer: ValueTransfer,
        clock: Clock,
    ):
        self._pool = pool
        self._policy_service = policy_service
        self._policy_repo = policy_repo
        self._customer_repo = customer_repo
        self._treasury_repo = treasury_repo
        self._audit_repo = audit_repo
        self._transfer = transfer
        self._clock = clock

    def pay_monthly_premium(
        self,
        caller: str,
        policy_id: int,
        attached_value: Decimal | str | int,
    ) -> int:
        """Accept one monthly premium and return the new last-paid timestamp."""
        now = self._clock.now()
        amount = parse_amount(attached_value, "납입금액")

        with self._pool.transaction():
            policy = self._policy_service.load_policy(policy_id)
            if policy.owner != caller:
                raise InvalidCaller(
                    "보험 계약자만 보험료를 납부할 수 있습니다.",
                    {"policy_id": policy_id, "caller": caller},
                )

            next_due = premium_anchor(policy) + PREMIUM_WINDOW_SECONDS
            if now < next_due:
                raise TooSoon(
                    "보험료 납부 가능 시점이 아닙니다.",
                    {"policy_id": policy_id, "next_due": next_due},
                )
            if amount != policy.plan.monthly_premium:
                raise WrongAmount(
                    "납입금액이 월 보험료와 일치하지 않습니다.",
                    {"expected": policy.plan.monthly_premium, "received": amount},
                )

            self._policy_repo.mark_paid(policy_id, now)
            balance = self._treasury_repo.credit(
                caller,
                amount,
                "premium",
                occurred_at=now,
                policy_id=policy_id,
            )
            self._audit_repo.add_log(
                "PAYMENT",
                "policy",
                policy_id,
                json.dumps(
                    {
                        "event": "premium paid",
                        "amount": str(amount),
                        "paid_at": now,
                        "custodial_balance": str(balance),
                    },
                    ensure_ascii=False,
                ),
                actor=caller,
            )
        return now

    def claim_insurance(self, caller: str, policy_id: int, request: ClaimRequest) -> Decimal:
        """Settle the single claim a policy allows and return the amount paid."""
        now = self._clock.now()

        with self._pool.transaction():
            if self._customer_repo.is_banned(caller):
                raise CustomerBanned("이용이 정지된 고객입니다.", {"identity": caller})

            policy = self._policy_service.load_policy(policy_id)
            if policy.owner != caller:
                raise InvalidCaller(
                    "보험 계약자만 보험금을 청구할 수 있습니다.",
                    {"policy_id": policy_id, "caller": caller},
                )
            if policy.claimed:
                raise AlreadyClaimed("이미 보험금이 청구된 계약입니다.", {"policy_id": policy_id})

            damage = parse_amount(request.estimated_damage, "손해액")
            accident_date = (request.accident_date or "").strip()
            document_url = (request.document_url or "").strip()
            if not accident_date or not document_url or damage <= 0:
                raise MissingFields(
                    "사고일자, 증빙서류, 손해액을 모두 입력해야 합니다.",
                    {"policy_id": policy_id},
                )

            current_year = year_of(now)
            if policy.end_year < current_year:
                raise PeriodExpired(
                    "보험기간이 만료되었습니다.",
                    {"policy_id": policy_id, "end_year": policy.end_year},
                )
            if damage > policy.plan.max_payout:
                raise ExceedsMaxPayout(
                    "청구액이 플랜의 최대 보상한도를 초과합니다.",
                    {"max_payout": policy.plan.max_payout, "requested": damage},
                )

            if self._policy_repo.mark_claimed(policy_id) == 0:
                raise AlreadyClaimed("이미 보험금이 청구된 계약입니다.", {"policy_id": policy_id})
            balance = self._treasury_repo.debit(
                caller,
                damage,
                "claim",
                occurred_at=now,
                policy_id=policy_id,
            )
            self._audit_repo.add_log(
                "CLAIM",
                "policy",
                policy_id,
                json.dumps(
                    {
                        "event": "claim paid",
                        "amount": str(damage),
                        "accident_date": accident_date,
                        "document_url": document_url,
                        "custodial_balance": str(balance),
                    },
                    ensure_ascii=False,
                ),
                actor=caller,
            )

            if not self._transfer.send(caller, damage):
                raise TransferFailed(
                    "보험금 송금에 실패했습니다.",
                    {"policy_id": policy_id, "amount": damage},
                )
        return damage

    def receive(self, caller: str, amount: Decimal | str | int) -> Decimal:
        """Accept an unsolicited deposit and return the new custodial balance."""
        now = self._clock.now()
        value = validate_positive_amount(amount, "입금액")
        with self._pool.transaction():
            balance = self._treasury_repo.credit(caller, value, "deposit", occurred_at=now)
            self._audit_repo.add_log(
                "DEPOSIT",
                "custody",
                None,
                json.dumps({"event": "deposit", "amount": str(value)}, ensure_ascii=False),
                actor=caller,
            )
        return balance

    def custodial_balance(self) -> Decimal:
        return self._treasury_repo.balance()
