"""Policy ledger: policy creation, the plate registry, and policy queries."""

from __future__ import annotations

import json
from typing import Any

from carcover_app.core.clock import Clock, year_of
from carcover_app.core.errors import (
    CustomerBanned,
    NotRegistered,
    PlateAlreadyInsured,
    PolicyNotFound,
)
from carcover_app.core.validation import (
    normalize_plate,
    validate_engine_capacity,
    validate_period_years,
    validate_registration_year,
    validate_required_text,
)
from carcover_app.models.policy import Plan, PolicyCreate, PolicyView
from carcover_app.repositories.audit_repository import AuditRepository
from carcover_app.repositories.customer_repository import CustomerRepository
from carcover_app.repositories.db_pool import ThreadLocalConnection
from carcover_app.repositories.policy_repository import PolicyRepository


class PolicyService:
    """Coordinates policy use cases."""

    def __init__(
        self,
        pool: ThreadLocalConnection,
        policy_repo: PolicyRepository,
        customer_repo: CustomerRepository,
        audit_repo: AuditRepository,
        clock: Clock,
    ):
        self._pool = pool
        self._policy_repo = policy_repo
        self._customer_repo = customer_repo
        self._audit_repo = audit_repo
        self._clock = clock

    @staticmethod
    def _validate(payload: PolicyCreate, plate: str, current_year: int) -> tuple[PolicyCreate, Plan]:
        plan = Plan.parse(payload.plan)
        normalized = PolicyCreate(
            plate=plate,
            brand=validate_required_text(payload.brand, "브랜드"),
            engine_capacity=validate_engine_capacity(payload.engine_capacity),
            registration_year=validate_registration_year(payload.registration_year, current_year),
            period_years=validate_period_years(payload.period_years),
            electric=bool(payload.electric),
            plan=plan,
        )
        return normalized, plan

    @staticmethod
    def to_view(row: dict[str, Any]) -> PolicyView:
        return PolicyView(
            id=int(row["id"]),
            owner=row["owner"],
            plate=row["plate"],
            brand=row["brand"],
            engine_capacity=int(row["engine_capacity"]),
            registration_year=int(row["registration_year"]),
            start_year=int(row["start_year"]),
            period_years=int(row["period_years"]),
            last_paid=int(row["last_paid"]),
            opened_at=int(row["opened_at"]),
            plan=Plan[row["plan"]],
            electric=bool(row["electric"]),
            claimed=bool(row["claimed"]),
        )

    def create_insurance(self, caller: str, payload: PolicyCreate) -> int:
        """Insure one vehicle for the caller and return the new policy id."""
        now = self._clock.now()
        start_year = year_of(now)

        with self._pool.transaction():
            if not self._customer_repo.exists(caller):
                raise NotRegistered("등록되지 않은 고객입니다.", {"identity": caller})
            if self._customer_repo.is_banned(caller):
                raise CustomerBanned("이용이 정지된 고객입니다.", {"identity": caller})

            plate = normalize_plate(payload.plate)
            if self._policy_repo.has_been_registered(plate):
                raise PlateAlreadyInsured("이미 보험에 가입된 차량번호입니다.", {"plate": plate})

            validated, plan = self._validate(payload, plate, start_year)

            policy_id = self._policy_repo.create_policy(
                caller,
                validated,
                plan,
                start_year=start_year,
                opened_at=now,
            )
            self._audit_repo.add_log(
                "CREATE",
                "policy",
                policy_id,
                json.dumps(
                    {"event": "policy created", "after": self._snapshot(policy_id)},
                    ensure_ascii=False,
                ),
                actor=caller,
            )
        return policy_id

    def has_been_registered(self, plate: str) -> bool:
        """Return True when the plate was ever insured."""
        return self._policy_repo.has_been_registered(normalize_plate(plate))

    def load_policy(self, policy_id: int) -> PolicyView:
        """Fetch a policy without an audit entry, for use inside other operations."""
        row = self._policy_repo.get_policy(policy_id)
        if not row:
            raise PolicyNotFound("보험 정보를 찾을 수 없습니다.", {"policy_id": policy_id})
        return self.to_view(row)

    def get_policy(self, policy_id: int) -> PolicyView:
        """Fetch one policy by id."""
        policy = self.load_policy(policy_id)
        self._audit_repo.add_log("READ", "policy", policy_id, "policy read")
        return policy

    def get_customer_policy_ids(self, identity: str) -> list[int]:
        """Return the caller's policy ids in creation order."""
        return self._policy_repo.list_policy_ids(identity)

    def total_policies(self) -> int:
        return self._policy_repo.count_policies()

    def _snapshot(self, policy_id: int) -> dict[str, str]:
        """Build a snapshot for policy audit logs."""
        row = self._policy_repo.get_policy(policy_id)
        if not row:
            return {}
        return {
            "owner": row["owner"],
            "plate": row["plate"],
            "brand": row["brand"],
            "engine_capacity": str(row["engine_capacity"]),
            "registration_year": str(row["registration_year"]),
            "start_year": str(row["start_year"]),
            "period_years": str(row["period_years"]),
            "plan": row["plan"],
            "electric": str(bool(row["electric"])).lower(),
        }
